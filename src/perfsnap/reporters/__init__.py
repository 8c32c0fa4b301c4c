"""Run summary reporters."""
