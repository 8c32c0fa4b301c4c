"""perfsnap - perf data collection and archiving for performance diagnostics."""

__version__ = "1.0.0"
