"""JSON run summary output."""

import json
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from perfsnap import __version__

if TYPE_CHECKING:
    from perfsnap.runners.result import SessionResult


def _default_serializer(obj: Any) -> Any:
    """JSON serializer for objects not serializable by default."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"Type {type(obj)} not serializable")


def session_result_to_dict(result: "SessionResult") -> dict[str, Any]:
    """Convert a session result to a JSON-serializable dict."""
    context = result.context
    data: dict[str, Any] = {
        "perfsnap_version": __version__,
        "cid": context.identity.cid,
        "aid": context.identity.aid,
        "duration_s": context.duration_s,
        "work_dir": str(context.work_dir),
        "started_at": result.started_at,
        "completed_at": result.completed_at,
        "status": result.status,
        "error": result.error,
        "categories": result.categories,
        "target_pids": result.target_pids,
        "succeeded": result.succeeded,
        "failed": result.failed,
        "tasks": [asdict(t) for t in result.tasks],
        "inventory": [
            {
                "name": item.name,
                "output": item.output.name,
                "returncode": item.returncode,
                "error": item.error,
            }
            for item in result.inventory
        ],
    }

    if result.system_info:
        data["system_info"] = asdict(result.system_info)

    return data


def save_json_report(result: "SessionResult", output_path: Path) -> Path:
    """Save the session summary as JSON.

    Returns:
        Path to the created JSON file.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = session_result_to_dict(result)

    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=_default_serializer)

    return output_path
