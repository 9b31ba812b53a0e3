"""
Background task management.
"""
from typing import Dict, Any, Optional

processing_tasks: Dict[str, Dict[str, Any]] = {}


def create_task(task_id: str, kind: str = "import"):
    """Create new task."""
    processing_tasks[task_id] = {
        "kind": kind,
        "status": "pending",
        "message": "Task created",
        "progress": 0.0,
        "result": None,
    }


def get_task(task_id: str) -> Optional[Dict[str, Any]]:
    """Get task by ID."""
    return processing_tasks.get(task_id)


def update_progress(task_id: str, processed: int, total: int):
    """Record batch progress as a percentage."""
    task = processing_tasks.get(task_id)
    if task is None:
        return
    task["progress"] = round(processed / total * 100, 1) if total else 100.0
    task["message"] = f"Processed {processed} of {total} records"
