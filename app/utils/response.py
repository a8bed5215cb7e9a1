"""
Response envelope shared by every endpoint: {success, data, message}.
"""

from typing import Any

from app.schemas.reports import BulkOutcome


def success_response(data: Any = None, message: str = "Success") -> dict:
    return {"success": True, "data": data, "message": message}


def error_response(message: str = "Error", data: Any = None) -> dict:
    return {"success": False, "data": data, "message": message}


def outcome_response(outcome: BulkOutcome) -> dict:
    """Bulk submissions answer 200 either way; `success` mirrors outcome.ok."""
    builder = success_response if outcome.ok else error_response
    return builder(data=outcome.model_dump(exclude={"ok", "message"}), message=outcome.message)
