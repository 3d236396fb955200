from typing import Any, Optional


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def failure(error: Any) -> dict:
    return {"success": False, "error": error}
