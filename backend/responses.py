"""JSON envelopes shared by every endpoint."""

from typing import Any, Dict, List, Optional


def ok(data: Any = None, message: str = "OK", **extra) -> Dict:
    body = {"success": True, "message": message, "data": data}
    body.update(extra)
    return body


def error_body(message: str, error: Optional[str] = None, errors: Optional[List[Dict]] = None) -> Dict:
    body = {"success": False, "message": message, "error": error or message}
    if errors:
        body["errors"] = errors
    return body
