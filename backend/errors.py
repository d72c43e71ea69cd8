"""Service-layer exceptions, translated into HTTP responses by main.py."""

from typing import Dict, List, Optional


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class ValidationFailed(ServiceError):
    """Business-rule validation failure carrying per-field messages."""

    status_code = 400

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        self.errors = errors
        if message is None:
            message = "; ".join(f"{e['field']}: {e['message']}" for e in errors) or "Validation failed"
        super().__init__(message)


class UpstreamError(ServiceError):
    status_code = 502
