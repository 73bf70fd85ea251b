"""Base exception for use-case failures that map onto an HTTP status."""
from __future__ import annotations


class ServiceError(Exception):
    def __init__(self, message: str, code: str = "invalid", status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def to_response(self) -> dict:
        return {"message": self.message, "error": self.code}
