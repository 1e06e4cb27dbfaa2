from typing import Any, Optional

import httpx

UNKNOWN_ERROR = "Unknown error"


def extract_error_message(payload: Any, default: str = UNKNOWN_ERROR) -> str:
    """Pull a readable message out of a Directus or Supabase error body."""
    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            msg = errors[0].get("message")
            if msg:
                return str(msg)
        for key in ("msg", "message", "error_description", "error"):
            msg = payload.get(key)
            if msg and isinstance(msg, str):
                return msg
    elif isinstance(payload, str) and payload.strip():
        return payload.strip()
    return default


class BackendError(Exception):
    def __init__(self, status_code: int, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload

    @classmethod
    def from_response(cls, resp: httpx.Response) -> "BackendError":
        try:
            payload: Optional[Any] = resp.json()
        except ValueError:
            payload = resp.text
        return cls(resp.status_code, extract_error_message(payload), payload)


def raise_for_backend(resp: httpx.Response) -> None:
    if resp.is_error:
        raise BackendError.from_response(resp)
