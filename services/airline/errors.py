"""Exceptions raised by the airline backend adapters."""

from __future__ import annotations

from typing import Any, Optional


class AirlineBackendError(Exception):
    """Base class for partner backend failures."""


class BackendRejected(AirlineBackendError):
    """The backend answered with an error status (validation or business rule)."""

    def __init__(self, status_code: Optional[int], error_body: Any = None) -> None:
        super().__init__(f"Backend rejected request with status {status_code}")
        self.status_code = status_code
        self.error_body = error_body


class BackendUnavailable(AirlineBackendError):
    """No usable answer: network failure, timeout, bad token exchange, or malformed body."""
