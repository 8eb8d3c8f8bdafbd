"""Result model for one extraction request.

``AttemptResult`` is immutable once built. The orchestrator builds exactly
one per request, from the last attempt that ran.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of an extraction request.

    When ``success`` is true, ``raw_value`` is a finite non-negative float and
    ``solde_data``/``raw_value``/``unit``/``method`` all come from the same
    strategy match.
    """

    success: bool
    phone_number: str
    solde_data: str | None = None
    raw_value: float = 0.0
    unit: str = "Mo"
    method: str = "none"
    diagnostic_snapshot: bytes | None = None
    error: str | None = None
    trace: str | None = None
    page_preview: str | None = None
    attempts: int = 0
    execution_time_ms: int = 0
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def screenshot_b64(self) -> str | None:
        """Base64 PNG of the diagnostic snapshot, as carried in JSON responses."""
        if self.diagnostic_snapshot is None:
            return None
        return base64.b64encode(self.diagnostic_snapshot).decode("ascii")

    def to_response(self, *, include_screenshot: bool = True) -> dict[str, Any]:
        """Serialize to the outbound response shape.

        Success and failure produce different key sets; the HTTP layer returns
        this dict as-is.
        """
        timestamp = self.timestamp.isoformat()
        if self.success:
            body: dict[str, Any] = {
                "success": True,
                "phone_number": self.phone_number,
                "solde_data": self.solde_data,
                "raw_value": self.raw_value,
                "unit": self.unit,
                "extraction_method": self.method,
                "timestamp": timestamp,
                "execution_time_ms": self.execution_time_ms,
            }
            if include_screenshot and self.diagnostic_snapshot is not None:
                body["screenshot"] = self.screenshot_b64
            return body

        body = {
            "success": False,
            "error": self.error,
            "phone_number": self.phone_number,
            "timestamp": timestamp,
            "execution_time_ms": self.execution_time_ms,
        }
        debug: dict[str, Any] = {}
        if self.page_preview is not None:
            debug["page_content_preview"] = self.page_preview
        if self.trace:
            debug["stack"] = self.trace
        if include_screenshot and self.diagnostic_snapshot is not None:
            debug["screenshot"] = self.screenshot_b64
        if debug:
            body["debug"] = debug
        return body

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_response(), indent=indent, default=str)
