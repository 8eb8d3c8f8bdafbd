"""soldedata exception hierarchy.

Only genuine faults are exceptions. A page that loads and submits but shows
no recognisable balance is reported as an ``ExtractionOutcome`` with
``found=False``, never raised.
"""

from __future__ import annotations

from collections.abc import Sequence


class SoldeError(Exception):
    """Base exception for all soldedata faults. Every subclass is retryable."""


class LaunchError(SoldeError):
    """Raised when the browser process cannot be started."""


class NavigationError(SoldeError):
    """Raised when every wait strategy failed to load the portal.

    Attributes:
        url: The URL that could not be reached.
        reason: Short description of the last failure.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Navigation to {url} failed: {reason}")


class ElementNotFound(SoldeError):
    """Raised when none of the phone-number input candidates resolved.

    Attributes:
        candidates: The selectors that were tried, in order.
    """

    def __init__(self, candidates: Sequence[str]) -> None:
        self.candidates = tuple(candidates)
        super().__init__(
            f"Phone number input not found on the page ({len(self.candidates)} selectors tried)"
        )


class GenericFailure(SoldeError):
    """Wraps any unexpected fault raised while an attempt was in flight.

    The message is the cause's own; *stage* is kept for logs.
    """

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)
