"""Attempt orchestrator — state machine that drives balance extraction.

One request runs up to ``max_attempts`` sequential attempts. Each attempt
gets a fresh ``BrowserSession`` (a corrupted session never leaks into a
retry) and walks through::

    ACQUIRING → LOCATING → FILLING → SUBMITTING → WAITING → EXTRACTING

A fault at any stage sends the machine to RETRYING (after a fixed backoff)
or, once attempts are exhausted, to FAILED. A page that was reached and
submitted but shows no balance ends in FAILED without a retry. The browser
is released on every exit path before the next attempt starts or the result
is returned.
"""

from __future__ import annotations

import asyncio
import logging
import time
import traceback
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from playwright.async_api import Page

from soldedata.browser.extractor import ContentExtractor
from soldedata.browser.locator import ElementLocator
from soldedata.browser.session import BrowserSession
from soldedata.browser.submitter import FormSubmitter, SubmitMethod
from soldedata.exceptions import GenericFailure, SoldeError
from soldedata.models.results import AttemptResult
from soldedata.models.session import ScrapeOptions, SessionConfig
from soldedata.models.states import (
    FAULTABLE_STATES,
    STATE_TRANSITIONS,
    TERMINAL_STATES,
    AttemptState,
)
from soldedata.models.strategy import ExtractionOutcome
from soldedata.scraper.emitter import LogEmitter, LoggerEmitter
from soldedata.settings import Settings, get_settings

logger = logging.getLogger(__name__)

NOT_FOUND_ERROR = "Data balance not found on the page"

Sleep = Callable[[float], Awaitable[None]]
SessionFactory = Callable[[SessionConfig], BrowserSession]


@dataclass
class _AttemptRecord:
    """What one attempt produced: an extraction outcome or a fault."""

    outcome: ExtractionOutcome | None = None
    fault: SoldeError | None = None
    trace: str | None = None
    snapshot: bytes | None = None


class AttemptOrchestrator:
    """Drive extraction attempts for a single request.

    Instances hold per-request state; build a new one for every request.

    Args:
        session_factory: Builds a ``BrowserSession`` for an attempt.
        locator: Resolves and fills the phone-number input.
        submitter: Submits the lookup form and waits for the result.
        extractor: Reads the balance off the result page.
        emitter: Log capability used for every stage transition and failure.
        sleep: Awaitable delay in seconds, used for the retry backoff and
            the pre-submit pause.
        clock: Monotonic clock in seconds, used for execution time.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory = BrowserSession,
        locator: ElementLocator | None = None,
        submitter: FormSubmitter | None = None,
        extractor: ContentExtractor | None = None,
        emitter: LogEmitter | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session_factory = session_factory
        self._locator = locator or ElementLocator()
        self._submitter = submitter or FormSubmitter(sleep=sleep)
        self._extractor = extractor or ContentExtractor()
        self._emitter = emitter or LoggerEmitter()
        self._sleep = sleep
        self._clock = clock

        self._state = AttemptState.IDLE
        self.history: list[AttemptState] = []

    @property
    def state(self) -> AttemptState:
        return self._state

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self, phone_number: str, config: SessionConfig) -> AttemptResult:
        """Extract the data balance for *phone_number*.

        Never raises for pipeline faults: the caller always gets an
        ``AttemptResult``.
        """
        started = self._clock()
        self._state = AttemptState.IDLE
        self.history = [AttemptState.IDLE]

        record = _AttemptRecord()
        attempt = 0
        while attempt < config.max_attempts:
            attempt += 1
            self._emit(
                logging.INFO,
                f"Attempt {attempt}/{config.max_attempts}",
                phone_number=phone_number,
            )
            record = await self._attempt(phone_number, config)

            if record.fault is None:
                break

            self._emit(
                logging.ERROR,
                f"Attempt {attempt} failed during {self._state.value}: {record.fault}",
                error_type=type(getattr(record.fault, "cause", record.fault)).__name__,
            )
            if attempt >= config.max_attempts:
                break
            self._transition(AttemptState.RETRYING)
            self._emit(logging.INFO, f"Retrying in {config.retry_backoff_sec:.1f}s")
            await self._sleep(config.retry_backoff_sec)

        elapsed_ms = int((self._clock() - started) * 1000)
        return self._build_result(phone_number, record, attempt, elapsed_ms, config)

    # ------------------------------------------------------------------
    # One attempt
    # ------------------------------------------------------------------

    async def _attempt(self, phone_number: str, config: SessionConfig) -> _AttemptRecord:
        """Run one acquire → extract → release cycle; faults are returned, not raised."""
        session = self._session_factory(config)
        snapshot: bytes | None = None
        self._transition(AttemptState.ACQUIRING)
        try:
            async with session as page:
                try:
                    outcome = await self._drive(page, phone_number, config)
                finally:
                    # Taken before the session is released, on success and failure alike.
                    snapshot = await self._snapshot(session, config)
        except Exception as exc:
            fault = exc if isinstance(exc, SoldeError) else GenericFailure(self._state.value, exc)
            return _AttemptRecord(fault=fault, trace=traceback.format_exc(), snapshot=snapshot)
        return _AttemptRecord(outcome=outcome, snapshot=snapshot)

    async def _drive(self, page: Page, phone_number: str, config: SessionConfig) -> ExtractionOutcome:
        """Locate, fill, submit, wait and extract on an acquired page."""
        self._transition(AttemptState.LOCATING)
        located = await self._locator.locate(page, timeout_ms=config.selector_timeout_ms)
        self._emit(logging.INFO, "Phone number input located", selector=located.selector)

        self._transition(AttemptState.FILLING)
        await self._locator.fill(page, located.selector, phone_number, delay_ms=config.type_delay_ms)
        await self._sleep(config.pre_submit_delay_ms / 1000)

        self._transition(AttemptState.SUBMITTING)
        method, navigated = await self._submitter.submit_and_wait(
            page,
            located.selector,
            navigation_wait_ms=config.navigation_wait_ms,
            wait_after_click_ms=config.wait_after_click_ms,
            settle_delay_ms=config.settle_delay_ms,
            on_submitted=lambda _method: self._transition(AttemptState.WAITING),
        )
        self._emit(logging.INFO, "Form submitted", method=method.value, navigated=navigated)
        if method == SubmitMethod.NONE and not navigated:
            # Extraction still runs; a miss is the expected consequence.
            self._emit(logging.WARNING, "Submission had no observable effect")

        self._transition(AttemptState.EXTRACTING)
        return await self._extractor.extract(page, preview_chars=config.page_preview_chars)

    async def _snapshot(self, session: BrowserSession, config: SessionConfig) -> bytes | None:
        if not config.include_screenshot:
            return None
        try:
            return await session.snapshot()
        except Exception as e:
            logger.warning("Failed to capture diagnostic snapshot: %s", e)
            return None

    # ------------------------------------------------------------------
    # Result assembly
    # ------------------------------------------------------------------

    def _build_result(
        self,
        phone_number: str,
        record: _AttemptRecord,
        attempts: int,
        elapsed_ms: int,
        config: SessionConfig,
    ) -> AttemptResult:
        common: dict[str, Any] = {
            "phone_number": phone_number,
            "diagnostic_snapshot": record.snapshot,
            "attempts": attempts,
            "execution_time_ms": elapsed_ms,
            "timestamp": datetime.now(timezone.utc),
        }

        if record.fault is not None:
            self._transition(AttemptState.FAILED)
            self._emit(
                logging.ERROR,
                f"Extraction failed after {attempts} attempt(s)",
                error=str(record.fault),
            )
            return AttemptResult(success=False, error=str(record.fault), trace=record.trace, **common)

        outcome = record.outcome
        if outcome is None or not outcome.found:
            self._transition(AttemptState.FAILED)
            preview = outcome.page_preview if outcome else None
            self._emit(logging.WARNING, NOT_FOUND_ERROR, page_preview=(preview or "")[:200])
            return AttemptResult(success=False, error=NOT_FOUND_ERROR, page_preview=preview, **common)

        self._transition(AttemptState.SUCCEEDED)
        self._emit(
            logging.INFO,
            "Extraction succeeded",
            solde=outcome.solde_data,
            method=outcome.method.value,
        )
        return AttemptResult(
            success=True,
            solde_data=outcome.solde_data,
            raw_value=outcome.raw_value,
            unit=outcome.unit,
            method=outcome.method.value,
            **common,
        )

    # ------------------------------------------------------------------
    # State transitions / logging
    # ------------------------------------------------------------------

    def _transition(self, new_state: AttemptState) -> None:
        """Move to *new_state*, warning on transitions outside the map."""
        old_state = self._state
        allowed = STATE_TRANSITIONS.get(old_state, [])
        fault_exit = old_state in FAULTABLE_STATES and new_state in (AttemptState.RETRYING, AttemptState.FAILED)
        if new_state not in allowed and not fault_exit:
            logger.warning(
                "Non-standard transition: %s → %s (allowed: %s)",
                old_state.value, new_state.value, [s.value for s in allowed],
            )
        if old_state in TERMINAL_STATES:
            logger.warning("Transition out of terminal state %s", old_state.value)

        self._emit(logging.INFO, f"State: {old_state.value} → {new_state.value}")
        self._state = new_state
        self.history.append(new_state)

    def _emit(self, level: int, message: str, **data: Any) -> None:
        self._emitter.emit(level, message, **data)


# ---------------------------------------------------------------------------
# Boundary calls
# ---------------------------------------------------------------------------


async def run_extraction(
    phone_number: str,
    options: ScrapeOptions | None = None,
    *,
    settings: Settings | None = None,
    orchestrator: AttemptOrchestrator | None = None,
) -> AttemptResult:
    """Extract the data balance for an already-validated *phone_number*.

    Args:
        phone_number: 8–15 digits, whitespace already stripped.
        options: Per-request timeout / wait / retry overrides.
        settings: Resolved settings (defaults to ``get_settings()``).
        orchestrator: Pre-built orchestrator (a fresh one per call by default).

    Returns:
        The final ``AttemptResult``; never raises for pipeline faults.
    """
    config = SessionConfig.from_settings(settings or get_settings(), options)
    orchestrator = orchestrator or AttemptOrchestrator()
    return await orchestrator.run(phone_number, config)


def run_extraction_sync(
    phone_number: str,
    options: ScrapeOptions | None = None,
    *,
    settings: Settings | None = None,
) -> AttemptResult:
    """Blocking wrapper around :func:`run_extraction` for the CLI."""
    return asyncio.run(run_extraction(phone_number, options, settings=settings))
