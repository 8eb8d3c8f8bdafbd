"""Attempt state machine definitions for the extraction pipeline."""

from enum import Enum


class AttemptState(str, Enum):
    """Stages an extraction request moves through."""

    IDLE = "IDLE"
    ACQUIRING = "ACQUIRING"
    LOCATING = "LOCATING"
    FILLING = "FILLING"
    SUBMITTING = "SUBMITTING"
    WAITING = "WAITING"
    EXTRACTING = "EXTRACTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    RETRYING = "RETRYING"


# Terminal states end the request; FAILED is only terminal once attempts are exhausted.
TERMINAL_STATES = {AttemptState.SUCCEEDED, AttemptState.FAILED}

# Any non-terminal browser stage may also fall into RETRYING or FAILED on a fault.
STATE_TRANSITIONS: dict[AttemptState, list[AttemptState]] = {
    AttemptState.IDLE: [AttemptState.ACQUIRING],
    AttemptState.ACQUIRING: [AttemptState.LOCATING],
    AttemptState.LOCATING: [AttemptState.FILLING],
    AttemptState.FILLING: [AttemptState.SUBMITTING],
    AttemptState.SUBMITTING: [AttemptState.WAITING],
    AttemptState.WAITING: [AttemptState.EXTRACTING],
    AttemptState.EXTRACTING: [AttemptState.SUCCEEDED, AttemptState.FAILED],
    AttemptState.RETRYING: [AttemptState.ACQUIRING],
}

# Stages during which a fault sends the machine to RETRYING (or FAILED when exhausted).
FAULTABLE_STATES = {
    AttemptState.ACQUIRING,
    AttemptState.LOCATING,
    AttemptState.FILLING,
    AttemptState.SUBMITTING,
    AttemptState.WAITING,
    AttemptState.EXTRACTING,
}
