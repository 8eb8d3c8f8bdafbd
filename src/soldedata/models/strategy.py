"""Selector candidates and extraction strategy descriptors.

Candidate order encodes decreasing confidence: the first selector that
resolves wins and the rest are never tried.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Phone-number input candidates, most specific first.
INPUT_SELECTORS: tuple[str, ...] = (
    'input[type="tel"]',
    'input[name*="phone"]',
    'input[name*="numero"]',
    'input[name*="msisdn"]',
    'input[placeholder*="numéro"]',
    'input[placeholder*="phone"]',
    'input[id*="phone"]',
    'input[id*="numero"]',
)

# Submit control candidates, explicit submit types before class heuristics.
BUTTON_SELECTORS: tuple[str, ...] = (
    'button[type="submit"]',
    'input[type="submit"]',
    "button.btn-primary",
    "button.submit-btn",
    'button[class*="submit"]',
    'button[class*="validate"]',
    'button[class*="confirm"]',
)


# Unit the portal reports balances in.
BALANCE_UNIT = "Mo"


class ExtractionMethod(str, Enum):
    """Tag recording which strategy produced a balance value."""

    FULL_TEXT = "regex_full_text"
    ELEMENT_SCAN = "regex_element"
    ATTRIBUTE_SCAN = "class_id_search"
    NONE = "none"


@dataclass(frozen=True)
class BalanceMatch:
    """A single strategy hit: normalized decimal string, parsed value and unit."""

    text_value: str
    raw_value: float
    unit: str

    @property
    def solde_data(self) -> str:
        return f"{self.text_value}{self.unit}"


@dataclass(frozen=True)
class ExtractionOutcome:
    """Result of running the extraction strategies against one page."""

    found: bool
    method: ExtractionMethod = ExtractionMethod.NONE
    match: BalanceMatch | None = None
    page_preview: str | None = None

    @property
    def solde_data(self) -> str | None:
        return self.match.solde_data if self.match else None

    @property
    def raw_value(self) -> float:
        return self.match.raw_value if self.match else 0.0

    @property
    def unit(self) -> str:
        return self.match.unit if self.match else BALANCE_UNIT
