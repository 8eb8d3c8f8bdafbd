"""Balance extraction from the rendered result page.

The page text is collected in a single evaluation and handed to three pure
strategies, tried in order; the first hit wins and later strategies are not
run:

1. ``regex_full_text`` — anchored phrase over the whole ``innerText``.
2. ``regex_element``   — same pattern, element by element, for values split
   across element boundaries in the concatenated text.
3. ``class_id_search`` — bare ``<number> Mo`` inside elements whose class or
   id mentions ``data`` or ``balance``.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from playwright.async_api import Page

from soldedata.models.strategy import BALANCE_UNIT, BalanceMatch, ExtractionMethod, ExtractionOutcome

logger = logging.getLogger(__name__)

_NUMBER = r"([0-9]+[,.]?[0-9]*)"

ANCHORED_PATTERN = re.compile(
    r"Volume\s+internet\s+disponible\s*:?\s*" + _NUMBER + r"\s*(Mo)",
    re.IGNORECASE,
)
BARE_PATTERN = re.compile(_NUMBER + r"\s*(Mo)\b", re.IGNORECASE)

ELEMENT_SELECTOR = "div, p, span, td, li"
ATTRIBUTE_SELECTOR = '[class*="data"], [class*="balance"], [id*="data"], [id*="balance"]'

_COLLECT_TEXT_JS = """
({ elementSel, attributeSel }) => {
    const texts = (sel) => Array.from(document.querySelectorAll(sel), el => el.textContent || "");
    return {
        body: document.body ? (document.body.innerText || "") : "",
        elements: texts(elementSel),
        attributes: texts(attributeSel),
    };
}
"""


@dataclass(frozen=True)
class PageText:
    """Text views of the rendered page, collected in one evaluation."""

    body: str = ""
    elements: Sequence[str] = field(default_factory=tuple)
    attributes: Sequence[str] = field(default_factory=tuple)


def parse_balance(number: str, unit: str = BALANCE_UNIT) -> BalanceMatch | None:
    """Normalize a comma decimal separator and parse *number*.

    Returns ``None`` when the token is not a finite non-negative number.
    """
    text_value = number.replace(",", ".", 1)
    try:
        value = float(text_value)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return BalanceMatch(text_value=text_value, raw_value=value, unit=unit)


def _search(pattern: re.Pattern[str], texts: Iterable[str]) -> BalanceMatch | None:
    for text in texts:
        m = pattern.search(text or "")
        if not m:
            continue
        parsed = parse_balance(m.group(1))
        if parsed is not None:
            return parsed
    return None


def match_full_text(page_text: PageText) -> BalanceMatch | None:
    return _search(ANCHORED_PATTERN, [page_text.body])


def match_elements(page_text: PageText) -> BalanceMatch | None:
    return _search(ANCHORED_PATTERN, page_text.elements)


def match_attribute_heuristic(page_text: PageText) -> BalanceMatch | None:
    return _search(BARE_PATTERN, page_text.attributes)


Strategy = Callable[[PageText], BalanceMatch | None]

STRATEGIES: tuple[tuple[ExtractionMethod, Strategy], ...] = (
    (ExtractionMethod.FULL_TEXT, match_full_text),
    (ExtractionMethod.ELEMENT_SCAN, match_elements),
    (ExtractionMethod.ATTRIBUTE_SCAN, match_attribute_heuristic),
)


def extract_balance(page_text: PageText, *, preview_chars: int = 1_000) -> ExtractionOutcome:
    """Run the strategies over *page_text*; first hit wins.

    On a miss the outcome carries the first *preview_chars* characters of
    the page text for diagnosis.
    """
    for method, strategy in STRATEGIES:
        match = strategy(page_text)
        if match is not None:
            return ExtractionOutcome(found=True, method=method, match=match)
    return ExtractionOutcome(
        found=False,
        method=ExtractionMethod.NONE,
        page_preview=page_text.body[:preview_chars],
    )


class ContentExtractor:
    """Collect the page text and recover the balance from it."""

    def __init__(self, *, preview_chars: int = 1_000) -> None:
        self.preview_chars = preview_chars

    async def read_page(self, page: Page) -> PageText:
        payload = await page.evaluate(
            _COLLECT_TEXT_JS,
            {"elementSel": ELEMENT_SELECTOR, "attributeSel": ATTRIBUTE_SELECTOR},
        )
        return PageText(
            body=payload.get("body") or "",
            elements=tuple(payload.get("elements") or ()),
            attributes=tuple(payload.get("attributes") or ()),
        )

    async def extract(self, page: Page, *, preview_chars: int | None = None) -> ExtractionOutcome:
        page_text = await self.read_page(page)
        limit = preview_chars if preview_chars is not None else self.preview_chars
        outcome = extract_balance(page_text, preview_chars=limit)
        if outcome.found:
            logger.info("Balance %s found via %s", outcome.solde_data, outcome.method.value)
        else:
            logger.warning("Balance not found on the page (%d chars of text)", len(page_text.body))
        return outcome
