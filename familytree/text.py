"""Card sizing.

There is no real font metrics engine here: text width is estimated from the
character count. The per-character widths must stay wider than what the
renderer actually draws, otherwise cards overlap on screen. Swap
``estimate_text_width`` for a real measurement where one is available;
placement code only sees the resulting widths.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .config import LayoutConfig
from .models import Person


@dataclass(frozen=True)
class CardFont:
    size_px: float
    weight: int
    # Average advance per character, padded for bold glyphs.
    char_width: float


COMPACT_FONT = CardFont(size_px=8, weight=600, char_width=10.5)
FOCUS_FONT = CardFont(size_px=12, weight=600, char_width=13.0)

TextMeasure = Callable[[str, CardFont], float]


def estimate_text_width(text: str, font: CardFont) -> float:
    return len(text or "") * font.char_width


def card_size(
    person: Person,
    font: CardFont,
    config: LayoutConfig,
    measure: TextMeasure = estimate_text_width,
) -> tuple[float, float]:
    """Return ``(width, height)`` for *person*'s card."""

    width = max(config.min_card_width, measure(person.name, font) + config.card_padding)
    height = config.base_card_height
    if person.birth_date:
        height += config.birth_line_height
    return width, height
