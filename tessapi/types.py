from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from .text import Text


class PageIteratorLevel(enum.Enum):
  """Granularity at which a result iterator advances.

  The levels are strictly nested: every symbol lies in one word, every word
  in one text line, and so on up to the block.
  """

  BLOCK = "block"
  PARA = "para"
  TEXTLINE = "textline"
  WORD = "word"
  SYMBOL = "symbol"


# tesseract::PageIteratorLevel (RIL_BLOCK .. RIL_SYMBOL)
_ENGINE_CODES: dict[PageIteratorLevel, int] = {
    PageIteratorLevel.BLOCK: 0,
    PageIteratorLevel.PARA: 1,
    PageIteratorLevel.TEXTLINE: 2,
    PageIteratorLevel.WORD: 3,
    PageIteratorLevel.SYMBOL: 4,
}


def coerce_level(level: PageIteratorLevel | str) -> PageIteratorLevel:
  """Accepts a level or its string value ("word", "textline", ...)."""
  if isinstance(level, PageIteratorLevel):
    return level
  try:
    return PageIteratorLevel(str(level).lower())
  except ValueError:
    raise ValueError(
        f"Unknown level: {level!r} (expected one of "
        f"{', '.join(m.value for m in PageIteratorLevel)})"
    ) from None


def engine_code(level: PageIteratorLevel | str) -> int:
  """Engine integer code for `level`; only the binding boundary uses it."""
  return _ENGINE_CODES[coerce_level(level)]


@dataclass(frozen=True)
class BoundingRect:
  """Axis-aligned box in image pixels, origin at the top-left corner."""

  left: int
  top: int
  right: int
  bottom: int

  @property
  def width(self) -> int:
    return self.right - self.left

  @property
  def height(self) -> int:
    return self.bottom - self.top

  def as_tuple(self) -> tuple[int, int, int, int]:
    return (self.left, self.top, self.right, self.bottom)


@dataclass(frozen=True)
class ResultItem:
  """One layout element produced by a result iterator sequence.

  Attributes:
    text: Engine text for the element, or None when the engine returned a
      null string.
    confidence: Engine confidence in its native range (0.0 - 100.0).
    bounding_rect: Element box, or None when the engine has no geometry for
      this position.
    level: Level of the sequence that produced the item.
  """

  text: Text | None
  confidence: float
  bounding_rect: BoundingRect | None
  level: PageIteratorLevel


@dataclass
class RecognizeResult:
  """Recognition output of the pipeline.

  Attributes:
    text: Page texts joined with form feeds.
    mean_confidence: Mean element confidence in [0,1]; 0.0 without elements.
    engine: Engine name and version, e.g. "tesseract 5.3.4".
    elements: One JSON-friendly dict per element with the keys page, level,
      text, confidence and bbox.
    meta: Arbitrary metadata such as pages, elapsed_ms, lang.
  """

  text: str
  mean_confidence: float
  engine: str
  elements: list[dict[str, Any]]
  meta: dict[str, Any]
