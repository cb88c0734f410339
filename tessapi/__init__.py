"""Safe wrapper around the Tesseract C API.

Engine-allocated strings are owned by `Text`; the engine's result iterator
is owned by `ResultIterator`, which lends itself to one lazy
`ResultIteratorSequence` at a time.
"""

from __future__ import annotations

from .errors import BorrowError, EngineError, LibraryNotFoundError, TessError
from .result_iterator import ResultIterator, ResultIteratorSequence
from .text import Text
from .types import BoundingRect, PageIteratorLevel, RecognizeResult, ResultItem

__all__ = [
    "BorrowError",
    "BoundingRect",
    "EngineError",
    "LibraryNotFoundError",
    "PageIteratorLevel",
    "RecognizeResult",
    "ResultItem",
    "ResultIterator",
    "ResultIteratorSequence",
    "TessError",
    "Text",
]
