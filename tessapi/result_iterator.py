"""Cursor over a completed recognition's layout tree.

The engine positions a fresh cursor on the first element and only moves it
when asked to, so reads always describe the CURRENT element. Python
iterators work the other way round (advance, then produce), which
`ResultIteratorSequence` bridges with a one-step lookahead flag.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any, Iterator

from .errors import BorrowError
from .text import Text
from .types import (
    BoundingRect,
    PageIteratorLevel,
    ResultItem,
    coerce_level,
    engine_code,
)

if TYPE_CHECKING:  # pragma: no cover
  from .capi import TessEngine


class ResultIterator:
  """Exclusive owner of an engine result-iterator handle.

  At most one `ResultIteratorSequence` may be alive per iterator; while it
  is, the cursor can only be moved through that sequence. The handle is
  released exactly once, on `close()`, on leaving a `with` block or when the
  iterator is garbage collected.

  A ResultIterator is meant to be used from the thread that created it.
  """

  def __init__(self, handle: int, engine: TessEngine, owner: Any = None) -> None:
    if not handle:
      raise ValueError("ResultIterator requires a non-null engine handle")
    self._handle = handle
    self._engine = engine
    # Keeps the recognition that owns the layout tree alive.
    self._owner = owner
    self._borrow: object | None = None
    self._finalizer = weakref.finalize(
        self, engine.result_iterator_delete, handle
    )

  @classmethod
  def wrap(
      cls, handle: int, engine: TessEngine, owner: Any = None
  ) -> ResultIterator:
    """Takes exclusive ownership of a raw `TessResultIterator*`.

    The caller asserts that `handle` is non-null, came from a completed
    recognition and will not be freed elsewhere.
    """
    return cls(handle, engine, owner)

  @property
  def closed(self) -> bool:
    return not self._finalizer.alive

  def close(self) -> None:
    """Frees the engine handle. Live sequences become unusable."""
    self._borrow = None
    self._finalizer()

  def __enter__(self) -> ResultIterator:
    return self

  def __exit__(self, *exc: Any) -> None:
    self.close()

  def _checked_handle(self) -> int:
    if self.closed:
      raise ValueError("operation on closed ResultIterator")
    return self._handle

  def _page_iterator(self) -> int:
    # Non-owning view; valid only for the duration of the calling method.
    return self._engine.result_iterator_get_page_iterator_const(
        self._checked_handle()
    )

  def confidence(self, level: PageIteratorLevel | str) -> float:
    return self._engine.result_iterator_confidence(
        self._checked_handle(), engine_code(level)
    )

  def is_at_beginning_of(self, level: PageIteratorLevel | str) -> bool:
    """True if the current element starts its enclosing `level` element."""
    page = self._page_iterator()
    return bool(
        self._engine.page_iterator_is_at_beginning_of(page, engine_code(level))
    )

  def is_at_final_element(
      self,
      level: PageIteratorLevel | str,
      element: PageIteratorLevel | str,
  ) -> bool:
    """True if the current `element` is the last one inside its `level`.

    For example `is_at_final_element(TEXTLINE, WORD)` holds on the last word
    of every line.
    """
    page = self._page_iterator()
    return bool(
        self._engine.page_iterator_is_at_final_element(
            page, engine_code(level), engine_code(element)
        )
    )

  def bounding_rect(self, level: PageIteratorLevel | str) -> BoundingRect | None:
    page = self._page_iterator()
    ok, left, top, right, bottom = self._engine.page_iterator_bounding_box(
        page, engine_code(level)
    )
    if not ok:
      return None
    return BoundingRect(left=left, top=top, right=right, bottom=bottom)

  def utf8_text(self, level: PageIteratorLevel | str) -> Text | None:
    pointer = self._engine.result_iterator_get_utf8_text(
        self._checked_handle(), engine_code(level)
    )
    if not pointer:
      return None
    return Text.wrap(pointer, self._engine)

  def advance(self, level: PageIteratorLevel | str) -> bool:
    """Moves to the next element at `level`; False once there is none."""
    if self._borrow is not None:
      raise BorrowError("ResultIterator is borrowed by a live sequence")
    return self._advance(level)

  def _advance(self, level: PageIteratorLevel | str) -> bool:
    return bool(
        self._engine.result_iterator_next(
            self._checked_handle(), engine_code(level)
        )
    )

  def _acquire(self) -> object:
    self._checked_handle()
    if self._borrow is not None:
      raise BorrowError("ResultIterator is already borrowed by a live sequence")
    token = object()
    self._borrow = token
    return token

  def _release(self, token: object) -> None:
    if self._borrow is token:
      self._borrow = None

  def sequence_at(self, level: PageIteratorLevel | str) -> ResultIteratorSequence:
    """Lends the cursor to a sequence yielding one item per `level` element.

    The first item describes the element the cursor is on now. Raises
    BorrowError if another sequence over this iterator is still alive.
    """
    return ResultIteratorSequence(self, coerce_level(level))

  def words(self) -> ResultIteratorSequence:
    return self.sequence_at(PageIteratorLevel.WORD)

  def symbols(self) -> ResultIteratorSequence:
    return self.sequence_at(PageIteratorLevel.SYMBOL)

  def lines(self) -> ResultIteratorSequence:
    return self.sequence_at(PageIteratorLevel.TEXTLINE)

  def paragraphs(self) -> ResultIteratorSequence:
    return self.sequence_at(PageIteratorLevel.PARA)

  def blocks(self) -> ResultIteratorSequence:
    return self.sequence_at(PageIteratorLevel.BLOCK)

  def __repr__(self) -> str:
    state = "closed" if self.closed else f"handle=0x{self._handle:x}"
    return f"ResultIterator({state})"


class ResultIteratorSequence(Iterator[ResultItem]):
  """Single-use iterator over the elements at one level.

  Holds the exclusive borrow of its ResultIterator until it is closed or
  garbage collected. Exhaustion is cached: once StopIteration has been
  raised the engine is not asked to advance again.

  On an empty recognition the first step still produces one item (with
  whatever the engine reports for the initial position) before stopping;
  callers wanting zero items for an empty page must check for emptiness
  before iterating.
  """

  def __init__(self, iterator: ResultIterator, level: PageIteratorLevel) -> None:
    token = iterator._acquire()
    self._iterator = iterator
    self._level = level
    self._first_step_pending = True
    self._exhausted = False
    self._finalizer = weakref.finalize(self, iterator._release, token)

  @property
  def level(self) -> PageIteratorLevel:
    return self._level

  @property
  def closed(self) -> bool:
    return not self._finalizer.alive

  def close(self) -> None:
    """Gives the cursor back to its ResultIterator."""
    self._finalizer()

  def __enter__(self) -> ResultIteratorSequence:
    return self

  def __exit__(self, *exc: Any) -> None:
    self.close()

  def _checked_iterator(self) -> ResultIterator:
    if self.closed:
      raise ValueError("operation on closed ResultIteratorSequence")
    return self._iterator

  def __iter__(self) -> ResultIteratorSequence:
    return self

  def __next__(self) -> ResultItem:
    # Exhaustion is terminal, even once the iterator is closed.
    if self._exhausted:
      raise StopIteration
    iterator = self._checked_iterator()
    if self._first_step_pending:
      self._first_step_pending = False
    elif not iterator._advance(self._level):
      self._exhausted = True
      raise StopIteration

    text = iterator.utf8_text(self._level)
    confidence = iterator.confidence(self._level)
    bounding_rect = iterator.bounding_rect(self._level)
    return ResultItem(
        text=text,
        confidence=confidence,
        bounding_rect=bounding_rect,
        level=self._level,
    )

  def is_at_beginning_of(self, level: PageIteratorLevel | str) -> bool:
    return self._checked_iterator().is_at_beginning_of(level)

  def is_at_final_element(
      self,
      level: PageIteratorLevel | str,
      element: PageIteratorLevel | str,
  ) -> bool:
    return self._checked_iterator().is_at_final_element(level, element)

  def bounding_rect(self, level: PageIteratorLevel | str) -> BoundingRect | None:
    return self._checked_iterator().bounding_rect(level)

  def confidence(self, level: PageIteratorLevel | str) -> float:
    return self._checked_iterator().confidence(level)

  def utf8_text(self, level: PageIteratorLevel | str) -> Text | None:
    return self._checked_iterator().utf8_text(level)

  def __repr__(self) -> str:
    return (
        f"ResultIteratorSequence(level={self._level.value}, "
        f"exhausted={self._exhausted})"
    )
