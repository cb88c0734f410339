"""Ownership of strings allocated by the engine."""

from __future__ import annotations

import ctypes
import functools
import json
import weakref
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
  from .capi import TessEngine


@functools.lru_cache(maxsize=256)
def _pinned_array(length: int) -> type:
  # A view exported by an instance holds the instance, which holds its Text.
  return type(f"_TextBytes{length}", (ctypes.c_char * length,), {"_owner": None})


class Text:
  """Owner of a NUL-terminated byte buffer returned by the engine.

  The buffer is released with the engine's own deallocator exactly once:
  on `close()`, when leaving a `with` block, or when the object is garbage
  collected, whichever comes first. Text is never mutated, so it may be
  handed to another thread.
  """

  __slots__ = ("_pointer", "_engine", "_finalizer", "__weakref__")

  def __init__(self, pointer: int, engine: TessEngine) -> None:
    if not pointer:
      raise ValueError("Text requires a non-null engine string pointer")
    self._pointer = pointer
    self._engine = engine
    self._finalizer = weakref.finalize(self, engine.delete_text, pointer)

  @classmethod
  def wrap(cls, pointer: int, engine: TessEngine) -> Text:
    """Takes ownership of `pointer`.

    The caller asserts that `pointer` came from one of the engine's
    text-returning calls and that nothing else will free it. Neither can be
    checked here; breaking either corrupts the engine's heap.
    """
    return cls(pointer, engine)

  @property
  def closed(self) -> bool:
    return not self._finalizer.alive

  def close(self) -> None:
    """Releases the buffer. Further calls are no-ops."""
    self._finalizer()

  def borrow(self) -> memoryview:
    """Read-only view of the bytes, terminator excluded. No copy is made.

    The view keeps this Text alive, but an explicit `close()` still frees
    the buffer underneath it.
    """
    if self.closed:
      raise ValueError("I/O operation on closed Text")
    length = self._engine.text_length(self._pointer)
    buf = _pinned_array(length).from_address(self._pointer)
    buf._owner = self
    return memoryview(buf).cast("B").toreadonly()

  def __bytes__(self) -> bytes:
    return self.borrow().tobytes()

  def __str__(self) -> str:
    return bytes(self).decode("utf-8", errors="replace")

  def __repr__(self) -> str:
    if self.closed:
      return "Text(<closed>)"
    try:
      decoded = bytes(self).decode("utf-8")
    except UnicodeDecodeError:
      return "Text(<invalid UTF-8>)"
    return f"Text({json.dumps(decoded, ensure_ascii=False)})"

  def __enter__(self) -> Text:
    return self

  def __exit__(self, *exc: Any) -> None:
    self.close()
