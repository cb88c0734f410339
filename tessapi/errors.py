from __future__ import annotations


class TessError(Exception):
  """Base class for errors raised by tessapi."""


class BorrowError(TessError):
  """A result iterator is already lent to a live sequence."""


class EngineError(TessError):
  """The engine reported a failure for a session level call."""


class LibraryNotFoundError(TessError, ImportError):
  """libtesseract could not be located or loaded."""
