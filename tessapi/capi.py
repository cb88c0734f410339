"""Binding to the Tesseract C API.

`TessEngine` is the narrow interface the result iterator and Text consume;
`CTessEngine` implements it (plus the base-API calls the session needs) on
top of libtesseract through ctypes. Handles and string pointers cross this
boundary as plain ints; levels as the engine's integer codes.
"""

from __future__ import annotations

import ctypes
from ctypes import POINTER, c_char_p, c_float, c_int, c_size_t, c_void_p
from typing import Protocol

from . import libload


class TessEngine(Protocol):
  """Engine calls used by ResultIterator and Text."""

  def result_iterator_delete(self, handle: int) -> None:
    ...

  def result_iterator_confidence(self, handle: int, level: int) -> float:
    ...

  def result_iterator_get_page_iterator_const(self, handle: int) -> int:
    ...

  def page_iterator_is_at_beginning_of(self, page: int, level: int) -> int:
    ...

  def page_iterator_is_at_final_element(
      self, page: int, level: int, element: int
  ) -> int:
    ...

  def page_iterator_bounding_box(
      self, page: int, level: int
  ) -> tuple[int, int, int, int, int]:
    """Returns (ok, left, top, right, bottom); ok is falsy without a box."""
    ...

  def result_iterator_next(self, handle: int, level: int) -> int:
    ...

  def result_iterator_get_utf8_text(self, handle: int, level: int) -> int | None:
    ...

  def delete_text(self, pointer: int) -> None:
    ...

  def text_length(self, pointer: int) -> int:
    """Length of a NUL-terminated buffer, terminator excluded."""
    ...


# (name, restype, argtypes)
_SIGNATURES: list[tuple[str, object, list[object]]] = [
    ("TessVersion", c_char_p, []),
    ("TessDeleteText", None, [c_void_p]),
    ("TessBaseAPICreate", c_void_p, []),
    ("TessBaseAPIDelete", None, [c_void_p]),
    ("TessBaseAPIEnd", None, [c_void_p]),
    ("TessBaseAPIInit3", c_int, [c_void_p, c_char_p, c_char_p]),
    ("TessBaseAPISetPageSegMode", None, [c_void_p, c_int]),
    ("TessBaseAPISetImage", None, [c_void_p, c_char_p, c_int, c_int, c_int, c_int]),
    ("TessBaseAPISetSourceResolution", None, [c_void_p, c_int]),
    ("TessBaseAPIRecognize", c_int, [c_void_p, c_void_p]),
    ("TessBaseAPIGetIterator", c_void_p, [c_void_p]),
    ("TessBaseAPIGetUTF8Text", c_void_p, [c_void_p]),
    ("TessBaseAPIMeanTextConf", c_int, [c_void_p]),
    ("TessResultIteratorDelete", None, [c_void_p]),
    ("TessResultIteratorConfidence", c_float, [c_void_p, c_int]),
    ("TessResultIteratorGetPageIteratorConst", c_void_p, [c_void_p]),
    ("TessResultIteratorNext", c_int, [c_void_p, c_int]),
    # c_void_p rather than c_char_p: the raw address is needed to free it.
    ("TessResultIteratorGetUTF8Text", c_void_p, [c_void_p, c_int]),
    ("TessPageIteratorIsAtBeginningOf", c_int, [c_void_p, c_int]),
    ("TessPageIteratorIsAtFinalElement", c_int, [c_void_p, c_int, c_int]),
    (
        "TessPageIteratorBoundingBox",
        c_int,
        [c_void_p, c_int, POINTER(c_int), POINTER(c_int), POINTER(c_int), POINTER(c_int)],
    ),
]


def _declare(lib: ctypes.CDLL) -> None:
  for name, restype, argtypes in _SIGNATURES:
    fn = getattr(lib, name)
    fn.restype = restype
    fn.argtypes = argtypes


class CTessEngine:
  """TessEngine backed by libtesseract."""

  def __init__(
      self, lib: ctypes.CDLL | None = None, libc: ctypes.CDLL | None = None
  ) -> None:
    self._lib = lib if lib is not None else libload.load_tesseract()
    _declare(self._lib)
    libc = libc if libc is not None else libload.load_libc()
    self._strlen = libc.strlen
    self._strlen.restype = c_size_t
    self._strlen.argtypes = [c_void_p]

  def version(self) -> str:
    return self._lib.TessVersion().decode("utf-8", errors="replace")

  # Strings

  def delete_text(self, pointer: int) -> None:
    self._lib.TessDeleteText(pointer)

  def text_length(self, pointer: int) -> int:
    return self._strlen(pointer)

  # Result / page iterators

  def result_iterator_delete(self, handle: int) -> None:
    self._lib.TessResultIteratorDelete(handle)

  def result_iterator_confidence(self, handle: int, level: int) -> float:
    return self._lib.TessResultIteratorConfidence(handle, level)

  def result_iterator_get_page_iterator_const(self, handle: int) -> int:
    return self._lib.TessResultIteratorGetPageIteratorConst(handle)

  def page_iterator_is_at_beginning_of(self, page: int, level: int) -> int:
    return self._lib.TessPageIteratorIsAtBeginningOf(page, level)

  def page_iterator_is_at_final_element(
      self, page: int, level: int, element: int
  ) -> int:
    return self._lib.TessPageIteratorIsAtFinalElement(page, level, element)

  def page_iterator_bounding_box(
      self, page: int, level: int
  ) -> tuple[int, int, int, int, int]:
    left, top, right, bottom = c_int(0), c_int(0), c_int(0), c_int(0)
    ok = self._lib.TessPageIteratorBoundingBox(
        page,
        level,
        ctypes.byref(left),
        ctypes.byref(top),
        ctypes.byref(right),
        ctypes.byref(bottom),
    )
    return ok, left.value, top.value, right.value, bottom.value

  def result_iterator_next(self, handle: int, level: int) -> int:
    return self._lib.TessResultIteratorNext(handle, level)

  def result_iterator_get_utf8_text(self, handle: int, level: int) -> int | None:
    return self._lib.TessResultIteratorGetUTF8Text(handle, level)

  # Base API

  def base_api_create(self) -> int | None:
    return self._lib.TessBaseAPICreate()

  def base_api_delete(self, handle: int) -> None:
    self._lib.TessBaseAPIDelete(handle)

  def base_api_end(self, handle: int) -> None:
    self._lib.TessBaseAPIEnd(handle)

  def base_api_init(self, handle: int, datapath: str | None, lang: str) -> int:
    path = datapath.encode("utf-8") if datapath else None
    return self._lib.TessBaseAPIInit3(handle, path, lang.encode("utf-8"))

  def base_api_set_page_seg_mode(self, handle: int, mode: int) -> None:
    self._lib.TessBaseAPISetPageSegMode(handle, mode)

  def base_api_set_image(
      self,
      handle: int,
      data: bytes,
      width: int,
      height: int,
      bytes_per_pixel: int,
      bytes_per_line: int,
  ) -> None:
    self._lib.TessBaseAPISetImage(
        handle, data, width, height, bytes_per_pixel, bytes_per_line
    )

  def base_api_set_source_resolution(self, handle: int, ppi: int) -> None:
    self._lib.TessBaseAPISetSourceResolution(handle, ppi)

  def base_api_recognize(self, handle: int) -> int:
    return self._lib.TessBaseAPIRecognize(handle, None)

  def base_api_get_iterator(self, handle: int) -> int | None:
    return self._lib.TessBaseAPIGetIterator(handle)

  def base_api_get_utf8_text(self, handle: int) -> int | None:
    return self._lib.TessBaseAPIGetUTF8Text(handle)

  def base_api_mean_text_conf(self, handle: int) -> int:
    return self._lib.TessBaseAPIMeanTextConf(handle)


_default_engine: CTessEngine | None = None


def default_engine() -> CTessEngine:
  """Process-wide CTessEngine, created on first use."""
  global _default_engine
  if _default_engine is None:
    _default_engine = CTessEngine()
  return _default_engine
