from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import sys

from .errors import LibraryNotFoundError

logger = logging.getLogger(__name__)

LIBRARY_ENV = "TESSAPI_LIBRARY"

_CANDIDATES: dict[str, list[str]] = {
    "linux": ["libtesseract.so.5", "libtesseract.so.4", "libtesseract.so"],
    "darwin": [
        "libtesseract.5.dylib",
        "libtesseract.dylib",
        "/opt/homebrew/lib/libtesseract.dylib",
        "/usr/local/lib/libtesseract.dylib",
    ],
    "win32": ["libtesseract-5.dll", "libtesseract-4.dll", "tesseract55.dll"],
}


def _platform_key() -> str:
  if sys.platform.startswith("linux"):
    return "linux"
  return sys.platform


def candidate_names() -> list[str]:
  """Library names to try, in order: env override, ctypes lookup, defaults."""
  names: list[str] = []
  override = os.getenv(LIBRARY_ENV, "").strip()
  if override:
    names.append(override)
  found = ctypes.util.find_library("tesseract")
  if found:
    names.append(found)
  names.extend(_CANDIDATES.get(_platform_key(), []))
  return names


def load_tesseract() -> ctypes.CDLL:
  errors: list[str] = []
  for name in candidate_names():
    try:
      lib = ctypes.CDLL(name)
    except OSError as e:
      errors.append(f"{name}: {e}")
      continue
    logger.debug("Loaded libtesseract from %s", name)
    return lib
  raise LibraryNotFoundError(
      "libtesseract not found. Install the tesseract system package "
      f"(e.g. apt install libtesseract-dev) or set {LIBRARY_ENV}. "
      f"Tried: {'; '.join(errors) or 'nothing'}"
  )


def load_libc() -> ctypes.CDLL:
  if sys.platform == "win32":
    return ctypes.cdll.msvcrt
  name = ctypes.util.find_library("c")
  return ctypes.CDLL(name)
