from __future__ import annotations

import logging
import time
import weakref
from typing import Any

from PIL import Image

from .capi import CTessEngine, default_engine
from .errors import EngineError
from .result_iterator import ResultIterator
from .text import Text

logger = logging.getLogger(__name__)

DEFAULT_LANG = "eng"

_MODE_BYTES_PER_PIXEL: dict[str, int] = {"L": 1, "RGB": 3, "RGBA": 4}


class BaseApi:
  """Recognition session over a `TessBaseAPI*` handle.

  Result iterators handed out by the session keep it alive, and are closed
  by it before the next image, the next recognition or the session's own
  release, since the engine invalidates them at those points.
  """

  def __init__(self, handle: int, engine: CTessEngine) -> None:
    if not handle:
      raise ValueError("BaseApi requires a non-null engine handle")
    self._handle = handle
    self._engine = engine
    self._iterators: weakref.WeakSet[ResultIterator] = weakref.WeakSet()
    self._image_data: bytes | None = None
    self._ppi: int | None = None
    self._finalizer = weakref.finalize(self, _release_base_api, engine, handle)

  @classmethod
  def create(
      cls, cfg: dict[str, Any] | None = None, engine: CTessEngine | None = None
  ) -> BaseApi:
    """Creates and initializes a session.

    cfg keys: lang (default "eng"), datapath (default: TESSDATA_PREFIX),
    psm (page segmentation mode), ppi (source resolution).
    """
    cfg = cfg or {}
    engine = engine if engine is not None else default_engine()
    handle = engine.base_api_create()
    if not handle:
      raise EngineError("TessBaseAPICreate returned null")
    api = cls(handle, engine)
    lang = cfg.get("lang") or DEFAULT_LANG
    datapath = cfg.get("datapath")
    if engine.base_api_init(handle, datapath, lang) != 0:
      api.close()
      raise EngineError(
          f"Could not initialize tesseract with lang={lang!r}, "
          f"datapath={datapath!r}. Check that the traineddata is installed."
      )
    psm = cfg.get("psm")
    if psm is not None:
      engine.base_api_set_page_seg_mode(handle, int(psm))
    api._ppi = cfg.get("ppi")
    logger.debug("Initialized tesseract session lang=%s psm=%s", lang, psm)
    return api

  @property
  def closed(self) -> bool:
    return not self._finalizer.alive

  def _checked_handle(self) -> int:
    if self.closed:
      raise ValueError("operation on closed BaseApi")
    return self._handle

  def _invalidate_iterators(self) -> None:
    for it in list(self._iterators):
      it.close()
    self._iterators.clear()

  def close(self) -> None:
    self._invalidate_iterators()
    self._finalizer()

  def __enter__(self) -> BaseApi:
    return self

  def __exit__(self, *exc: Any) -> None:
    self.close()

  def version(self) -> str:
    return self._engine.version()

  def set_image(self, image: Image.Image) -> None:
    handle = self._checked_handle()
    self._invalidate_iterators()
    if image.mode not in _MODE_BYTES_PER_PIXEL:
      image = image.convert("RGB")
    bpp = _MODE_BYTES_PER_PIXEL[image.mode]
    width, height = image.size
    # Held until the next image; the engine reads it during SetImage.
    self._image_data = image.tobytes()
    self._engine.base_api_set_image(
        handle, self._image_data, width, height, bpp, width * bpp
    )
    if self._ppi:
      self._engine.base_api_set_source_resolution(handle, int(self._ppi))

  def recognize(self) -> None:
    handle = self._checked_handle()
    self._invalidate_iterators()
    t0 = time.time()
    if self._engine.base_api_recognize(handle) != 0:
      raise EngineError("Recognition failed (was an image set?)")
    logger.debug("Recognized page in %d ms", int((time.time() - t0) * 1000))

  def get_iterator(self) -> ResultIterator:
    """Cursor over the last recognition, positioned on its first element."""
    raw = self._engine.base_api_get_iterator(self._checked_handle())
    if not raw:
      raise EngineError("No recognition results; call recognize() first")
    it = ResultIterator.wrap(raw, self._engine, owner=self)
    self._iterators.add(it)
    return it

  def get_utf8_text(self) -> Text | None:
    pointer = self._engine.base_api_get_utf8_text(self._checked_handle())
    if not pointer:
      return None
    return Text.wrap(pointer, self._engine)

  def mean_text_conf(self) -> int:
    return self._engine.base_api_mean_text_conf(self._checked_handle())


def _release_base_api(engine: CTessEngine, handle: int) -> None:
  engine.base_api_end(handle)
  engine.base_api_delete(handle)
