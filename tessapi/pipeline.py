from __future__ import annotations

import logging
import time
from typing import Any, Sequence

from PIL import Image

from .capi import CTessEngine, default_engine
from .session import DEFAULT_LANG, BaseApi
from .types import PageIteratorLevel, RecognizeResult, ResultItem, coerce_level

# Optional dep for PDF rasterization
try:
  from pdf2image import convert_from_path  # type: ignore
  _HAS_PDF2IMAGE = True
except ImportError:  # pragma: no cover
  _HAS_PDF2IMAGE = False
  convert_from_path = None  # type: ignore

logger = logging.getLogger(__name__)


def _is_placeholder(item: ResultItem) -> bool:
  """The record an empty page yields for its initial cursor position."""
  return item.text is None and item.bounding_rect is None


def item_to_dict(item: ResultItem, page: int) -> dict[str, Any]:
  text: str | None = None
  if item.text is not None:
    with item.text:
      text = str(item.text)
  rect = item.bounding_rect
  return {
      "page": page,
      "level": item.level.value,
      "text": text,
      "confidence": float(item.confidence),
      "bbox": list(rect.as_tuple()) if rect is not None else None,
  }


def _load_images_from_pdf(
    path: str,
    dpi: int = 300,
    first_page: int | None = None,
    last_page: int | None = None,
) -> list[Image.Image]:
  if not _HAS_PDF2IMAGE:
    raise ImportError(
        "pdf2image not available. Install extras: pip install .[pdf]"
    )
  return convert_from_path(
      path, dpi=dpi, first_page=first_page, last_page=last_page
  )


def recognize_images(
    images: Sequence[Image.Image],
    level: PageIteratorLevel | str = PageIteratorLevel.WORD,
    cfg: dict[str, Any] | None = None,
    engine: CTessEngine | None = None,
) -> RecognizeResult:
  """Recognizes each image and collects its elements at `level`."""
  cfg = cfg or {}
  level = coerce_level(level)
  engine = engine if engine is not None else default_engine()
  t0 = time.time()
  texts: list[str] = []
  elements: list[dict[str, Any]] = []
  page_confs: list[int] = []
  with BaseApi.create(cfg, engine=engine) as api:
    version = api.version()
    for page, im in enumerate(images, start=1):
      api.set_image(im)
      api.recognize()
      page_confs.append(api.mean_text_conf())
      page_text = api.get_utf8_text()
      if page_text is not None:
        with page_text:
          texts.append(str(page_text))
      with api.get_iterator() as it, it.sequence_at(level) as seq:
        for item in seq:
          if _is_placeholder(item):
            continue
          elements.append(item_to_dict(item, page))
      logger.debug("Page %d: %d elements so far", page, len(elements))

  confs = [e["confidence"] for e in elements]
  mean_conf = sum(confs) / (100.0 * len(confs)) if confs else 0.0
  elapsed = int((time.time() - t0) * 1000)
  logger.info(
      "Recognized %d image(s), %d %s elements in %d ms",
      len(images), len(elements), level.value, elapsed,
  )
  return RecognizeResult(
      text="\f".join(texts),
      mean_confidence=max(0.0, min(1.0, mean_conf)),
      engine=f"tesseract {version}",
      elements=elements,
      meta={
          "elapsed_ms": elapsed,
          "pages": len(images),
          "lang": cfg.get("lang") or DEFAULT_LANG,
          "level": level.value,
          "mean_text_conf": page_confs,
      },
  )


def recognize_pdf(
    path: str,
    level: PageIteratorLevel | str = PageIteratorLevel.WORD,
    cfg: dict[str, Any] | None = None,
    dpi: int = 300,
    first_page: int | None = None,
    last_page: int | None = None,
    engine: CTessEngine | None = None,
) -> RecognizeResult:
  cfg = dict(cfg or {})
  # Rasterized pages carry the resolution they were rendered at.
  cfg.setdefault("ppi", dpi)
  images = _load_images_from_pdf(
      path, dpi=dpi, first_page=first_page, last_page=last_page
  )
  res = recognize_images(images, level=level, cfg=cfg, engine=engine)
  res.meta["input_path"] = path
  return res
