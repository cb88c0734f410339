"""Runs against the real libtesseract when it is installed."""

import pytest
from PIL import Image, ImageDraw

from tessapi import EngineError, LibraryNotFoundError, PageIteratorLevel
from tessapi.capi import CTessEngine
from tessapi.session import BaseApi


@pytest.fixture(scope="module")
def engine():
  try:
    return CTessEngine()
  except LibraryNotFoundError as e:
    pytest.skip(str(e))


@pytest.fixture
def api(engine):
  try:
    session = BaseApi.create({"lang": "eng"}, engine=engine)
  except EngineError as e:
    pytest.skip(str(e))
  yield session
  session.close()


def _page() -> Image.Image:
  im = Image.new("L", (600, 120), color=255)
  draw = ImageDraw.Draw(im)
  draw.text((20, 40), "HELLO WORLD", fill=0)
  return im.resize((1800, 360))


def test_version(engine):
  assert engine.version()


def test_words_follow_the_protocol(api):
  api.set_image(_page())
  api.recognize()

  with api.get_iterator() as it:
    seq = it.words()
    items = list(seq)
    with pytest.raises(StopIteration):
      next(seq)

  assert items
  assert {i.level for i in items} == {PageIteratorLevel.WORD}
  for item in items:
    if item.bounding_rect is not None:
      assert item.bounding_rect.width >= 0
      assert item.bounding_rect.height >= 0
    if item.text is not None:
      repr(item.text)
      item.text.close()
