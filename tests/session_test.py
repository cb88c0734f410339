import gc

import pytest
from PIL import Image

from tessapi import EngineError
from tessapi.session import BaseApi
from fake_engine import FakeEngine, three_word_line


def _session(engine, **cfg):
  return BaseApi.create(cfg, engine=engine)


def test_create_initializes_with_config():
  engine = FakeEngine()
  api = _session(engine, lang="deu", datapath="/data", psm=6)
  assert engine.init_args == ("/data", "deu")
  assert engine.page_seg_mode == 6
  api.close()


def test_default_language():
  engine = FakeEngine()
  _session(engine).close()
  assert engine.init_args == (None, "eng")
  assert engine.page_seg_mode is None


def test_init_failure_releases_handle():
  engine = FakeEngine()
  engine.init_result = -1
  with pytest.raises(EngineError, match="lang='xyz'"):
    _session(engine, lang="xyz")
  assert len(engine.ended) == 1
  assert engine.deleted_apis == engine.ended


def test_close_releases_exactly_once():
  engine = FakeEngine()
  api = _session(engine)
  api.close()
  api.close()
  assert len(engine.deleted_apis) == 1
  with pytest.raises(ValueError):
    api.recognize()


def test_set_image_passes_raw_pixels():
  engine = FakeEngine()
  with _session(engine, ppi=300) as api:
    api.set_image(Image.new("L", (4, 3), color=255))
    api.set_image(Image.new("P", (5, 2)))

  gray, palette = engine.images
  assert gray[1:] == (4, 3, 1, 4)
  assert gray[0] == b"\xff" * 12
  # Palette images are converted to RGB.
  assert palette[1:] == (5, 2, 3, 15)
  assert engine.ppi == 300


def test_iterator_over_recognition():
  engine = FakeEngine(three_word_line())
  with _session(engine) as api:
    api.set_image(Image.new("L", (150, 10)))
    api.recognize()
    with api.get_iterator() as it:
      words = [bytes(item.text) for item in it.words()]
    assert api.mean_text_conf() == 77
    with api.get_utf8_text() as text:
      assert bytes(text) == b"page text\n"

  assert words == [b"hello", b"brave", b"world"]
  assert len(engine.deleted_iterators) == 1


def test_recognition_failure():
  engine = FakeEngine()
  engine.recognize_result = -1
  with _session(engine) as api:
    with pytest.raises(EngineError):
      api.recognize()


def test_iterator_requires_recognition():
  with _session(FakeEngine()) as api:
    with pytest.raises(EngineError):
      api.get_iterator()


def test_missing_page_text_is_none():
  engine = FakeEngine()
  engine.page_text = None
  with _session(engine) as api:
    assert api.get_utf8_text() is None


def test_new_recognition_closes_outstanding_iterators():
  engine = FakeEngine(three_word_line())
  api = _session(engine)
  api.set_image(Image.new("L", (8, 8)))
  api.recognize()
  it = api.get_iterator()

  api.recognize()

  assert it.closed
  with pytest.raises(ValueError):
    it.words()
  api.close()
  assert len(engine.deleted_iterators) == 1


def test_close_releases_iterators_before_the_session():
  engine = FakeEngine(three_word_line())
  api = _session(engine)
  api.set_image(Image.new("L", (8, 8)))
  api.recognize()
  it = api.get_iterator()

  api.close()

  assert it.closed
  assert len(engine.deleted_iterators) == 1
  assert len(engine.deleted_apis) == 1


def test_iterator_keeps_session_alive():
  engine = FakeEngine(three_word_line())
  api = _session(engine)
  api.set_image(Image.new("L", (8, 8)))
  api.recognize()
  it = api.get_iterator()
  del api
  gc.collect()

  assert engine.deleted_apis == []
  assert bytes(next(it.words()).text) == b"hello"
  del it
  gc.collect()
  assert len(engine.deleted_iterators) == 1
  assert len(engine.deleted_apis) == 1
