import gc
import threading

import pytest

from tessapi import Text
from fake_engine import FakeEngine


def test_borrow_is_a_read_only_view_of_the_buffer():
  engine = FakeEngine()
  text = Text.wrap(engine.alloc_text(b"hello"), engine)

  view = text.borrow()

  assert view.readonly
  assert view.tobytes() == b"hello"
  assert bytes(text) == b"hello"
  assert str(text) == "hello"


def test_repr_of_valid_utf8():
  engine = FakeEngine()
  text = Text.wrap(engine.alloc_text("çğı".encode("utf-8")), engine)
  assert repr(text) == 'Text("çğı")'


def test_repr_tolerates_invalid_utf8():
  engine = FakeEngine()
  text = Text.wrap(engine.alloc_text(b"\xff\xfe"), engine)

  assert repr(text) == "Text(<invalid UTF-8>)"
  assert str(text) == "\ufffd\ufffd"


def test_empty_buffer():
  engine = FakeEngine()
  text = Text.wrap(engine.alloc_text(b""), engine)
  assert bytes(text) == b""
  assert repr(text) == 'Text("")'


def test_close_releases_exactly_once():
  engine = FakeEngine()
  ptr = engine.alloc_text(b"abc")
  text = Text.wrap(ptr, engine)

  text.close()
  text.close()

  assert text.closed
  assert engine.freed_texts == [ptr]


def test_context_manager_releases():
  engine = FakeEngine()
  ptr = engine.alloc_text(b"abc")
  with Text.wrap(ptr, engine) as text:
    assert bytes(text) == b"abc"
  assert engine.freed_texts == [ptr]


def test_released_on_collection():
  engine = FakeEngine()
  ptr = engine.alloc_text(b"abc")
  text = Text.wrap(ptr, engine)
  del text
  gc.collect()
  assert engine.freed_texts == [ptr]


def test_separate_texts_release_their_own_buffers():
  engine = FakeEngine()
  first, second = engine.alloc_text(b"a"), engine.alloc_text(b"b")

  Text.wrap(first, engine).close()
  Text.wrap(second, engine).close()

  assert engine.freed_texts == [first, second]
  assert first != second


def test_null_pointer_is_rejected():
  engine = FakeEngine()
  with pytest.raises(ValueError):
    Text.wrap(0, engine)
  with pytest.raises(ValueError):
    Text.wrap(None, engine)
  gc.collect()
  assert engine.freed_texts == []


def test_closed_text():
  engine = FakeEngine()
  text = Text.wrap(engine.alloc_text(b"abc"), engine)
  text.close()

  with pytest.raises(ValueError):
    text.borrow()
  assert repr(text) == "Text(<closed>)"


def test_can_be_released_from_another_thread():
  engine = FakeEngine()
  ptr = engine.alloc_text(b"abc")
  text = Text.wrap(ptr, engine)

  t = threading.Thread(target=text.close)
  t.start()
  t.join()

  assert engine.freed_texts == [ptr]


def test_repr_escapes_quotes_and_control_characters():
  engine = FakeEngine()
  text = Text.wrap(engine.alloc_text(b'say "hi"\n'), engine)
  assert repr(text) == 'Text("say \\"hi\\"\\n")'


def test_borrowed_view_compares_as_bytes():
  engine = FakeEngine()
  view = Text.wrap(engine.alloc_text(b"hello"), engine).borrow()

  assert view == b"hello"
  assert view[0] == ord("h")
  assert view.format == "B"
  assert len(view) == 5
