import io
import json
import logging
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

import observability  # noqa: E402
from observability import bind_context, context, log_exc, setup_logging  # noqa: E402


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _last_json(stream: io.StringIO) -> dict:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_json_logging_includes_context_and_extras(monkeypatch: pytest.MonkeyPatch) -> None:
    stream = io.StringIO()
    monkeypatch.setenv("LOG_FORMAT", "json")
    setup_logging(stream=stream)

    with context(file="shot.jpg", stage="layout"):
        logging.getLogger("test-json").info("panel_rendered", extra={"width": 1080, "output": "out.png"})

    payload = _last_json(stream)
    assert payload["msg"] == "panel_rendered"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "test-json"
    assert payload["file"] == "shot.jpg"
    assert payload["stage"] == "layout"
    assert payload["width"] == 1080
    assert payload["output"] == "out.png"
    assert "orientation" not in payload


def test_context_is_restored_after_block(monkeypatch: pytest.MonkeyPatch) -> None:
    stream = io.StringIO()
    setup_logging(stream=stream)

    with context(stage="render"):
        with context(stage="layout", orientation="portrait"):
            logging.info("inner")
        logging.info("outer")
    logging.info("after")

    lines = [json.loads(line) for line in stream.getvalue().strip().splitlines()]
    assert [(line.get("stage"), line.get("orientation")) for line in lines] == [
        ("layout", "portrait"),
        ("render", None),
        (None, None),
    ]


def test_bind_context_drops_none_values() -> None:
    token = bind_context(file="a.jpg")
    try:
        inner = bind_context(file=None, stage="load")
        try:
            assert observability._current_context() == {"stage": "load"}
        finally:
            observability._LOG_CONTEXT.reset(inner)
    finally:
        observability._LOG_CONTEXT.reset(token)


def test_log_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    stream = io.StringIO()
    monkeypatch.setenv("LOG_LEVEL", "warning")
    setup_logging(stream=stream)

    logging.info("hidden")
    logging.warning("shown")

    lines = stream.getvalue().strip().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["msg"] == "shown"


def test_pretty_format_lists_context(monkeypatch: pytest.MonkeyPatch) -> None:
    stream = io.StringIO()
    monkeypatch.setenv("LOG_FORMAT", "pretty")
    setup_logging(stream=stream)

    with context(file="shot.jpg"):
        logging.info("photo_loaded", extra={"tag_source": "jpeg"})

    line = stream.getvalue().strip()
    assert "INFO" in line
    assert "photo_loaded" in line
    assert "(file=shot.jpg tag_source=jpeg)" in line
    assert observability._LOG_FORMAT == "pretty"


def test_log_exc_json_has_error_type_without_stack(monkeypatch: pytest.MonkeyPatch) -> None:
    stream = io.StringIO()
    monkeypatch.setenv("LOG_FORMAT", "json")
    setup_logging(stream=stream)

    log_exc("photostats failed", ValueError("bad orientation"))

    payload = _last_json(stream)
    assert payload["level"] == "ERROR"
    assert payload["error_type"] == "ValueError"
    assert payload["error"] == "bad orientation"
    assert "stack" not in payload


def test_log_exc_pretty_includes_traceback(monkeypatch: pytest.MonkeyPatch) -> None:
    stream = io.StringIO()
    monkeypatch.setenv("LOG_FORMAT", "pretty")
    setup_logging(stream=stream)

    try:
        raise RuntimeError("boom")
    except RuntimeError as err:
        log_exc("render failed", err)

    output = stream.getvalue()
    assert "render failed" in output
    assert "Traceback" in output
    assert "RuntimeError: boom" in output
