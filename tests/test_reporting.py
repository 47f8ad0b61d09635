from __future__ import annotations

import io
import re

import pytest

from shallot.exceptions import HTTPError
from shallot.reporting import DefaultErrorHandler, format_error


def _raised(error: BaseException) -> BaseException:
    try:
        raise error
    except BaseException as exc:
        return exc


def test_non_error_values_raise_type_error() -> None:
    handler = DefaultErrorHandler(stream=io.StringIO())
    with pytest.raises(TypeError, match='non-error thrown: "boom"'):
        handler("boom")
    with pytest.raises(TypeError, match=re.escape('non-error thrown: {"code":7}')):
        handler({"code": 7})


def test_not_found_errors_are_not_printed() -> None:
    stream = io.StringIO()
    DefaultErrorHandler(stream=stream)(HTTPError(404, expose=False))
    assert stream.getvalue() == ""


def test_exposed_errors_are_not_printed() -> None:
    stream = io.StringIO()
    error = RuntimeError("visible")
    error.expose = True  # type: ignore[attr-defined]
    DefaultErrorHandler(stream=stream)(error)
    assert stream.getvalue() == ""


def test_silent_mode_prints_nothing() -> None:
    stream = io.StringIO()
    DefaultErrorHandler(silent=True, stream=stream)(_raised(RuntimeError("hidden")))
    assert stream.getvalue() == ""


def test_unexpected_errors_print_an_indented_traceback() -> None:
    stream = io.StringIO()
    DefaultErrorHandler(stream=stream)(_raised(RuntimeError("kaboom")))
    output = stream.getvalue()
    assert output.startswith("\n  Traceback (most recent call last):\n")
    assert output.endswith("  RuntimeError: kaboom\n\n")
    body = output.strip("\n").split("\n")
    assert all(line.startswith("  ") for line in body)


def test_server_side_http_errors_are_printed() -> None:
    stream = io.StringIO()
    DefaultErrorHandler(stream=stream)(HTTPError(503, "maintenance"))
    assert stream.getvalue() == "\n  HTTPError: maintenance\n\n"


def test_format_error_without_traceback_uses_string_form() -> None:
    assert format_error(ValueError("plain")) == "\n  ValueError: plain\n"
    assert format_error(ValueError()) == "\n  ValueError\n"


def test_default_stream_is_stderr(capsys) -> None:
    DefaultErrorHandler()(_raised(KeyError("missing")))
    captured = capsys.readouterr()
    assert "KeyError: 'missing'" in captured.err
    assert captured.out == ""
