from __future__ import annotations

import pytest

from rt_connector.adapters.rt.classify import classify_response, raise_for_response
from rt_connector.adapters.rt.errors import (
    EmbeddedError,
    EmbeddedNotFoundError,
    HttpError,
    NotFoundError,
)


def test_success_body_passes_through_unchanged() -> None:
    body = {"id": 1, "Subject": "hello"}
    assert raise_for_response(body, 200) is body
    assert classify_response("plain text", 200) is None


@pytest.mark.parametrize("body", ["No matching results.", "Ticket 999 not found"])
def test_not_found_string_bodies(body: str) -> None:
    error = classify_response(body, 200)
    assert isinstance(error, NotFoundError)
    assert not isinstance(error, EmbeddedError)
    assert str(error) == body


def test_not_found_wins_over_http_status() -> None:
    error = classify_response("Resource not found", 404)
    assert isinstance(error, NotFoundError)
    assert not isinstance(error, HttpError)


def test_http_error_uses_message_key() -> None:
    error = classify_response({"message": "Permission Denied"}, 403)
    assert isinstance(error, HttpError)
    assert error.status_code == 403
    assert str(error) == "HTTP Error 403: Permission Denied"


def test_http_error_falls_back_to_error_key_then_json() -> None:
    assert str(classify_response({"error": "boom"}, 500)) == "HTTP Error 500: boom"
    error = classify_response({"detail": [1, 2]}, 502)
    assert str(error) == 'HTTP Error 502: {"detail": [1, 2]}'


def test_embedded_error_in_success_body() -> None:
    error = classify_response("RT/5.0.1 200 Ok\n\n# Error: Invalid queue\n", 200)
    assert isinstance(error, EmbeddedError)
    assert str(error) == "Invalid queue"


def test_rt_prefix_without_error_marker_is_success() -> None:
    assert classify_response("RT/5.0.1 200 Ok\n\n# Ticket 5 updated.", 200) is None


def test_embedded_not_found_is_both_kinds() -> None:
    body = "RT/5.0.1 200 Ok\n# Error: Queue not found"
    error = classify_response(body, 200)
    assert isinstance(error, EmbeddedNotFoundError)
    assert isinstance(error, NotFoundError)
    assert isinstance(error, EmbeddedError)
    assert str(error) == "Queue not found"


def test_raise_for_response_raises() -> None:
    with pytest.raises(HttpError) as exc:
        raise_for_response("oops", 500)
    assert exc.value.status_code == 500
