from __future__ import annotations

import json
import logging
import re

from fastapi.testclient import TestClient
from starlette.responses import Response

from themecookie.demo.main import app
from themecookie.logging_config import ConsoleLogFormatter, JsonLogFormatter, parse_redact_fields
from themecookie.logging_context import RequestIdFilter, set_request_id
from themecookie.web.middleware import REQUEST_ID_HEADER, parse_skip_paths, theme_cookie_change


def _record(**extra: object) -> logging.LogRecord:
    return logging.makeLogRecord(
        {
            "name": "tests.logging",
            "levelno": logging.INFO,
            "levelname": "INFO",
            "msg": "theme_cookie.theme_set",
            "args": (),
            **extra,
        }
    )


def test_json_log_formatter_redacts_sensitive_fields() -> None:
    formatter = JsonLogFormatter(redact_fields=parse_redact_fields("theme"))
    record = _record(
        theme="runo",
        page_id="page-1",
        payload={"session": "signed-value", "safe": "ok"},
        color_message="ANSI-noise",
    )

    payload = json.loads(formatter.format(record))

    assert payload["event"] == "theme_cookie.theme_set"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}Z", payload["timestamp"])
    assert payload["theme"] == "[REDACTED]"
    assert payload["page_id"] == "page-1"
    assert payload["payload"]["session"] == "[REDACTED]"
    assert payload["payload"]["safe"] == "ok"
    assert "color_message" not in payload


def test_console_log_formatter_appends_extra_fields() -> None:
    formatter = ConsoleLogFormatter()

    line = formatter.format(_record(event="theme_cookie.theme_set", theme="runo", cookie="x"))

    assert "theme_cookie.theme_set" in line
    assert "theme=runo" in line
    assert "cookie=[REDACTED]" in line
    assert "event=" not in line


def test_request_id_filter_stamps_current_request_id() -> None:
    record = _record()
    set_request_id("request-42")
    try:
        RequestIdFilter().filter(record)
    finally:
        set_request_id(None)

    assert record.request_id == "request-42"


def test_request_logging_middleware_sets_request_id_header() -> None:
    client = TestClient(app)

    response = client.get("/healthz", headers={REQUEST_ID_HEADER: "request-123"})

    assert response.status_code == 200
    assert response.headers[REQUEST_ID_HEADER] == "request-123"


def test_request_logging_middleware_generates_request_id() -> None:
    client = TestClient(app)

    response = client.get("/healthz")

    assert response.headers[REQUEST_ID_HEADER]


def test_parse_skip_paths_trims_and_discards_empty_segments() -> None:
    assert parse_skip_paths(" /healthz , , /themes/ ") == ("/healthz", "/themes/")


def test_theme_cookie_change_reports_set_cleared_or_untouched() -> None:
    untouched = Response()
    untouched.set_cookie("session", "abc")
    set_response = Response()
    set_response.set_cookie("themeCookie", "runo", max_age=2**31 - 1, path="/")
    cleared = Response()
    cleared.set_cookie("themeCookie", "", max_age=0, path="/")

    assert theme_cookie_change(untouched) is None
    assert theme_cookie_change(set_response) == "set"
    assert theme_cookie_change(cleared) == "cleared"


def test_request_completed_log_carries_theme_cookie_fields(caplog) -> None:
    client = TestClient(app)
    page_id = re.search(r'name="page_id" value="([^"]+)"', client.get("/").text).group(1)
    client.cookies.set("themeCookie", "runo")

    with caplog.at_level(logging.INFO, logger="themecookie.web.middleware"):
        client.post("/theme", data={"page_id": page_id, "theme": "reindeer"}, follow_redirects=False)

    started = next(record for record in caplog.records if record.msg == "request.started")
    completed = next(record for record in caplog.records if record.msg == "request.completed")
    assert started.theme_cookie_count == 1
    assert completed.theme_cookie_change == "set"
