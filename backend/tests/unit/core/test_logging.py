"""
Logging Tests
"""
import json
import logging

import pytest
from httpx import AsyncClient

from app.core.logging_config import (
    logger,
    bind_log_context,
    bind_member,
    clear_log_context,
    ContextFilter,
    JSONFormatter,
)


class Collector(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []
        self.addFilter(ContextFilter())

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def collector():
    handler = Collector()
    logger.addHandler(handler)
    yield handler
    logger.removeHandler(handler)
    clear_log_context()


def test_context_filter_tags_member():
    bind_log_context(request_id="req-1")
    bind_member("member-1", "investor")
    record = logging.makeLogRecord({"msg": "hello"})

    ContextFilter().filter(record)
    clear_log_context()

    assert record.request_id == "req-1"
    assert record.member_id == "member-1"
    assert record.member == "member-1(investor)"


def test_context_filter_anonymous():
    record = logging.makeLogRecord({"msg": "hello"})

    ContextFilter().filter(record)

    assert record.request_id == "-"
    assert record.member == "anonymous"


def test_json_formatter_keeps_extra_fields():
    bind_member("member-2")
    record = logger.makeRecord("hfn", logging.INFO, __file__, 10, "posted", (), None, extra={"post_id": "p-1"})
    ContextFilter().filter(record)
    clear_log_context()

    entry = json.loads(JSONFormatter().format(record))

    assert entry["message"] == "posted"
    assert entry["post_id"] == "p-1"
    assert entry["member_id"] == "member-2"
    assert "request_id" not in entry


@pytest.mark.parametrize("status_code,duration_ms,level", [
    (200, 12.0, logging.INFO),
    (404, 12.0, logging.WARNING),
    (200, 2500.0, logging.WARNING),
    (503, 12.0, logging.ERROR),
])
def test_log_request_levels(collector, status_code, duration_ms, level):
    logger.log_request("GET", "/api/jobs", status_code, duration_ms)

    record = collector.records[-1]
    assert record.levelno == level
    assert record.http_status == status_code
    assert record.slow is (duration_ms > 1000)


async def test_request_line_names_the_member(client: AsyncClient, test_user, auth_headers, collector):
    await client.get("/api/notifications", headers={**auth_headers, "X-Request-ID": "req-77"})

    lines = [r for r in collector.records if getattr(r, "event_type", None) == "http_request"]
    assert lines[-1].http_path == "/api/notifications"
    assert lines[-1].request_id == "req-77"
    assert lines[-1].member_id == str(test_user.id)
    assert lines[-1].member_role == "founder"
