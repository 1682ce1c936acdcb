"""Tests for request-id propagation into log records."""

import asyncio
import contextvars
import io
import logging

import pytest

from booking_core.logging_context import (
    LOG_FORMAT,
    RequestIdFilter,
    attach_request_id,
    get_request_id,
    get_request_logger,
    set_request_id,
)


class TestRequestId:
    def test_default_value(self):
        assert contextvars.Context().run(get_request_id) == "NO_REQUEST_ID"

    def test_set_and_get(self):
        set_request_id("REQ-1")
        assert get_request_id() == "REQ-1"

    @pytest.mark.asyncio
    async def test_tasks_do_not_share_ids(self):
        async def worker(rid: str) -> str:
            set_request_id(rid)
            await asyncio.sleep(0)
            return get_request_id()

        assert await asyncio.gather(worker("A"), worker("B")) == ["A", "B"]


class TestRequestLogger:
    def test_filter_attached_once(self):
        logger = get_request_logger("booking_core.tests.once")
        get_request_logger("booking_core.tests.once")
        assert sum(isinstance(f, RequestIdFilter) for f in logger.filters) == 1

    def test_records_carry_request_id(self, caplog):
        set_request_id("REQ-42")
        logger = get_request_logger("booking_core.tests.records")
        with caplog.at_level(logging.INFO, logger="booking_core.tests.records"):
            logger.info("Creating booking")
        assert caplog.records[-1].request_id == "REQ-42"


class TestLogFormat:
    def test_handler_renders_request_id(self):
        stream = io.StringIO()
        handler = attach_request_id(logging.StreamHandler(stream))
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger = logging.getLogger("booking_core.tests.format")
        logger.addHandler(handler)
        logger.propagate = False
        try:
            set_request_id("REQ-7")
            logger.warning("Slot taken")
        finally:
            logger.removeHandler(handler)
            logger.propagate = True
        assert "[REQ-7] WARNING: Slot taken" in stream.getvalue()

    def test_attach_is_idempotent(self):
        handler = attach_request_id(logging.NullHandler())
        attach_request_id(handler)
        assert sum(isinstance(f, RequestIdFilter) for f in handler.filters) == 1

    def test_load_config_filters_root_handlers(self):
        from booking_core.config import load_config

        load_config()
        handlers = logging.getLogger().handlers
        assert handlers
        assert all(any(isinstance(f, RequestIdFilter) for f in h.filters) for h in handlers)
