"""Tests for fire-and-forget visit recording."""

import json

import httpx
import pytest

from biolink.core.session import ViewerSession


@pytest.mark.asyncio
async def test_record_visit_returns_before_submission(backend, recorder):
    """The caller is never blocked by the submission."""
    recorder.record_visit("ana", ViewerSession(referrer="https://t.co/x"))

    assert recorder.pending == 1
    assert backend.visit_calls("ana") == []

    await recorder.drain()

    calls = backend.visit_calls("ana")
    assert len(calls) == 1
    assert json.loads(calls[0].content) == {"referrer": "https://t.co/x"}
    assert recorder.pending == 0


@pytest.mark.asyncio
async def test_missing_referrer_is_sent_as_null(backend, recorder):
    recorder.record_visit("ana", ViewerSession(referrer=""))
    await recorder.drain()

    assert json.loads(backend.visit_calls("ana")[0].content) == {"referrer": None}


@pytest.mark.asyncio
async def test_anonymous_visit_has_no_authorization_header(backend, recorder):
    recorder.record_visit("ana")
    await recorder.drain()

    request = backend.visit_calls("ana")[0]
    assert "authorization" not in request.headers
    assert recorder.stats["visits_sent"] == 1


@pytest.mark.asyncio
async def test_authenticated_visit_sends_bearer_token(backend, recorder):
    recorder.record_visit("ana", ViewerSession(credential="tok-123"))
    await recorder.drain()

    assert backend.visit_calls("ana")[0].headers["authorization"] == "Bearer tok-123"


@pytest.mark.asyncio
async def test_server_error_is_absorbed_without_retry(backend, recorder):
    backend.visit_status = 500

    recorder.record_visit("ana")
    await recorder.drain()

    assert len(backend.visit_calls("ana")) == 1
    assert recorder.stats["visits_failed"] == 1
    assert recorder.stats["visits_sent"] == 0


@pytest.mark.asyncio
async def test_network_error_is_absorbed(backend, recorder):
    backend.visit_error = httpx.ConnectError("connection refused")

    recorder.record_visit("ana")
    await recorder.drain()

    assert recorder.stats["visits_failed"] == 1


@pytest.mark.asyncio
async def test_each_handle_gets_its_own_submission(backend, recorder):
    """Rapid handle changes are neither de-duplicated nor cancelled."""
    recorder.record_visit("ana")
    recorder.record_visit("bea")
    await recorder.drain()

    assert len(backend.visit_calls("ana")) == 1
    assert len(backend.visit_calls("bea")) == 1


@pytest.mark.asyncio
async def test_empty_handle_is_not_submitted(backend, recorder):
    recorder.record_visit("")
    await recorder.drain()

    assert backend.requests == []
