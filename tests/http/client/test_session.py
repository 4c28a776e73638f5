import pytest

from httpchain.http.client.request import Request
from httpchain.http.client.session import Client, fetch_async
from httpchain.http.content.materialize import to_text_async
from tests.utils import FakeClientResponse, FakeSession


@pytest.mark.asyncio
async def test_send_returns_streaming_response():
    client = Client()
    transport = FakeClientResponse(201, b"created", {"Content-Type": "text/plain"})
    session = FakeSession([transport])

    req = Request("http://example.com/items", method="POST", body=b"{}",
                  headers={"X-Trace": "1"})

    client._session = session
    async with client:
        resp = await client.send(req)

        assert resp.status == 201
        assert resp.content_type == "text/plain"
        assert resp.original_request is req
        assert resp.original_response is transport
        assert not resp.content.is_buffered
        assert await to_text_async(resp) == "created"

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://example.com/items")
    assert kwargs["data"] == b"{}"
    assert kwargs["headers"] == {"X-Trace": "1"}
    assert transport.released == 1


@pytest.mark.asyncio
async def test_send_requires_open_client():
    with pytest.raises(RuntimeError):
        await Client().send(Request("http://example.com"))


@pytest.mark.asyncio
async def test_proxy_per_host():
    client = Client(proxies={"example.com": "http://proxy:3128"})
    session = FakeSession([FakeClientResponse(200, b""), FakeClientResponse(200, b"")])

    client._session = session
    async with client:
        await client.send(Request("http://example.com/"))
        await client.send(Request("http://other.org/"))

    assert session.calls[0][2]["proxy"] == "http://proxy:3128"
    assert session.calls[1][2]["proxy"] is None


@pytest.mark.asyncio
async def test_fetch_buffers_body_and_closes_session(monkeypatch):
    transport = FakeClientResponse(200, b'{"a": 1}', {"Content-Type": "application/json"})
    session = FakeSession([transport])
    monkeypatch.setattr(Client, "build_session", lambda self: session)

    resp = await fetch_async(Request("http://example.com/data"))

    assert session.closed
    assert transport.released == 1
    assert resp.content.is_buffered
    assert await to_text_async(resp) == '{"a": 1}'
    assert await to_text_async(resp) == '{"a": 1}'
