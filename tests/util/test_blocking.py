import asyncio

import pytest

from httpchain.errors import ContentReadError
from httpchain.http.client.request import Request
from httpchain.http.client.session import Client, fetch_blocking
from httpchain.http.content import (
    load_content,
    save_file_blocking,
    to_bytes_blocking,
    to_formatted_text_blocking,
    to_json_blocking,
    to_string_blocking,
    to_text_async,
    to_text_blocking,
)
from httpchain.util.blocking import close_blocking_loop, get_blocking_loop
from tests.utils import FakeClientResponse, FakeSession, make_response


@pytest.fixture(autouse=True)
def _fresh_loop():
    yield
    close_blocking_loop()


def test_blocking_variants_are_named_after_operation():
    assert to_text_blocking.__name__ == "to_text_blocking"
    assert to_json_blocking.__name__ == "to_json_blocking"


def test_blocking_materialization():
    assert to_bytes_blocking(make_response(b"abc")) == b"abc"
    assert to_string_blocking(make_response(b"abcdef"), 2) == "ab"
    assert to_json_blocking(make_response(b"[1, 2]")) == [1, 2]
    assert to_formatted_text_blocking(
        make_response(b'{"a":1}', content_type="application/json")
    ) == '{\n  "a": 1\n}'


def test_blocking_save_file(tmp_path):
    target = save_file_blocking(make_response(b"data"), tmp_path / "x" / "y.bin")

    assert target.read_bytes() == b"data"


def test_loop_is_reused_within_thread():
    assert get_blocking_loop() is get_blocking_loop()


def test_load_content_without_running_loop_buffers_for_blocking_reads():
    resp = make_response(chunks=[b"a", b"b"])

    assert load_content(resp) is resp
    assert to_text_blocking(resp) == "ab"
    assert to_text_blocking(resp) == "ab"


def test_load_content_without_running_loop_then_read_in_event_loop():
    resp = make_response(chunks=[b"a", b"b"])
    load_content(resp)

    async def read_twice():
        return await to_text_async(resp), await to_text_async(resp)

    assert asyncio.run(asyncio.wait_for(read_twice(), 2)) == ("ab", "ab")


def test_load_content_without_running_loop_failure_surfaces_on_next_read():
    resp = make_response(chunks=[b"a"], fail_with=OSError("gone"))

    assert load_content(resp) is resp

    with pytest.raises(ContentReadError, match="gone"):
        to_bytes_blocking(resp)


def test_fetch_blocking(monkeypatch):
    session = FakeSession([FakeClientResponse(200, b"hello")])
    monkeypatch.setattr(Client, "build_session", lambda self: session)

    resp = fetch_blocking(Request("http://example.com/"))

    assert resp.status == 200
    assert to_text_blocking(resp) == "hello"


@pytest.mark.asyncio
async def test_blocking_call_inside_running_loop_is_refused():
    with pytest.raises(RuntimeError, match="running event loop"):
        to_text_blocking(make_response(b"abc"))
