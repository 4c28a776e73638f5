import asyncio

import pytest

from httpchain.errors import ContentReadError, ParseCancelled, ParseError, ShapeError
from httpchain.http.client.content import ContentStream
from httpchain.http.client.response import Response
from httpchain.http.content.materialize import (
    load_content,
    parse_async,
    read_all,
    to_bytes_async,
    to_stream_async,
    to_string_async,
    to_text_async,
)
from httpchain.settings import CONTENT_SETTINGS
from tests.utils import FakeStreamReader, make_response


@pytest.mark.asyncio
async def test_to_bytes():
    resp = make_response(chunks=[b"ab", b"cd"])

    assert await to_bytes_async(resp) == b"abcd"


@pytest.mark.asyncio
async def test_to_text_matches_decoded_bytes():
    body = "grüße, 世界".encode("utf-8")

    text = await to_text_async(make_response(body))

    assert text == (await to_bytes_async(make_response(body))).decode("utf-8")


@pytest.mark.asyncio
async def test_body_is_single_read():
    resp = make_response(b"once")

    assert await to_text_async(resp) == "once"
    assert await to_text_async(resp) == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("max_length", [0, 1, 3, 6, 9])
async def test_to_string_truncates_to_max_length(max_length):
    text = "héllo wörld"
    # split inside the multi-byte characters on purpose
    body = text.encode("utf-8")
    chunks = [body[i:i + 2] for i in range(0, len(body), 2)]

    result = await to_string_async(make_response(chunks=chunks), max_length)

    assert result == text[:max_length]


@pytest.mark.asyncio
async def test_to_string_longer_limit_returns_everything():
    assert await to_string_async(make_response(b"short"), 100) == "short"


@pytest.mark.asyncio
async def test_to_string_without_limit_reads_to_end():
    assert await to_string_async(make_response(chunks=[b"a", b"b"])) == "ab"


@pytest.mark.asyncio
async def test_to_string_stops_reading_once_limit_reached(monkeypatch):
    monkeypatch.setitem(CONTENT_SETTINGS, "chunk_size", 4)
    source = FakeStreamReader(b"x" * 1000)
    resp = Response(200, ContentStream(source))

    assert await to_string_async(resp, 3) == "xxx"
    assert source.bytes_served == 4


@pytest.mark.asyncio
async def test_to_string_rejects_negative_limit():
    with pytest.raises(ValueError):
        await to_string_async(make_response(b"abc"), -1)


@pytest.mark.asyncio
async def test_to_stream_exposes_raw_reader():
    resp = make_response(b"raw")

    reader = await to_stream_async(resp)

    assert await reader.read() == b"raw"


@pytest.mark.asyncio
async def test_read_error_is_surfaced():
    resp = make_response(chunks=[b"par"], fail_with=OSError("reset"))

    with pytest.raises(ContentReadError):
        await to_bytes_async(resp)


# -----------
# parse
# -----------

async def _failing_parser(stream, cancel):
    await read_all(stream, cancel, "TEST")
    raise ValueError("unexpected token")


@pytest.mark.asyncio
async def test_parse_returns_parser_result():
    async def _upper(stream, cancel):
        return (await stream.read()).upper()

    assert await parse_async("TEST", _upper, make_response(b"abc")) == b"ABC"


@pytest.mark.asyncio
async def test_parse_error_embeds_name_message_and_content():
    resp = make_response(b"<<raw body>>")

    with pytest.raises(ParseError) as excinfo:
        await parse_async("TEST", _failing_parser, resp)

    err = excinfo.value
    assert "Could not parse TEST" in str(err)
    assert "unexpected token" in str(err)
    assert "<<raw body>>" in str(err)
    assert err.parser_name == "TEST"
    assert err.content == "<<raw body>>"
    assert isinstance(err.original, ValueError)
    assert err.__cause__ is err.original


@pytest.mark.asyncio
async def test_parse_error_content_only_covers_bytes_read():
    async def _reads_a_little(stream, cancel):
        await stream.read(3)
        raise ValueError("stop")

    with pytest.raises(ParseError) as excinfo:
        await parse_async("TEST", _reads_a_little, make_response(b"abcdef"))

    assert excinfo.value.content == "abc"


@pytest.mark.asyncio
async def test_parse_mirror_limit():
    with pytest.raises(ParseError) as excinfo:
        await parse_async("TEST", _failing_parser, make_response(b"0123456789"),
                          mirror_limit=4)

    assert excinfo.value.content == "0123"


@pytest.mark.asyncio
async def test_parse_mirror_limit_from_settings(monkeypatch):
    monkeypatch.setitem(CONTENT_SETTINGS, "mirror_limit", 2)

    with pytest.raises(ParseError) as excinfo:
        await parse_async("TEST", _failing_parser, make_response(b"0123456789"))

    assert excinfo.value.content == "01"


@pytest.mark.asyncio
async def test_parse_lets_shape_errors_through():
    async def _wrong_shape(stream, cancel):
        raise ShapeError("not an array")

    with pytest.raises(ShapeError):
        await parse_async("TEST", _wrong_shape, make_response(b"{}"))


@pytest.mark.asyncio
async def test_parse_cancel_signal_goes_through_error_path():
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(ParseError) as excinfo:
        await parse_async("TEST", _failing_parser, make_response(b"abc"), cancel=cancel)

    assert isinstance(excinfo.value.original, ParseCancelled)


@pytest.mark.asyncio
async def test_task_cancellation_propagates_and_logs_partial_content(caplog):
    started = asyncio.Event()

    async def _hangs(stream, cancel):
        await stream.read(7)
        started.set()
        await asyncio.sleep(3600)

    task = asyncio.ensure_future(
        parse_async("TEST", _hangs, make_response(b"partial body"))
    )
    await started.wait()

    with caplog.at_level("WARNING", logger="httpchain"):
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert "Could not parse TEST" in caplog.text
    assert "partial" in caplog.text


# -----------
# load_content
# -----------

@pytest.mark.asyncio
async def test_load_content_returns_same_response_and_allows_rereads():
    resp = make_response(chunks=[b"a", b"b"])

    assert load_content(resp) is resp
    assert await to_text_async(resp) == "ab"
    assert await to_text_async(resp) == "ab"


@pytest.mark.asyncio
async def test_load_content_failure_is_deferred():
    resp = make_response(chunks=[b"a"], fail_with=OSError("gone"))

    assert load_content(resp) is resp
    await asyncio.sleep(0.01)

    with pytest.raises(ContentReadError, match="gone"):
        await to_bytes_async(resp)
