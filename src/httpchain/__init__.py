from .errors import (
    ContentReadError,
    HttpChainError,
    ParseCancelled,
    ParseError,
    ShapeError,
    StatusCodeExpectedError,
)
from .http.client.content import ContentStream
from .http.client.request import Request
from .http.client.response import Response, to_original_request, to_original_response
from .http.client.session import Client, fetch_async, fetch_blocking
from .http.content import (
    JsonDocument,
    JsonDocumentOptions,
    JsonSerializerOptions,
    XmlOptions,
    deserialize_json_async,
    deserialize_json_blocking,
    load_content,
    parse_async,
    parse_blocking,
    save_file_async,
    save_file_blocking,
    to_bytes_async,
    to_bytes_blocking,
    to_formatted_text_async,
    to_formatted_text_blocking,
    to_json_array_async,
    to_json_array_blocking,
    to_json_async,
    to_json_blocking,
    to_json_document_async,
    to_json_document_blocking,
    to_json_seq_async,
    to_json_seq_blocking,
    to_stream_async,
    to_stream_blocking,
    to_string_async,
    to_string_blocking,
    to_text_async,
    to_text_blocking,
    to_xml_async,
    to_xml_blocking,
    xpath3,
)
from .http.status import (
    Err,
    ExpectationFailure,
    Ok,
    StatusExpectation,
    assert_1xx,
    assert_2xx,
    assert_3xx,
    assert_4xx,
    assert_5xx,
    assert_6xx,
    assert_7xx,
    assert_8xx,
    assert_9xx,
    assert_bad_request,
    assert_forbidden,
    assert_no_content,
    assert_not_found,
    assert_ok,
    assert_status_code,
    assert_status_codes,
    assert_unauthorized,
    expect_1xx,
    expect_2xx,
    expect_3xx,
    expect_4xx,
    expect_5xx,
    expect_6xx,
    expect_7xx,
    expect_8xx,
    expect_9xx,
    expect_status_code,
    expect_status_codes,
    to_result,
)
from .settings import SETTINGS, update_settings
from .util.logging import configure_logging
