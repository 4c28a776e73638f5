from .files import save_file_async, save_file_blocking
from .jsondoc import (
    JsonDocument,
    JsonDocumentOptions,
    JsonSerializerOptions,
    deserialize_json_async,
    deserialize_json_blocking,
    to_json_array_async,
    to_json_array_blocking,
    to_json_async,
    to_json_blocking,
    to_json_document_async,
    to_json_document_blocking,
    to_json_seq_async,
    to_json_seq_blocking,
)
from .materialize import (
    load_content,
    parse_async,
    parse_blocking,
    to_bytes_async,
    to_bytes_blocking,
    to_stream_async,
    to_stream_blocking,
    to_string_async,
    to_string_blocking,
    to_text_async,
    to_text_blocking,
)
from .preview import to_formatted_text_async, to_formatted_text_blocking
from .xmldoc import XmlOptions, to_xml_async, to_xml_blocking, xpath3
