"""
Best-effort human-readable rendering of a response body.

`to_formatted_text_async` never raises: every attempt produces an `Outcome`,
and a failed outcome falls through to the next, ending with the raw text (or
"" when even the body cannot be read).
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from lxml import etree

from httpchain.http.client.response import Response
from httpchain.http.content.jsondoc import to_json_document_async
from httpchain.http.content.materialize import to_text_async
from httpchain.http.content.xmldoc import to_xml_async
from httpchain.util.blocking import blocking
from httpchain.util.logging import get_logger, response_context

log = get_logger(__name__)


@dataclass(slots=True)
class Outcome:
    value: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, fallback):
        return self.value if self.ok else fallback


async def attempt(awaitable: Awaitable) -> Outcome:
    try:
        return Outcome(value=await awaitable)
    except Exception as exc:
        return Outcome(error=exc)


async def _pretty_json(response: Response) -> str:
    document = await to_json_document_async(response)
    return document.dumps()


async def _plain_xml(response: Response) -> str:
    document = await to_xml_async(response)
    return etree.tostring(document, encoding="unicode")


def renderer_for(media_type: str) -> Callable[[Response], Awaitable[str]] | None:
    if "/json" in media_type:
        return _pretty_json
    if "/xml" in media_type:
        return _plain_xml
    return None


async def to_formatted_text_async(response: Response) -> str:
    """
    Render the body for display according to its declared content type.

    JSON is re-serialized with two-space indentation, XML is re-serialized
    without pretty-printing, anything else (or anything that fails to parse)
    is returned as plain text.
    """
    # buffered so a failed parse can still fall back to the raw text
    buffered = await attempt(response.content.load_into_buffer())

    render = renderer_for(response.media_type)
    if buffered.ok and render is not None:
        rendered = await attempt(render(response))
        if rendered.ok:
            return rendered.value
        log.debug(
            "formatted preview fell back to text",
            extra={"error": repr(rendered.error), **response_context(response)},
        )

    text = await attempt(to_text_async(response))
    if not text.ok:
        log.debug(
            "formatted preview could not read body",
            extra={"error": repr(text.error), **response_context(response)},
        )
    return text.value_or("")


to_formatted_text_blocking = blocking(to_formatted_text_async)
