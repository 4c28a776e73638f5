import asyncio
from dataclasses import dataclass

import elementpath
from elementpath.xpath3 import XPath3Parser
from lxml import etree

from httpchain.http.client.response import Response
from httpchain.http.content.materialize import check_cancelled, parse_async
from httpchain.settings import CONTENT_SETTINGS, SETTINGS
from httpchain.util.blocking import blocking


@dataclass(frozen=True, slots=True)
class XmlOptions:
    remove_blank_text: bool = False
    remove_comments: bool = False
    resolve_entities: bool = False
    no_network: bool = True
    huge_tree: bool = False

    @classmethod
    def from_settings(cls) -> "XmlOptions":
        conf = SETTINGS.xml
        return cls(
            remove_blank_text=conf.remove_blank_text,
            remove_comments=conf.remove_comments,
            resolve_entities=conf.resolve_entities,
            no_network=conf.no_network,
            huge_tree=conf.huge_tree,
        )

    def build_parser(self) -> etree.XMLParser:
        return etree.XMLParser(
            remove_blank_text=self.remove_blank_text,
            remove_comments=self.remove_comments,
            resolve_entities=self.resolve_entities,
            no_network=self.no_network,
            huge_tree=self.huge_tree,
        )


async def to_xml_async(
    response: Response,
    options: XmlOptions | None = None,
    *,
    cancel: asyncio.Event | None = None,
) -> etree._ElementTree:
    """
    Parse the body into an lxml document.

    The body is fed to lxml chunk by chunk; elements keep their source line
    (`element.sourceline`) for diagnostics.
    """
    options = options or XmlOptions.from_settings()

    async def _parse(stream, cancel):
        parser = options.build_parser()
        while True:
            check_cancelled(cancel, "XML")
            chunk = await stream.read(CONTENT_SETTINGS.chunk_size)
            if not chunk:
                break
            parser.feed(chunk)
        # raises XMLSyntaxError on an empty or unterminated document
        root = parser.close()
        return root.getroottree()

    return await parse_async("XML", _parse, response, cancel=cancel)


def xpath3(document, expression: str, **kwargs):
    """
    Evaluate an XPath 3 expression over a parsed document,
    returning the results as a list.
    """
    kwargs.setdefault("parser", XPath3Parser)
    return elementpath.select(document, expression, **kwargs)


to_xml_blocking = blocking(to_xml_async)
