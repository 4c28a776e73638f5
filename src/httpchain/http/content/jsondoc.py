"""
JSON decoding of response bodies.

Documents are parsed through `parse_async("JSON", ...)`, so syntax errors
come back as `ParseError` with the received text attached. Structural
mismatches (a non-array root where an array is required, a model that does
not validate) raise `ShapeError`.
"""
import asyncio
import json
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from httpchain.errors import ShapeError
from httpchain.http.client.response import Response
from httpchain.http.content.materialize import parse_async, read_all
from httpchain.settings import SETTINGS
from httpchain.util.blocking import blocking

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class JsonDocumentOptions:
    allow_nan: bool = True
    max_depth: int | None = 64
    allow_duplicate_keys: bool = True
    parse_float: Callable[[str], Any] | None = None

    @classmethod
    def from_settings(cls) -> "JsonDocumentOptions":
        conf = SETTINGS.json.document
        return cls(
            allow_nan=conf.allow_nan,
            max_depth=conf.max_depth,
            allow_duplicate_keys=conf.allow_duplicate_keys,
        )


@dataclass(frozen=True, slots=True)
class JsonSerializerOptions:
    """Options for typed deserialization (see `deserialize_json_async`)."""
    strict: bool = False
    context: dict | None = None

    @classmethod
    def from_settings(cls) -> "JsonSerializerOptions":
        return cls(strict=SETTINGS.json.serializer.strict)


class JsonDocument:
    """A parsed JSON body. `root` is the top-level value."""

    __slots__ = ("root",)

    def __init__(self, root: Any):
        self.root = root

    def __getitem__(self, key):
        return self.root[key]

    def __eq__(self, other):
        if isinstance(other, JsonDocument):
            return self.root == other.root
        return NotImplemented

    def __repr__(self):
        return f"JsonDocument({self.root!r})"

    def dumps(self, indent: int | None = None) -> str:
        if indent is None:
            indent = SETTINGS.json.indent
        return json.dumps(self.root, indent=indent, ensure_ascii=False)


def _reject_duplicates(pairs):
    obj = {}
    for key, value in pairs:
        if key in obj:
            raise ValueError(f"duplicate key {key!r}")
        obj[key] = value
    return obj


def _reject_constant(name):
    raise ValueError(f"{name} is not allowed")


def _check_depth(value, limit: int) -> None:
    # only objects and arrays count as a nesting level
    stack = [(value, 1)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        if depth > limit:
            raise ValueError(f"maximum nesting depth of {limit} exceeded")
        stack.extend((child, depth + 1) for child in children)


def _loads(data: bytes, options: JsonDocumentOptions):
    kwargs = {}
    if not options.allow_duplicate_keys:
        kwargs["object_pairs_hook"] = _reject_duplicates
    if not options.allow_nan:
        kwargs["parse_constant"] = _reject_constant
    if options.parse_float is not None:
        kwargs["parse_float"] = options.parse_float
    root = json.loads(data, **kwargs)
    if options.max_depth is not None:
        _check_depth(root, options.max_depth)
    return root


async def to_json_document_async(
    response: Response,
    options: JsonDocumentOptions | None = None,
    *,
    cancel: asyncio.Event | None = None,
) -> JsonDocument:
    options = options or JsonDocumentOptions.from_settings()

    async def _parse(stream, cancel):
        data = await read_all(stream, cancel, "JSON")
        return JsonDocument(_loads(data, options))

    return await parse_async("JSON", _parse, response, cancel=cancel)


async def to_json_async(response: Response, options: JsonDocumentOptions | None = None,
                        *, cancel: asyncio.Event | None = None) -> Any:
    document = await to_json_document_async(response, options, cancel=cancel)
    return document.root


def _require_array(root) -> list:
    if not isinstance(root, list):
        raise ShapeError(
            f"JSON root must be an array, got {type(root).__name__}",
            type_name=type(root).__name__,
        )
    return root


async def to_json_seq_async(response: Response, options: JsonDocumentOptions | None = None,
                            *, cancel: asyncio.Event | None = None) -> Iterator[Any]:
    """Lazily iterate the elements of a JSON array body."""
    root = _require_array(await to_json_async(response, options, cancel=cancel))
    return (element for element in root)


async def to_json_array_async(response: Response, options: JsonDocumentOptions | None = None,
                              *, cancel: asyncio.Event | None = None) -> list:
    root = _require_array(await to_json_async(response, options, cancel=cancel))
    return list(root)


async def deserialize_json_async(
    type_: Type[T],
    response: Response,
    options: JsonSerializerOptions | None = None,
    *,
    cancel: asyncio.Event | None = None,
) -> T:
    """
    Validate the body straight into `type_` (a pydantic model, dataclass,
    TypedDict or any type pydantic understands).

    Malformed JSON raises `ParseError`; JSON that does not fit `type_` raises
    `ShapeError` naming the type.
    """
    options = options or JsonSerializerOptions.from_settings()
    adapter = TypeAdapter(type_)
    type_name = getattr(type_, "__name__", repr(type_))

    async def _parse(stream, cancel):
        data = await read_all(stream, cancel, "JSON")
        try:
            return adapter.validate_json(data, strict=options.strict, context=options.context)
        except ValidationError as exc:
            if any(error["type"] == "json_invalid" for error in exc.errors()):
                raise
            raise ShapeError(
                f"Could not deserialize JSON into {type_name}: {exc}",
                type_name=type_name,
            ) from exc

    return await parse_async("JSON", _parse, response, cancel=cancel)


to_json_document_blocking = blocking(to_json_document_async)
to_json_blocking = blocking(to_json_async)
to_json_seq_blocking = blocking(to_json_seq_async)
to_json_array_blocking = blocking(to_json_array_async)
deserialize_json_blocking = blocking(deserialize_json_async)
