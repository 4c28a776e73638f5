"""
Exceptions raised by httpchain.

Parse and read failures are raised with diagnostic context. Status-code
mismatches are values (see `httpchain.http.status`) until an `assert_*`
helper turns them into a `StatusCodeExpectedError`.
"""
import os


class HttpChainError(Exception):
    """Base class for every error raised by httpchain."""


class ContentReadError(HttpChainError, OSError):
    """The transport failed while the body stream was being read."""


class ParseCancelled(HttpChainError):
    """A parse function observed its cancellation signal."""

    def __init__(self, parser_name: str):
        super().__init__(f"{parser_name} parsing was cancelled")
        self.parser_name = parser_name


class ParseError(HttpChainError):
    """
    A structured decoder failed on the response body.

    The message embeds the parser name, the underlying error message and the
    raw body text read up to the failure, so malformed payloads are visible
    in tracebacks and logs.
    """

    def __init__(self, parser_name: str, original: BaseException, content: str):
        msg = (
            f"Could not parse {parser_name}: {original}{os.linesep}"
            f"Content:{os.linesep}{content}"
        )
        super().__init__(msg)
        self.parser_name = parser_name
        self.original = original
        self.content = content


class ShapeError(HttpChainError):
    """
    The body decoded, but its structure is not the one requested
    (e.g. an array was required, or a typed model did not validate).
    """

    def __init__(self, message: str, *, type_name: str | None = None):
        super().__init__(message)
        self.type_name = type_name


class StatusCodeExpectedError(HttpChainError, AssertionError):
    """Raised by the `assert_*` helpers; `failure` holds expected vs. actual."""

    def __init__(self, failure):
        super().__init__(
            f"Status code {failure.actual} is not in expected [{failure.expected}]."
        )
        self.failure = failure
