"""
Status-code expectations and assertions.

`expect_*` helpers return `Ok(response)` or `Err(ExpectationFailure)`;
`assert_*` helpers return the response or raise `StatusCodeExpectedError`
carrying the same failure.
"""
from dataclasses import dataclass
from typing import Any, Generic, Iterable, TypeVar

from httpchain.errors import StatusCodeExpectedError
from httpchain.http.client.response import Response

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    @property
    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def is_err(self) -> bool:
        return True

    def unwrap(self):
        raise ValueError(f"called unwrap() on {self!r}")

    def unwrap_or(self, default: Any) -> Any:
        return default


@dataclass(frozen=True, slots=True)
class StatusExpectation:
    """A closed set of acceptable status codes."""
    codes: frozenset[int]

    @classmethod
    def of(cls, codes: Iterable[int]) -> "StatusExpectation":
        return cls(frozenset(int(code) for code in codes))

    @classmethod
    def band(cls, hundreds: int) -> "StatusExpectation":
        """All codes from `hundreds`00 to `hundreds`99, e.g. band(2) -> 200..299."""
        if not 1 <= hundreds <= 9:
            raise ValueError(f"status band must be 1..9, got {hundreds}")
        start = hundreds * 100
        return cls(frozenset(range(start, start + 100)))

    def __contains__(self, code) -> bool:
        return int(code) in self.codes

    def __str__(self) -> str:
        # collapse consecutive runs: "200..299, 404"
        runs = []
        for code in sorted(self.codes):
            if runs and code == runs[-1][1] + 1:
                runs[-1][1] = code
            else:
                runs.append([code, code])
        return ", ".join(str(a) if a == b else f"{a}..{b}" for a, b in runs)


@dataclass(frozen=True, slots=True)
class ExpectationFailure:
    expected: StatusExpectation
    actual: int


def to_result(response: Response) -> Ok[Response] | Err[Response]:
    """`Ok` for 2xx responses, `Err` (holding the response) otherwise."""
    if 200 <= response.status < 300:
        return Ok(response)
    return Err(response)


# -----------
# Expect
# -----------

def expect_status_codes(response: Response, codes: Iterable[int] | StatusExpectation):
    expected = codes if isinstance(codes, StatusExpectation) else StatusExpectation.of(codes)
    if response.status in expected:
        return Ok(response)
    return Err(ExpectationFailure(expected=expected, actual=response.status))


def expect_status_code(response: Response, code: int):
    return expect_status_codes(response, [code])


def expect_1xx(response: Response):
    return expect_status_codes(response, StatusExpectation.band(1))


def expect_2xx(response: Response):
    return expect_status_codes(response, StatusExpectation.band(2))


def expect_3xx(response: Response):
    return expect_status_codes(response, StatusExpectation.band(3))


def expect_4xx(response: Response):
    return expect_status_codes(response, StatusExpectation.band(4))


def expect_5xx(response: Response):
    return expect_status_codes(response, StatusExpectation.band(5))


def expect_6xx(response: Response):
    return expect_status_codes(response, StatusExpectation.band(6))


def expect_7xx(response: Response):
    return expect_status_codes(response, StatusExpectation.band(7))


def expect_8xx(response: Response):
    return expect_status_codes(response, StatusExpectation.band(8))


def expect_9xx(response: Response):
    return expect_status_codes(response, StatusExpectation.band(9))


# -----------
# Assert
# -----------

def _raise_on_failure(result) -> Response:
    if result.is_err:
        raise StatusCodeExpectedError(result.error)
    return result.value


def assert_status_codes(response: Response, codes: Iterable[int] | StatusExpectation) -> Response:
    return _raise_on_failure(expect_status_codes(response, codes))


def assert_status_code(response: Response, code: int) -> Response:
    return _raise_on_failure(expect_status_code(response, code))


def assert_ok(response: Response) -> Response:
    return assert_status_code(response, 200)


def assert_no_content(response: Response) -> Response:
    return assert_status_code(response, 204)


def assert_bad_request(response: Response) -> Response:
    return assert_status_code(response, 400)


def assert_unauthorized(response: Response) -> Response:
    return assert_status_code(response, 401)


def assert_forbidden(response: Response) -> Response:
    return assert_status_code(response, 403)


def assert_not_found(response: Response) -> Response:
    return assert_status_code(response, 404)


def assert_1xx(response: Response) -> Response:
    return _raise_on_failure(expect_1xx(response))


def assert_2xx(response: Response) -> Response:
    return _raise_on_failure(expect_2xx(response))


def assert_3xx(response: Response) -> Response:
    return _raise_on_failure(expect_3xx(response))


def assert_4xx(response: Response) -> Response:
    return _raise_on_failure(expect_4xx(response))


def assert_5xx(response: Response) -> Response:
    return _raise_on_failure(expect_5xx(response))


def assert_6xx(response: Response) -> Response:
    return _raise_on_failure(expect_6xx(response))


def assert_7xx(response: Response) -> Response:
    return _raise_on_failure(expect_7xx(response))


def assert_8xx(response: Response) -> Response:
    return _raise_on_failure(expect_8xx(response))


def assert_9xx(response: Response) -> Response:
    return _raise_on_failure(expect_9xx(response))
