"""Response expectations and their validation."""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from restassay import matchers
from restassay.content import ContentType, mime_type
from restassay.error import SpecUsageError, ValidationFailure
from restassay.response import Response

if TYPE_CHECKING:
    from restassay.spec import RequestSpec

logger = logging.getLogger(__name__)

NO_COOKIES_MESSAGE = "No cookies defined in the response"


@enum.unique
class ExpectationKind(enum.Enum):
    STATUS_CODE = "status code"
    STATUS_LINE = "status line"
    HEADER = "header"
    COOKIE = "cookie"
    CONTENT_TYPE = "content-type"
    BODY_PATH = "body path"

    def __repr__(self):
        return self.name

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Expectation:
    """One assertion against an aspect of a response.

    For BODY_PATH expectations, a name of None applies the matcher to the
    whole body text.
    """

    kind: ExpectationKind
    name: Optional[str]
    matcher: Any


@dataclass
class ValidationOutcome:
    checked: int = 0
    failures: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failures


def _unquote(description: str) -> str:
    if len(description) >= 2 and description[0] == description[-1] == '"':
        return description[1:-1]
    return description


def format_actual(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_actual(v) for v in value) + "]"
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def _squash(content_type: str) -> str:
    return "".join(content_type.split()).lower()


def _content_type_matches(expected: Any, actual: str) -> Tuple[bool, str]:
    if isinstance(expected, ContentType):
        return expected.matches(actual), expected.name
    if isinstance(expected, str):
        if ";" in expected:
            return _squash(expected) == _squash(actual), expected
        return mime_type(expected) == mime_type(actual), expected
    matcher = matchers.wrap(expected)
    return matcher.matches(actual), _unquote(matcher.describe())


def _check(expectation: Expectation, response: Response) -> Optional[str]:
    """Returns the diagnostic message of a failing expectation, or None."""
    kind = expectation.kind

    if kind is ExpectationKind.CONTENT_TYPE:
        expected = expectation.matcher
        if isinstance(expected, matchers.ResponseAwareMatcher):
            expected = expected.matcher(response)
        ok, description = _content_type_matches(expected, response.content_type)
        if ok:
            return None
        return (
            f'Expected content-type "{description}" doesn\'t match actual '
            f'content-type "{response.content_type}".'
        )

    if kind is ExpectationKind.COOKIE and not response.cookies:
        return NO_COOKIES_MESSAGE

    matcher = matchers.resolve(expectation.matcher, response)

    if kind is ExpectationKind.STATUS_CODE:
        if matcher.matches(response.status_code):
            return None
        return (
            f"Expected status code {matcher.describe()} doesn't match actual "
            f"status code <{response.status_code}>."
        )

    if kind is ExpectationKind.STATUS_LINE:
        if matcher.matches(response.status_line):
            return None
        return (
            f"Expected status line {matcher.describe()} doesn't match actual "
            f'status line "{response.status_line}".'
        )

    if kind is ExpectationKind.HEADER:
        name = expectation.name or ""
        values = response.headers.get_all(name)
        if values and any(matcher.matches(v) for v in values):
            return None
        if not values and matcher.matches(None):
            return None
        actual = ", ".join(values) if values else "null"
        listing = "\n".join(f"{n}={v}" for n, v in response.headers.items())
        return (
            f'Expected header "{name}" was not {matcher.describe()}, was '
            f'"{actual}". Headers are:\n{listing}'
        )

    if kind is ExpectationKind.COOKIE:
        name = expectation.name or ""
        value = response.cookie(name)
        if matcher.matches(value):
            return None
        return (
            f'Expected cookie "{name}" was {matcher.describe()}, was '
            f'"{format_actual(value)}".'
        )

    # BODY_PATH
    if expectation.name is None:
        actual_text = response.text
        if matcher.matches(actual_text):
            return None
        return (
            "Response body doesn't match expectation.\n"
            f"Expected: {_unquote(matcher.describe())}\n"
            f"  Actual: {actual_text}"
        )

    evaluator = response.evaluator
    if evaluator is None:
        raise SpecUsageError(
            f'cannot validate path "{expectation.name}": no path evaluator for '
            f'content-type "{response.content_type}"'
        )
    value = evaluator.extract(response.structured, expectation.name)
    if matcher.matches(value):
        return None
    return (
        f"{evaluator.kind} path {expectation.name} doesn't match.\n"
        f"Expected: {_unquote(matcher.describe())}\n"
        f"  Actual: {format_actual(value)}"
    )


def validate(
    response: Response, spec: Iterable[Expectation], fail_fast: bool = True
) -> ValidationOutcome:
    """Evaluates expectations in declared order against a response.

    With fail_fast, the first failing expectation raises a ValidationFailure
    carrying its message and the remaining expectations are not evaluated.
    Otherwise every expectation is evaluated and a single ValidationFailure
    lists all failures.

    Raises:
        ValidationFailure: if an expectation is not met.
    """
    outcome = ValidationOutcome()
    for expectation in spec:
        outcome.checked += 1
        message = _check(expectation, response)
        if message is None:
            continue
        logger.debug("expectation %s failed", expectation.kind)
        if fail_fast:
            raise ValidationFailure(message)
        outcome.failures.append(message)

    if outcome.failures:
        count = len(outcome.failures)
        noun = "expectation" if count == 1 else "expectations"
        header = f"{count} {noun} failed.\n"
        raise ValidationFailure(
            header + "\n".join(outcome.failures), list(outcome.failures)
        )
    return outcome


def _pairs(args: Tuple[Any, ...]) -> Iterator[Tuple[str, Any]]:
    if len(args) % 2:
        raise SpecUsageError("expected (name, matcher) pairs")
    for i in range(0, len(args), 2):
        yield args[i], args[i + 1]


class ResponseSpec:
    """Ordered collection of expectations.

    Builder methods append expectations and return the spec itself. Merging
    another spec appends its expectations; nothing is de-duplicated.
    """

    def __init__(
        self,
        expectations: Iterable[Expectation] = (),
        request: Optional[RequestSpec] = None,
    ):
        self._expectations: List[Expectation] = list(expectations)
        self._request = request

    @property
    def expectations(self) -> Tuple[Expectation, ...]:
        return tuple(self._expectations)

    def expect(self, kind: ExpectationKind, name: Optional[str], matcher: Any) -> ResponseSpec:
        self._expectations.append(Expectation(kind, name, matchers.wrap(matcher)))
        return self

    def status_code(self, expected: Any) -> ResponseSpec:
        return self.expect(ExpectationKind.STATUS_CODE, None, expected)

    def status_line(self, expected: Any) -> ResponseSpec:
        return self.expect(ExpectationKind.STATUS_LINE, None, expected)

    def header(self, name: str, expected: Any) -> ResponseSpec:
        return self.expect(ExpectationKind.HEADER, name, expected)

    def headers(self, *args: Any) -> ResponseSpec:
        """Accepts a mapping of names to matchers, or name, matcher pairs."""
        if len(args) == 1 and isinstance(args[0], Mapping):
            args = tuple(x for item in args[0].items() for x in item)
        for name, expected in _pairs(args):
            self.header(name, expected)
        return self

    def cookie(self, name: str, expected: Any = None) -> ResponseSpec:
        if expected is None:
            expected = matchers.not_none()
        return self.expect(ExpectationKind.COOKIE, name, expected)

    def cookies(self, *args: Any) -> ResponseSpec:
        if len(args) == 1 and isinstance(args[0], Mapping):
            args = tuple(x for item in args[0].items() for x in item)
        for name, expected in _pairs(args):
            self.cookie(name, expected)
        return self

    def content_type(self, expected: Union[ContentType, str, Any]) -> ResponseSpec:
        self._expectations.append(
            Expectation(ExpectationKind.CONTENT_TYPE, None, expected)
        )
        return self

    def body(self, *args: Any) -> ResponseSpec:
        """Either body(matcher) for the whole body text, or
        body(path, matcher, path, matcher, ...)."""
        if len(args) == 1:
            return self.expect(ExpectationKind.BODY_PATH, None, args[0])
        for path, expected in _pairs(args):
            self.expect(ExpectationKind.BODY_PATH, path, expected)
        return self

    def spec(self, other: ResponseSpec) -> ResponseSpec:
        """Appends the expectations of another spec."""
        self._expectations.extend(other.expectations)
        return self

    specification = spec

    def merge(self, other: ResponseSpec) -> ResponseSpec:
        """Returns a new spec with the expectations of both specs."""
        return ResponseSpec(self._expectations + list(other.expectations), self._request)

    def and_(self) -> ResponseSpec:
        return self

    def when(self) -> RequestSpec:
        """Returns the request this spec was created from, to send it."""
        if self._request is None:
            raise SpecUsageError("response spec is not bound to a request")
        return self._request

    def validate(self, response: Response, fail_fast: bool = True) -> ValidationOutcome:
        return validate(response, self._expectations, fail_fast=fail_fast)

    def __iter__(self) -> Iterator[Expectation]:
        return iter(list(self._expectations))

    def __len__(self) -> int:
        return len(self._expectations)

    def __repr__(self):
        return f"ResponseSpec({self._expectations!r})"


class ValidatableResponse:
    """Validates a response one expectation at a time, as each is declared."""

    def __init__(self, response: Response):
        self.response = response

    def _check(self, spec: ResponseSpec) -> ValidatableResponse:
        validate(self.response, spec)
        return self

    def status_code(self, expected: Any) -> ValidatableResponse:
        return self._check(ResponseSpec().status_code(expected))

    def status_line(self, expected: Any) -> ValidatableResponse:
        return self._check(ResponseSpec().status_line(expected))

    def header(self, name: str, expected: Any) -> ValidatableResponse:
        return self._check(ResponseSpec().header(name, expected))

    def headers(self, *args: Any) -> ValidatableResponse:
        return self._check(ResponseSpec().headers(*args))

    def cookie(self, name: str, expected: Any = None) -> ValidatableResponse:
        return self._check(ResponseSpec().cookie(name, expected))

    def cookies(self, *args: Any) -> ValidatableResponse:
        return self._check(ResponseSpec().cookies(*args))

    def content_type(self, expected: Any) -> ValidatableResponse:
        return self._check(ResponseSpec().content_type(expected))

    def body(self, *args: Any) -> ValidatableResponse:
        return self._check(ResponseSpec().body(*args))

    def spec(self, spec: ResponseSpec) -> ValidatableResponse:
        return self._check(spec)

    def and_(self) -> ValidatableResponse:
        return self

    def extract(self) -> Response:
        return self.response
