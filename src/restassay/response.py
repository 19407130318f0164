from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Tuple, Union

from restassay.content import ContentType, charset, content_type_header
from restassay.cookies import Cookie, parse_set_cookies
from restassay.error import SpecUsageError
from restassay.multimap import Entry, MultiMap
from restassay.path import PathEvaluator, evaluator_for
from restassay.transport import RawResponse

if TYPE_CHECKING:
    from restassay.validation import ValidatableResponse

_UNPARSED = object()


def default_status_line(status_code: int, http_version: str = "HTTP/1.1") -> str:
    try:
        reason = HTTPStatus(status_code).phrase
    except ValueError:
        reason = ""
    return f"{http_version} {status_code} {reason}".strip()


class Response:
    """Immutable result of an exchange.

    Header lookups are case-insensitive and multi-valued. The body is parsed
    on first use, according to the content type, to back path extraction.
    """

    __slots__ = (
        "_status_code",
        "_status_line",
        "_headers",
        "_cookies",
        "_body",
        "_parsed",
    )

    def __init__(
        self,
        status_code: int,
        status_line: str = "",
        headers: Iterable[Tuple[str, str]] = (),
        body: bytes = b"",
    ):
        self._status_code = status_code
        self._status_line = status_line or default_status_line(status_code)
        self._headers = MultiMap(
            (Entry(name, value) for name, value in headers), case_insensitive=True
        )
        self._cookies = parse_set_cookies(self._headers.get_all("Set-Cookie"))
        self._body = body
        self._parsed: Any = _UNPARSED

    @classmethod
    def from_raw(cls, raw: RawResponse) -> Response:
        status_line = f"{raw.http_version} {raw.status_code} {raw.reason}".strip()
        return cls(raw.status_code, status_line, raw.headers, raw.body)

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def status_line(self) -> str:
        return self._status_line

    @property
    def headers(self) -> MultiMap:
        return self._headers.copy()

    def header(self, name: str) -> Optional[str]:
        return self._headers.get(name)

    @property
    def cookies(self) -> List[Cookie]:
        return list(self._cookies)

    def cookie(self, name: str) -> Optional[str]:
        """Returns the value of the last cookie set with the given name."""
        value = None
        for cookie in self._cookies:
            if cookie.name.lower() == name.lower():
                value = cookie.value
        return value

    def detailed_cookie(self, name: str) -> Optional[Cookie]:
        found = None
        for cookie in self._cookies:
            if cookie.name.lower() == name.lower():
                found = cookie
        return found

    @property
    def content_type(self) -> str:
        return self._headers.get("Content-Type", "")

    @property
    def charset(self) -> str:
        return charset(self.content_type)

    @property
    def body(self) -> bytes:
        return self._body

    @property
    def text(self) -> str:
        return self._body.decode(self.charset, errors="replace")

    @property
    def evaluator(self) -> Optional[PathEvaluator]:
        return evaluator_for(self.content_type)

    @property
    def structured(self) -> Any:
        """The parsed body: a JSON value, an XML element or the body text
        when no path evaluator handles the content type."""
        if self._parsed is _UNPARSED:
            evaluator = self.evaluator
            if evaluator is None:
                self._parsed = self.text
            else:
                self._parsed = evaluator.parse(self._body, self.charset)
        return self._parsed

    def path(self, expression: str) -> Any:
        """Extracts the value addressed by a path expression from the body."""
        evaluator = self.evaluator
        if evaluator is None:
            raise SpecUsageError(
                f'cannot evaluate path "{expression}": no path evaluator for '
                f'content-type "{self.content_type}"'
            )
        return evaluator.extract(self.structured, expression)

    def then(self) -> ValidatableResponse:
        from restassay.validation import ValidatableResponse

        return ValidatableResponse(self)

    def __repr__(self):
        return f"<Response [{self._status_code}]>"


class ResponseBuilder:
    """Builds responses, typically from filters that short-circuit the
    chain or replace the response they received."""

    def __init__(self):
        self._status_code = 200
        self._status_line: Optional[str] = None
        self._headers: List[Tuple[str, str]] = []
        self._body = b""

    @classmethod
    def clone(cls, response: Response) -> ResponseBuilder:
        builder = cls()
        builder._status_code = response.status_code
        builder._status_line = response.status_line
        builder._headers = response.headers.items()
        builder._body = response.body
        return builder

    def status_code(self, status_code: int) -> ResponseBuilder:
        self._status_code = status_code
        self._status_line = None
        return self

    def status_line(self, status_line: str) -> ResponseBuilder:
        self._status_line = status_line
        return self

    def header(self, name: str, value: str) -> ResponseBuilder:
        """Replaces every value of a header."""
        self._headers = [h for h in self._headers if h[0].lower() != name.lower()]
        self._headers.append((name, str(value)))
        return self

    def add_header(self, name: str, value: str) -> ResponseBuilder:
        self._headers.append((name, str(value)))
        return self

    def cookie(self, cookie: Union[Cookie, str], value: Optional[str] = None) -> ResponseBuilder:
        if isinstance(cookie, Cookie):
            parts = [str(cookie)]
            parts.extend(f"{k}={v}" if v else k for k, v in cookie.attributes.items())
            return self.add_header("Set-Cookie", "; ".join(parts))
        return self.add_header("Set-Cookie", f"{cookie}={value}")

    def content_type(self, content_type: Union[ContentType, str]) -> ResponseBuilder:
        return self.header("Content-Type", content_type_header(content_type))

    def body(self, body: Union[bytes, str, dict, list]) -> ResponseBuilder:
        if isinstance(body, (dict, list)):
            if not any(h[0].lower() == "content-type" for h in self._headers):
                self.content_type(ContentType.JSON)
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode(charset(self._content_type()))
        self._body = body
        return self

    def _content_type(self) -> Optional[str]:
        for name, value in self._headers:
            if name.lower() == "content-type":
                return value
        return None

    def build(self) -> Response:
        return Response(
            self._status_code, self._status_line or "", self._headers, self._body
        )
