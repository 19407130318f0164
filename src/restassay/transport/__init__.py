"""Transports perform the network exchange at the end of a filter chain."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

Headers = Sequence[Tuple[str, str]]


@dataclass(frozen=True)
class RawResponse:
    """What a transport received: status, ordered headers and body bytes."""

    status_code: int
    reason: str = ""
    headers: Headers = field(default_factory=list)
    body: bytes = b""
    http_version: str = "HTTP/1.1"


class Transport(Protocol):
    """Protocol for transports."""

    def send(
        self,
        method: str,
        url: str,
        headers: Headers,
        cookies: Headers,
        body: Optional[bytes],
    ) -> RawResponse:
        """Send a request and return the raw response. Errors raised here
        reach the caller of the exchange unmodified."""
        ...


def cookie_header(cookies: Iterable[Tuple[str, str]]) -> str:
    return "; ".join(f"{name}={value}" for name, value in cookies)


def request_headers(headers: Headers, cookies: Headers) -> List[Tuple[str, str]]:
    """Returns the headers to put on the wire, with cookies folded into a
    single Cookie header."""
    result = list(headers)
    if cookies:
        result.append(("Cookie", cookie_header(cookies)))
    return result
