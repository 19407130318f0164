"""Human-readable renderings of requests and responses, and filters that
log them."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional, Tuple

from restassay.filter import Filter, FilterContext
from restassay.response import Response

if TYPE_CHECKING:
    from restassay.spec import RequestSpec
    from restassay.validation import ResponseSpec

logger = logging.getLogger(__name__)

NONE = "<none>"


def _pairs(label: str, pairs: Iterable[Tuple[str, Any]]) -> str:
    lines = [f"{name}={value}" for name, value in pairs]
    if not lines:
        return f"{label}{NONE}"
    return label + "\n\t\t\t".join(lines)


def _render_body(body: Any) -> str:
    if body is None:
        return NONE
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", errors="replace")
    if isinstance(body, (dict, list)):
        return json.dumps(body, indent=4)
    return str(body)


def format_request(request: RequestSpec) -> str:
    """Renders the method, URI, parameters, headers, cookies and body of a
    request."""
    state = request.state
    try:
        uri = request.uri
    except ValueError as e:
        uri = f"<unresolved: {e}>"
    lines = [
        f"Request method:\t{request.method or NONE}",
        f"Request URI:\t{uri}",
        _pairs("Request params:\t", state.params.items()),
        _pairs("Query params:\t", state.query_params.items()),
        _pairs("Form params:\t", state.form_params.items()),
        _pairs("Path params:\t", state.path_params.items()),
        _pairs("Headers:\t\t", state.headers.items()),
        _pairs("Cookies:\t\t", ((e.value.name, e.value.value) for e in state.cookies)),
        f"Body:\t\t\t{_render_body(state.body)}",
    ]
    return "\n".join(lines)


def format_response(response: Response) -> str:
    """Renders the status line, headers and body of a response."""
    lines = [response.status_line]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    text = response.text
    if text:
        lines.append("")
        lines.append(text)
    return "\n".join(lines)


class RequestLoggingFilter(Filter):
    """Logs every request before it proceeds down the chain."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level

    def filter(
        self, request: RequestSpec, response_spec: ResponseSpec, ctx: FilterContext
    ) -> Response:
        self.log.log(self.level, "%s", format_request(request))
        return ctx.proceed(request, response_spec)


class ResponseLoggingFilter(Filter):
    """Logs every response returned by the rest of the chain."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level

    def filter(
        self, request: RequestSpec, response_spec: ResponseSpec, ctx: FilterContext
    ) -> Response:
        response = ctx.proceed(request, response_spec)
        self.log.log(self.level, "%s", format_response(response))
        return response
