"""Execution of exchanges.

An exchange snapshots the defaults, prepares a copy of the request spec,
runs the filter chain ending with the network send, and validates the
response against the expectations bound to the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from restassay.config import DEFAULT_PORT, Config, CsrfConfig
from restassay.csrf import CsrfResolver
from restassay.defaults import Defaults, current_defaults
from restassay.error import ValidationFailure
from restassay.filter import Filter, FilterContext, execute
from restassay.log import format_request, format_response
from restassay.response import Response
from restassay.spec import RequestSpec
from restassay.transport import Transport
from restassay.transport.httpx import HttpxTransport
from restassay.validation import ResponseSpec

logger = logging.getLogger(__name__)

Pairs = List[Tuple[str, str]]


@dataclass(frozen=True)
class WireRequest:
    """A request as handed to the transport."""

    method: str
    url: str
    headers: Pairs
    cookies: Pairs
    body: Optional[bytes]

    def with_header(self, name: str, value: str) -> WireRequest:
        headers = [h for h in self.headers if h[0].lower() != name.lower()]
        headers.append((name, value))
        return WireRequest(self.method, self.url, headers, self.cookies, self.body)


@dataclass(frozen=True)
class ExchangeContext:
    """What an exchange reads from its environment, captured when it starts."""

    defaults: Defaults
    config: Config
    transport: Transport

    @classmethod
    def capture(cls, request: RequestSpec, defaults: Defaults) -> ExchangeContext:
        config = request.state.config or defaults.config
        transport = defaults.transport or HttpxTransport(
            follow_redirects=config.redirect.follow
        )
        return cls(defaults, config, transport)


def csrf_config(request: RequestSpec, config: Config) -> CsrfConfig:
    """Returns the CSRF settings of a request: those of its config, with the
    token path and field name set through RequestSpec.csrf() taking
    precedence."""
    csrf = config.csrf
    if request.state.csrf_token_path:
        csrf = csrf.with_(
            token_path=request.state.csrf_token_path,
            input_field_name=request.state.csrf_input_field_name or csrf.input_field_name,
        )
    return csrf


def wire_request(request: RequestSpec, config: Config) -> WireRequest:
    body, content_type = request.encoded_body()
    headers: Pairs = [
        (name, str(value))
        for name, value in request.state.headers.items()
        if name.lower() != "content-type"
    ]
    if content_type:
        headers.append(("Content-Type", content_type))

    present = {name.lower() for name, _ in headers}
    auth = request.state.auth
    authorization = auth.authorization() if auth is not None else None
    if authorization and "authorization" not in present:
        headers.append(("Authorization", authorization))
        present.add("authorization")
    for name, value in config.default_headers:
        if name.lower() not in present:
            headers.append((name, value))

    cookies = [(e.value.name, e.value.value) for e in request.state.cookies]
    return WireRequest(request.method or "GET", request.uri, headers, cookies, body)


class SendFilter(Filter):
    """Last filter of every chain: resolves CSRF tokens, then sends the
    request with the transport of the exchange."""

    def __init__(self, context: ExchangeContext):
        self.context = context

    @property
    def name(self) -> str:
        return "send"

    def filter(
        self, request: RequestSpec, response_spec: ResponseSpec, ctx: FilterContext
    ) -> Response:
        config = request.state.config or self.context.config
        csrf = csrf_config(request, config)
        resolver = CsrfResolver(
            csrf, lambda path: self.fetch_token_page(request, path, csrf)
        )
        session = resolver.resolve(request.method or "GET")
        if session is not None:
            resolver.inject(session, request)
        return self.send(request, config)

    def send(self, request: RequestSpec, config: Config) -> Response:
        wire = wire_request(request, config)
        response = self._send(wire)

        auth = request.state.auth
        challenge = response.header("WWW-Authenticate")
        if (
            response.status_code == 401
            and auth is not None
            and challenge
            and not any(h[0].lower() == "authorization" for h in wire.headers)
        ):
            authorization = auth.challenge_authorization(challenge)
            if authorization:
                logger.debug("answering authentication challenge of %s", wire.url)
                response = self._send(wire.with_header("Authorization", authorization))
        return response

    def _send(self, wire: WireRequest) -> Response:
        logger.debug("sending %s %s", wire.method, wire.url)
        raw = self.context.transport.send(
            wire.method, wire.url, wire.headers, wire.cookies, wire.body
        )
        logger.debug("received %d from %s %s", raw.status_code, wire.method, wire.url)
        return Response.from_raw(raw)

    def fetch_token_page(
        self, request: RequestSpec, token_path: str, csrf: CsrfConfig
    ) -> Response:
        """GETs the CSRF token page with the location, auth and cookies of
        the outer request."""
        page = RequestSpec()
        page.method = "GET"
        page.path = token_path
        page.state.base_uri = request.state.base_uri
        page.state.port = request.state.port
        page.state.base_path = request.state.base_path
        page.state.url_encoding_enabled = request.state.url_encoding_enabled
        page.state.auth = request.state.auth
        page.state.headers.add("Accept", "text/html, */*")
        for entry in request.state.cookies:
            page.state.cookies.append(entry)

        config = request.state.config or self.context.config
        if csrf.logging_enabled:
            logger.info("%s", format_request(page))
        response = self.send(page, config)
        if csrf.logging_enabled:
            logger.info("%s", format_response(response))
        return response


def prepare(
    spec: RequestSpec,
    method: str,
    path: str,
    path_args: Sequence[Any],
    defaults: Defaults,
) -> RequestSpec:
    """Returns a copy of spec targeting method and path, with the defaults
    filled in where spec leaves them unset."""
    request = spec.copy()
    request.method = method.upper()
    request.path = path
    request.path_args = tuple(path_args)
    if defaults.request_spec is not None:
        request.spec(defaults.request_spec)

    state = request.state
    if state.base_uri is None:
        state.base_uri = defaults.base_uri
    if state.port is None:
        state.port = defaults.port
    if state.port is None and urlsplit(state.base_uri).hostname == "localhost":
        state.port = DEFAULT_PORT
    if state.base_path is None:
        state.base_path = defaults.base_path
    if state.url_encoding_enabled is None:
        state.url_encoding_enabled = defaults.url_encoding_enabled
    if state.config is None:
        state.config = defaults.config
    return request


def send(spec: RequestSpec, method: str, path: str, path_args: Sequence[Any]) -> Response:
    """Performs an exchange and validates its response.

    Raises:
        ValidationFailure: If the response does not meet the expectations.
        SpecUsageError: If the request cannot be built or a filter misuses
            its continuation.
    """
    defaults = current_defaults()
    request = prepare(spec, method, path, path_args, defaults)
    context = ExchangeContext.capture(request, defaults)

    response_spec = ResponseSpec(request.response_spec, request)
    response_spec.spec(ResponseSpec(defaults.response_spec))
    filters = [entry.value for entry in request.state.filters]
    filters.extend(defaults.filters)

    response = execute(request, response_spec, filters, SendFilter(context))
    if len(response_spec):
        try:
            response_spec.validate(response, fail_fast=context.config.fail_fast)
        except ValidationFailure:
            if context.config.log.log_if_validation_fails:
                logger.warning(
                    "validation failed for %s %s\n%s\n\n%s",
                    request.method,
                    request.path,
                    format_request(request),
                    format_response(response),
                )
            raise
    return response
