"""Resolution of CSRF tokens for state-changing requests.

Before a request other than GET or HEAD is sent, the resolver fetches the
configured token page, scrapes a token from a hidden input field or from
meta tags, and injects it into the outgoing request as a form field or as
a header.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Tuple

from restassay.config import DEFAULT_CSRF_HEADER_NAME, CsrfConfig, CsrfPrioritization
from restassay.cookies import Cookie
from restassay.error import CsrfTokenNotFound
from restassay.response import Response

if TYPE_CHECKING:
    from restassay.spec import RequestSpec

logger = logging.getLogger(__name__)

BYPASSED_METHODS = frozenset(["GET", "HEAD"])


@enum.unique
class CsrfState(enum.Enum):
    DISABLED = 0
    AUTO_GET = 1
    SCRAPE = 2
    RESOLVED = 3
    INJECT = 4
    FAILED = 5

    def __repr__(self):
        return self.name

    def __str__(self):
        return self.name


@enum.unique
class CsrfCarrier(enum.Enum):
    HEADER = "header"
    FORM = "form"

    def __repr__(self):
        return self.name

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class CsrfToken:
    carrier: CsrfCarrier
    name: str
    value: str


@dataclass
class CsrfSession:
    """State of token resolution for one outer request."""

    token_path: str
    state: CsrfState = CsrfState.AUTO_GET
    token: Optional[CsrfToken] = None
    cookies: List[Cookie] = field(default_factory=list)

    def transition(self, state: CsrfState):
        logger.debug("csrf %s: %s -> %s", self.token_path, self.state, state)
        self.state = state


class _TokenPageParser(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.inputs: List[Tuple[str, str]] = []
        self.metas: Dict[str, str] = {}

    def handle_starttag(self, tag, attrs):
        attributes = {name.lower(): value or "" for name, value in attrs}
        name = attributes.get("name")
        if not name:
            return
        if tag == "input":
            self.inputs.append((name, attributes.get("value", "")))
        elif tag == "meta":
            self.metas.setdefault(name, attributes.get("content", ""))


def token_meta_name(meta_tag_name: str) -> str:
    """Returns the name of the meta tag holding the token, given the name
    of the meta tag advertising the header ("_csrf_header" -> "_csrf")."""
    if meta_tag_name.endswith("_header"):
        return meta_tag_name[: -len("_header")]
    return "_csrf"


def scrape(
    html: str, config: CsrfConfig
) -> Tuple[Optional[CsrfToken], Optional[CsrfToken]]:
    """Returns the form token and the header token found in a page."""
    parser = _TokenPageParser()
    parser.feed(html)
    parser.close()

    form = None
    if config.input_field_name:
        for name, value in parser.inputs:
            if name == config.input_field_name:
                form = CsrfToken(CsrfCarrier.FORM, name, value)
                break
    else:
        for name, value in parser.inputs:
            if "csrf" in name.lower():
                form = CsrfToken(CsrfCarrier.FORM, name, value)
                break

    header = None
    token = parser.metas.get(token_meta_name(config.meta_tag_name))
    advertised = parser.metas.get(config.meta_tag_name)
    if token and (advertised or config.header_name):
        name = config.header_name or advertised or DEFAULT_CSRF_HEADER_NAME
        header = CsrfToken(CsrfCarrier.HEADER, name, token)
    return form, header


class CsrfResolver:
    """Drives token resolution for outer requests.

    fetch is called with the token path and returns the token page.
    """

    def __init__(self, config: CsrfConfig, fetch: Callable[[str], Response]):
        self.config = config
        self.fetch = fetch

    def resolve(self, method: str) -> Optional[CsrfSession]:
        """Returns None for GET and HEAD requests, which never carry a token.

        Raises:
            CsrfTokenNotFound: if the token page exposes no usable token.
        """
        if method.upper() in BYPASSED_METHODS:
            return None
        if not self.config.enabled:
            return CsrfSession("", CsrfState.DISABLED)

        token_path = self.config.token_path or ""
        session = CsrfSession(token_path)
        page = self.fetch(token_path)
        session.cookies = page.cookies
        session.transition(CsrfState.SCRAPE)

        form, header = scrape(page.text, self.config)
        if form and header:
            prefer_form = self.config.prioritization is CsrfPrioritization.FORM
            session.token = form if prefer_form else header
        else:
            session.token = form or header

        if session.token is None:
            session.transition(CsrfState.FAILED)
            raise self._not_found(token_path, page.text)
        session.transition(CsrfState.RESOLVED)
        return session

    def _not_found(self, token_path: str, body: str) -> CsrfTokenNotFound:
        field_name = self.config.input_field_name
        if field_name:
            return CsrfTokenNotFound(
                "Couldn't find a the CSRF token in response. Expecting either an "
                f'input field with name "{field_name}" or a meta tag with name '
                f'"{self.config.meta_tag_name}". Response was:\n{body}',
                field_name,
                body,
            )
        return CsrfTokenNotFound(
            f'Not found: no CSRF input field or meta tag named "{self.config.meta_tag_name}" '
            f'could be detected in the response of "{token_path}".',
            None,
            body,
        )

    @staticmethod
    def inject(session: CsrfSession, request: RequestSpec):
        """Attaches the resolved token and the token page cookies to request."""
        if session.state is not CsrfState.RESOLVED or session.token is None:
            return
        token = session.token
        if token.carrier is CsrfCarrier.FORM:
            request.state.form_params.set(token.name, token.value)
        else:
            request.state.headers.set(token.name, token.value)
        for cookie in session.cookies:
            if cookie.name not in request.state.cookies:
                request.state.cookies.add(cookie.name, Cookie(cookie.name, cookie.value))
        session.transition(CsrfState.INJECT)
