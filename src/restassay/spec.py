"""Request specifications, reusable templates and the merge between them.

A RequestSpec accumulates the inputs of one exchange. A SpecTemplate is an
immutable snapshot of the same fields that can be merged into any number of
request specs (or into other templates). Merging appends multi-valued
entries and fills singular fields that are still unset, so the first
established value wins. Every entry contributed by a template is tagged
with its origin, which makes merging the same template twice a no-op.
"""

from __future__ import annotations

import itertools
import json
import logging
from dataclasses import dataclass, field, replace
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from restassay.auth import Auth, BasicAuth, TokenAuth
from restassay.config import DEFAULT_BASE_URI, Config
from restassay.content import ContentType, charset, content_type_header
from restassay.cookies import Cookie
from restassay.error import SpecUsageError
from restassay.filter import Filter, as_filter
from restassay.multimap import MultiMap
from restassay.url import build_uri, form_body
from restassay.validation import ResponseSpec

if TYPE_CHECKING:
    from restassay.response import Response

logger = logging.getLogger(__name__)

# Methods whose generic parameters are sent in the query string; other
# methods send them as form fields.
QUERY_METHODS = frozenset(["GET", "HEAD", "DELETE", "OPTIONS"])

SINGULAR_FIELDS = (
    "base_uri",
    "base_path",
    "port",
    "content_type",
    "body",
    "auth",
    "url_encoding_enabled",
    "config",
    "csrf_token_path",
    "csrf_input_field_name",
)

MULTIMAP_FIELDS = (
    "params",
    "query_params",
    "form_params",
    "path_params",
    "headers",
    "cookies",
    "filters",
)


def _multimap() -> MultiMap:
    return MultiMap()


def _case_insensitive_multimap() -> MultiMap:
    return MultiMap(case_insensitive=True)


@dataclass
class SpecState:
    """The fields shared by request specs and templates.

    A singular field set to None is unset. Cookie entries hold Cookie
    values, filter entries hold Filter values.
    """

    base_uri: Optional[str] = None
    base_path: Optional[str] = None
    port: Optional[int] = None
    content_type: Optional[str] = None
    body: Any = None
    auth: Optional[Auth] = None
    url_encoding_enabled: Optional[bool] = None
    config: Optional[Config] = None
    csrf_token_path: Optional[str] = None
    csrf_input_field_name: Optional[str] = None
    params: MultiMap = field(default_factory=_multimap)
    query_params: MultiMap = field(default_factory=_multimap)
    form_params: MultiMap = field(default_factory=_multimap)
    path_params: MultiMap = field(default_factory=_multimap)
    headers: MultiMap = field(default_factory=_case_insensitive_multimap)
    cookies: MultiMap = field(default_factory=_case_insensitive_multimap)
    filters: MultiMap = field(default_factory=_multimap)

    def copy(self) -> SpecState:
        return replace(self, **{name: getattr(self, name).copy() for name in MULTIMAP_FIELDS})

    def tagged(self, template: int) -> SpecState:
        """Returns a copy where untagged entries are attributed to template."""
        return replace(
            self,
            **{name: getattr(self, name).tagged(template, name) for name in MULTIMAP_FIELDS},
        )


def merge_state(active: SpecState, template: SpecState) -> SpecState:
    """Merges template into a copy of active and returns it.

    Multi-valued entries are appended in order unless their origin is
    already present. Cookies are keyed by name and existing cookies win.
    Singular fields are only taken from the template when unset.
    """
    merged = active.copy()
    for name in MULTIMAP_FIELDS:
        target: MultiMap = getattr(merged, name)
        seen = target.origins()
        for entry in getattr(template, name):
            if entry.origin is not None and entry.origin in seen:
                continue
            if name == "cookies" and entry.name in target:
                continue
            target.append(entry)
    for name in SINGULAR_FIELDS:
        if getattr(merged, name) is None:
            setattr(merged, name, getattr(template, name))
    return merged


def _flatten(values: Sequence[Any]) -> List[Any]:
    result: List[Any] = []
    for value in values:
        if isinstance(value, (list, tuple)):
            result.extend(value)
        else:
            result.append(value)
    return result


_template_ids = itertools.count(1)


class SpecTemplate:
    """Immutable, reusable request inputs.

    Create templates with SpecTemplateBuilder or from an existing request
    spec with SpecTemplate.from_request_spec.
    """

    __slots__ = ("_id", "_state")

    def __init__(self, state: Optional[SpecState] = None):
        self._id = next(_template_ids)
        self._state = (state or SpecState()).tagged(self._id)

    @classmethod
    def from_request_spec(cls, spec: RequestSpec) -> SpecTemplate:
        return cls(spec.state)

    @property
    def id(self) -> int:
        return self._id

    @property
    def state(self) -> SpecState:
        return self._state.copy()

    def __repr__(self):
        return f"<SpecTemplate {self._id}>"


TemplateLike = Union[SpecTemplate, "RequestSpec"]


def _template_state(template: TemplateLike) -> Tuple[int, SpecState]:
    if isinstance(template, SpecTemplate):
        return template.id, template._state
    if isinstance(template, RequestSpec):
        converted = SpecTemplate.from_request_spec(template)
        return converted.id, converted._state
    raise TypeError(f"cannot merge {type(template).__name__} into a request spec")


def merge(active: RequestSpec, template: TemplateLike) -> RequestSpec:
    """Returns a new request spec: active with template merged into it.

    Neither argument is modified.
    """
    merged = active.copy()
    merged.spec(template)
    return merged


class SpecTemplateBuilder:
    """Builds a SpecTemplate.

    Singular setters overwrite the previous value; add_spec only fills the
    singular fields that were not set on the builder.
    """

    def __init__(self):
        self._state = SpecState()

    def add_param(self, name: str, *values: Any) -> SpecTemplateBuilder:
        self._state.params.add(name, *_flatten(values or ("",)))
        return self

    def add_params(self, params: Mapping[str, Any]) -> SpecTemplateBuilder:
        for name, value in params.items():
            self.add_param(name, value)
        return self

    def add_query_param(self, name: str, *values: Any) -> SpecTemplateBuilder:
        self._state.query_params.add(name, *_flatten(values or ("",)))
        return self

    def add_form_param(self, name: str, *values: Any) -> SpecTemplateBuilder:
        self._state.form_params.add(name, *_flatten(values or ("",)))
        return self

    def add_path_param(self, name: str, value: Any) -> SpecTemplateBuilder:
        self._state.path_params.add(name, value)
        return self

    def add_header(self, name: str, *values: Any) -> SpecTemplateBuilder:
        self._state.headers.add(name, *(str(v) for v in values))
        return self

    def add_cookie(self, cookie: Union[Cookie, str], value: str = "") -> SpecTemplateBuilder:
        if not isinstance(cookie, Cookie):
            cookie = Cookie(cookie, str(value))
        self._state.cookies.add(cookie.name, cookie)
        return self

    def add_filter(self, f: Any) -> SpecTemplateBuilder:
        f = as_filter(f)
        self._state.filters.add(f.name, f)
        return self

    def set_auth(self, auth: Auth) -> SpecTemplateBuilder:
        self._state.auth = auth
        return self

    def set_body(self, body: Any) -> SpecTemplateBuilder:
        self._state.body = body
        return self

    def set_content_type(self, content_type: Union[ContentType, str]) -> SpecTemplateBuilder:
        self._state.content_type = content_type_header(content_type)
        return self

    def set_url_encoding_enabled(self, enabled: bool) -> SpecTemplateBuilder:
        self._state.url_encoding_enabled = enabled
        return self

    def set_base_uri(self, base_uri: str) -> SpecTemplateBuilder:
        self._state.base_uri = base_uri
        return self

    def set_base_path(self, base_path: str) -> SpecTemplateBuilder:
        self._state.base_path = base_path
        return self

    def set_port(self, port: int) -> SpecTemplateBuilder:
        self._state.port = port
        return self

    def set_config(self, config: Config) -> SpecTemplateBuilder:
        self._state.config = config
        return self

    def add_spec(self, template: TemplateLike) -> SpecTemplateBuilder:
        """Embeds another template; its entries keep their own origin."""
        template_id, state = _template_state(template)
        self._state = merge_state(self._state, state)
        logger.debug("embedded template %d in template builder", template_id)
        return self

    def build(self) -> SpecTemplate:
        return SpecTemplate(self._state)


class RequestSpec:
    """Mutable description of one pending exchange.

    Builder methods return the spec itself so calls can be chained. Filters
    receive the spec of the exchange being executed: they may read method,
    path, uri and state, and rewrite the request through the same builder
    methods.
    """

    def __init__(self, state: Optional[SpecState] = None):
        self.state = state or SpecState()
        self.method: Optional[str] = None
        self.path = ""
        self.path_args: Tuple[Any, ...] = ()
        self._response_spec: Optional[ResponseSpec] = None

    def copy(self) -> RequestSpec:
        spec = RequestSpec(self.state.copy())
        spec.method = self.method
        spec.path = self.path
        spec.path_args = self.path_args
        if self._response_spec is not None:
            spec._response_spec = ResponseSpec(self._response_spec, spec)
        return spec

    # Parameters

    def param(self, name: str, *values: Any) -> RequestSpec:
        """Adds a parameter sent in the query string for GET, HEAD, DELETE
        and OPTIONS requests and as a form field otherwise."""
        self.state.params.add(name, *_flatten(values or ("",)))
        return self

    def params(self, params: Union[Mapping[str, Any], None] = None, **kwargs: Any) -> RequestSpec:
        for name, value in dict(params or {}, **kwargs).items():
            self.param(name, value)
        return self

    def query_param(self, name: str, *values: Any) -> RequestSpec:
        self.state.query_params.add(name, *_flatten(values or ("",)))
        return self

    def query_params(self, params: Union[Mapping[str, Any], None] = None, **kwargs: Any) -> RequestSpec:
        for name, value in dict(params or {}, **kwargs).items():
            self.query_param(name, value)
        return self

    def form_param(self, name: str, *values: Any) -> RequestSpec:
        self.state.form_params.add(name, *_flatten(values or ("",)))
        return self

    def form_params(self, params: Union[Mapping[str, Any], None] = None, **kwargs: Any) -> RequestSpec:
        for name, value in dict(params or {}, **kwargs).items():
            self.form_param(name, value)
        return self

    def path_param(self, name: str, value: Any) -> RequestSpec:
        self.state.path_params.set(name, value)
        return self

    def path_params(self, params: Union[Mapping[str, Any], None] = None, **kwargs: Any) -> RequestSpec:
        for name, value in dict(params or {}, **kwargs).items():
            self.path_param(name, value)
        return self

    # Headers and cookies

    def header(self, name: str, *values: Any) -> RequestSpec:
        self.state.headers.add(name, *(str(v) for v in values))
        return self

    def headers(self, headers: Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]) -> RequestSpec:
        items = headers.items() if isinstance(headers, Mapping) else headers
        for name, value in items:
            self.header(name, value)
        return self

    def cookie(self, cookie: Union[Cookie, str], value: str = "") -> RequestSpec:
        if not isinstance(cookie, Cookie):
            cookie = Cookie(cookie, str(value))
        self.state.cookies.set(cookie.name, cookie)
        return self

    def cookies(self, cookies: Union[Mapping[str, Any], Iterable[Cookie]]) -> RequestSpec:
        if isinstance(cookies, Mapping):
            for name, value in cookies.items():
                self.cookie(name, value)
        else:
            for cookie in cookies:
                self.cookie(cookie)
        return self

    # Body and singular settings

    def body(self, body: Any) -> RequestSpec:
        """Sets the body: bytes are sent verbatim, text is encoded with the
        content-type charset, dicts and lists are serialized as JSON."""
        self.state.body = body
        return self

    def content_type(self, content_type: Union[ContentType, str]) -> RequestSpec:
        self.state.content_type = content_type_header(content_type)
        return self

    def auth(self, auth: Auth) -> RequestSpec:
        self.state.auth = auth
        return self

    def basic(self, username: str, password: str) -> RequestSpec:
        return self.auth(BasicAuth(username, password))

    def preemptive_basic(self, username: str, password: str) -> RequestSpec:
        return self.auth(BasicAuth(username, password, preemptive=True))

    def oauth2(self, token: str) -> RequestSpec:
        return self.auth(TokenAuth(token))

    def token(self, token: str, scheme: str = "Bearer") -> RequestSpec:
        return self.auth(TokenAuth(token, scheme))

    def url_encoding_enabled(self, enabled: bool) -> RequestSpec:
        self.state.url_encoding_enabled = enabled
        return self

    def base_uri(self, base_uri: str) -> RequestSpec:
        self.state.base_uri = base_uri
        return self

    def base_path(self, base_path: str) -> RequestSpec:
        self.state.base_path = base_path
        return self

    def port(self, port: int) -> RequestSpec:
        self.state.port = port
        return self

    def config(self, config: Config) -> RequestSpec:
        self.state.config = config
        return self

    def csrf(self, token_path: str, input_field_name: Optional[str] = None) -> RequestSpec:
        """Resolves a CSRF token from the page at token_path before sending
        state-changing requests. Overrides the token path and field name of
        the effective config."""
        self.state.csrf_token_path = token_path
        self.state.csrf_input_field_name = input_field_name
        return self

    def filter(self, f: Union[Filter, Callable[..., Response]]) -> RequestSpec:
        f = as_filter(f)
        self.state.filters.add(f.name, f)
        return self

    def filters(self, *filters: Any) -> RequestSpec:
        for f in _flatten(filters):
            self.filter(f)
        return self

    def spec(self, template: TemplateLike) -> RequestSpec:
        """Merges a template into this spec."""
        template_id, state = _template_state(template)
        before = sum(len(getattr(self.state, name)) for name in MULTIMAP_FIELDS)
        self.state = merge_state(self.state, state)
        after = sum(len(getattr(self.state, name)) for name in MULTIMAP_FIELDS)
        logger.debug("merged template %d: %d entries added", template_id, after - before)
        return self

    specification = spec

    def and_(self) -> RequestSpec:
        return self

    def given(self) -> RequestSpec:
        return self

    def when(self) -> RequestSpec:
        return self

    def expect(self) -> ResponseSpec:
        """Returns the response spec validated when this request is sent."""
        if self._response_spec is None:
            self._response_spec = ResponseSpec(request=self)
        return self._response_spec

    @property
    def response_spec(self) -> ResponseSpec:
        if self._response_spec is None:
            return ResponseSpec(request=self)
        return self._response_spec

    # Derived request data

    @property
    def effective_query_params(self) -> List[Tuple[str, Any]]:
        pairs = self.state.query_params.items()
        if self._params_in_query():
            pairs = self.state.params.items() + pairs
        return pairs

    @property
    def effective_form_params(self) -> List[Tuple[str, Any]]:
        pairs = self.state.form_params.items()
        if not self._params_in_query():
            pairs = self.state.params.items() + pairs
        return pairs

    def _params_in_query(self) -> bool:
        # Generic parameters go to the query string when a body is set.
        return (self.method or "GET").upper() in QUERY_METHODS or self.state.body is not None

    @property
    def encoding_enabled(self) -> bool:
        return self.state.url_encoding_enabled is not False

    @property
    def uri(self) -> str:
        path_params: Dict[str, Any] = {}
        for name, value in self.state.path_params.items():
            path_params.setdefault(name, value)
        return build_uri(
            self.state.base_uri or DEFAULT_BASE_URI,
            self.state.port,
            self.state.base_path or "",
            self.path,
            path_params,
            self.path_args,
            self.effective_query_params,
            self.encoding_enabled,
        )

    def encoded_body(self) -> Tuple[Optional[bytes], Optional[str]]:
        """Returns the body bytes and the content type to send them with."""
        content_type = self.state.content_type or self.state.headers.get("Content-Type")
        body = self.state.body
        form = self.effective_form_params

        if body is not None and self.state.form_params:
            raise SpecUsageError(
                "You can either send form parameters OR body content in the request, not both!"
            )
        if body is None:
            if not form:
                return None, content_type
            if content_type is None:
                content_type = content_type_header(ContentType.URLENC)
            encoded = form_body(form, self.encoding_enabled)
            return encoded.encode(charset(content_type)), content_type

        if isinstance(body, (bytes, bytearray)):
            return bytes(body), content_type
        if isinstance(body, (dict, list)):
            if content_type is None:
                content_type = content_type_header(ContentType.JSON)
            body = json.dumps(body)
        elif content_type is None:
            content_type = content_type_header(ContentType.TEXT)
        return str(body).encode(charset(content_type)), content_type

    # Sending

    def request(self, method: str, path: str = "", *path_args: Any) -> Response:
        from restassay.exchange import send

        return send(self, method, path, path_args)

    def get(self, path: str = "", *path_args: Any) -> Response:
        return self.request("GET", path, *path_args)

    def post(self, path: str = "", *path_args: Any) -> Response:
        return self.request("POST", path, *path_args)

    def put(self, path: str = "", *path_args: Any) -> Response:
        return self.request("PUT", path, *path_args)

    def patch(self, path: str = "", *path_args: Any) -> Response:
        return self.request("PATCH", path, *path_args)

    def delete(self, path: str = "", *path_args: Any) -> Response:
        return self.request("DELETE", path, *path_args)

    def head(self, path: str = "", *path_args: Any) -> Response:
        return self.request("HEAD", path, *path_args)

    def options(self, path: str = "", *path_args: Any) -> Response:
        return self.request("OPTIONS", path, *path_args)

    def __repr__(self):
        if self.method:
            return f"<RequestSpec {self.method} {self.path}>"
        return "<RequestSpec>"


def given() -> RequestSpec:
    return RequestSpec()


def when() -> RequestSpec:
    return RequestSpec()


def expect() -> ResponseSpec:
    return RequestSpec().expect()
