"""Process-wide defaults applied to every exchange.

Defaults are an immutable record replaced as a whole, and every exchange
reads them exactly once when it starts. Changing them while exchanges run
on other threads is the caller's responsibility; tests should prefer
using_defaults(), which serializes scoped changes and always restores the
previous defaults.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, Optional, Tuple

from restassay.config import DEFAULT_BASE_URI, Config, base_path_setting, base_uri_setting, port_setting
from restassay.filter import Filter, as_filter
from restassay.spec import RequestSpec, SpecTemplate
from restassay.transport import Transport
from restassay.validation import Expectation, ResponseSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Defaults:
    """Settings used by exchanges that do not set them explicitly.

    Attributes:
        base_uri: Scheme and host requests are sent to.
        port: Port added to base URIs without one. When None, port 8080 is
            used for localhost and the scheme's port otherwise.
        base_path: Path prefix of every request.
        url_encoding_enabled: Percent-encode paths, parameters and forms.
        request_spec: Template merged into every request.
        response_spec: Expectations validated on every response.
        filters: Filters run after the filters of the request.
        config: Config of requests that do not carry one.
        transport: Transport of every exchange. When None, a transport
            based on the shared httpx client is used.
    """

    base_uri: str = DEFAULT_BASE_URI
    port: Optional[int] = None
    base_path: str = ""
    url_encoding_enabled: bool = True
    request_spec: Optional[SpecTemplate] = None
    response_spec: Tuple[Expectation, ...] = ()
    filters: Tuple[Filter, ...] = ()
    config: Config = field(default_factory=Config)
    transport: Optional[Transport] = None


def from_environment() -> Defaults:
    """Returns defaults configured by RESTASSAY_* environment variables.

    Raises:
        ValueError: If RESTASSAY_PORT is not a number.
    """
    return Defaults(
        base_uri=base_uri_setting().value,
        port=port_setting(),
        base_path=base_path_setting().value,
    )


DEFAULTS: Optional[Defaults] = None
_lock = threading.Lock()
_scope_lock = threading.RLock()


def current_defaults() -> Defaults:
    """Returns the defaults, reading the environment on first use."""
    global DEFAULTS
    with _lock:
        if DEFAULTS is None:
            DEFAULTS = from_environment()
        return DEFAULTS


def _normalize(changes: Dict[str, Any]) -> Dict[str, Any]:
    request_spec = changes.get("request_spec")
    if isinstance(request_spec, RequestSpec):
        changes["request_spec"] = SpecTemplate.from_request_spec(request_spec)
    response_spec = changes.get("response_spec")
    if isinstance(response_spec, ResponseSpec):
        changes["response_spec"] = response_spec.expectations
    elif response_spec is None and "response_spec" in changes:
        changes["response_spec"] = ()
    if "filters" in changes:
        changes["filters"] = tuple(as_filter(f) for f in changes["filters"] or ())
    return changes


def set_defaults(**changes: Any) -> Defaults:
    """Replaces the given fields of the defaults and returns the result.

    request_spec accepts a SpecTemplate or a RequestSpec, response_spec a
    ResponseSpec.
    """
    global DEFAULTS
    changes = _normalize(changes)
    updated = replace(current_defaults(), **changes)
    with _lock:
        DEFAULTS = updated
    logger.debug("defaults changed: %s", ", ".join(sorted(changes)))
    return updated


def reset():
    """Restores the defaults configured by the environment."""
    global DEFAULTS
    with _lock:
        DEFAULTS = None


@contextmanager
def using_defaults(**changes: Any) -> Iterator[Defaults]:
    """Applies changes to the defaults for the duration of a with block.

    Scopes opened on different threads run one after the other; the previous
    defaults are restored when the block exits, including on exceptions.
    """
    global DEFAULTS
    with _scope_lock:
        previous = current_defaults()
        try:
            yield set_defaults(**changes)
        finally:
            with _lock:
                DEFAULTS = previous
