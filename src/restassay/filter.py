"""Filters intercept an exchange between the request spec and the network.

Filters run in order. Each one receives a FilterContext and either calls
ctx.proceed() to hand the request to the rest of the chain, or returns its
own Response, which skips every remaining filter and the network send.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Sequence

from restassay.error import SpecUsageError
from restassay.response import Response

if TYPE_CHECKING:
    from restassay.spec import RequestSpec
    from restassay.validation import ResponseSpec

logger = logging.getLogger(__name__)


class Filter(ABC):
    """A named interceptor of exchanges."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def filter(
        self, request: RequestSpec, response_spec: ResponseSpec, ctx: FilterContext
    ) -> Response:
        """Returns the response of the exchange, usually the one obtained
        from ctx.proceed(request, response_spec)."""

    def __repr__(self):
        return f"<Filter {self.name}>"


class FunctionFilter(Filter):
    """Filter implemented by a function taking (request, response_spec, ctx)."""

    def __init__(self, fn: Callable[..., Response], name: str = ""):
        self.fn = fn
        self._name = name or getattr(fn, "__qualname__", type(fn).__name__)

    @property
    def name(self) -> str:
        return self._name

    def filter(
        self, request: RequestSpec, response_spec: ResponseSpec, ctx: FilterContext
    ) -> Response:
        return self.fn(request, response_spec, ctx)


def as_filter(f: Any) -> Filter:
    if isinstance(f, Filter):
        return f
    if callable(f):
        return FunctionFilter(f)
    raise TypeError(f"not a filter: {f!r}")


class FilterContext:
    """Continuation handed to a filter.

    proceed() runs the next filter of the chain and may be called at most
    once. Values stored in ctx.values are shared by every filter of the
    exchange.
    """

    __slots__ = ("_chain", "_index", "_consumed", "values")

    def __init__(self, chain: Sequence[Filter], index: int, values: Dict[str, Any]):
        self._chain = chain
        self._index = index
        self._consumed = False
        self.values = values

    @property
    def remaining(self) -> List[str]:
        """Names of the filters that proceed() would run."""
        return [f.name for f in self._chain[self._index :]]

    def proceed(self, request: RequestSpec, response_spec: ResponseSpec) -> Response:
        if self._consumed:
            raise SpecUsageError(
                f"filter {self._chain[self._index - 1].name} proceeded more than once"
            )
        self._consumed = True
        if self._index >= len(self._chain):
            raise SpecUsageError("no filter left to proceed to")
        return _run(self._chain, self._index, request, response_spec, self.values)


def _run(
    chain: Sequence[Filter],
    index: int,
    request: RequestSpec,
    response_spec: ResponseSpec,
    values: Dict[str, Any],
) -> Response:
    current = chain[index]
    logger.debug("running filter %s (%d/%d)", current.name, index + 1, len(chain))
    response = current.filter(
        request, response_spec, FilterContext(chain, index + 1, values)
    )
    if not isinstance(response, Response):
        raise SpecUsageError(
            f"filter {current.name} returned {type(response).__name__} instead of a Response"
        )
    return response


def execute(
    request: RequestSpec,
    response_spec: ResponseSpec,
    filters: Sequence[Any],
    terminal: Filter,
) -> Response:
    """Runs filters in order followed by the terminal filter, which performs
    the network send. Exceptions raised by any filter propagate unchanged."""
    chain = [as_filter(f) for f in filters]
    chain.append(terminal)
    return _run(chain, 0, request, response_spec, {})
