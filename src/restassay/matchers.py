"""Matchers used by response expectations.

A matcher decides whether an extracted value is acceptable (matches) and
describes what it expects (describe). Any object exposing these two methods
is accepted where a matcher is expected; other values are compared for
equality.

Response-aware matchers need the response itself to build their comparison
value; they are resolved against the response before being applied.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sized
from typing import TYPE_CHECKING, Any, Callable, Iterable

if TYPE_CHECKING:
    from restassay.response import Response


def describe_value(value: Any) -> str:
    """Renders a value the way expectations quote it in diagnostics."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "<true>" if value else "<false>"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(describe_value(v) for v in value) + "]"
    return f"<{value}>"


class Matcher(ABC):
    @abstractmethod
    def matches(self, value: Any) -> bool: ...

    @abstractmethod
    def describe(self) -> str: ...

    def __str__(self):
        return self.describe()

    def __repr__(self):
        return f"<{type(self).__name__} {self.describe()}>"


class _Adapter(Matcher):
    """Adapts a duck-typed matcher implemented by a caller."""

    def __init__(self, delegate: Any):
        self.delegate = delegate

    def matches(self, value: Any) -> bool:
        return bool(self.delegate.matches(value))

    def describe(self) -> str:
        return str(self.delegate.describe())


class ResponseAwareMatcher(ABC):
    """A matcher factory taking the response under validation."""

    @abstractmethod
    def matcher(self, response: Response) -> Matcher: ...


class _FunctionResponseAwareMatcher(ResponseAwareMatcher):
    def __init__(self, factory: Callable[[Response], Any]):
        self.factory = factory

    def matcher(self, response: Response) -> Matcher:
        return wrap(self.factory(response))


def response_aware(factory: Callable[[Response], Any]) -> ResponseAwareMatcher:
    """Creates a response-aware matcher from a function that returns a
    matcher (or a value to compare with) given the response."""
    return _FunctionResponseAwareMatcher(factory)


def wrap(value: Any) -> Any:
    """Returns value as a matcher. Plain values are compared for equality."""
    if isinstance(value, (Matcher, ResponseAwareMatcher)):
        return value
    if callable(getattr(value, "matches", None)) and callable(
        getattr(value, "describe", None)
    ):
        return _Adapter(value)
    return EqualTo(value)


def resolve(matcher: Any, response: Response) -> Matcher:
    """Returns a concrete matcher, building response-aware ones first."""
    matcher = wrap(matcher)
    if isinstance(matcher, ResponseAwareMatcher):
        return wrap(matcher.matcher(response))
    return matcher


class EqualTo(Matcher):
    def __init__(self, expected: Any):
        self.expected = expected

    def matches(self, value: Any) -> bool:
        if isinstance(self.expected, tuple) and isinstance(value, list):
            return list(self.expected) == value
        return value == self.expected

    def describe(self) -> str:
        return describe_value(self.expected)


class Is(Matcher):
    def __init__(self, matcher: Matcher):
        self.matcher = matcher

    def matches(self, value: Any) -> bool:
        return self.matcher.matches(value)

    def describe(self) -> str:
        return "is " + self.matcher.describe()


class Not(Matcher):
    def __init__(self, matcher: Matcher):
        self.matcher = matcher

    def matches(self, value: Any) -> bool:
        return not self.matcher.matches(value)

    def describe(self) -> str:
        return "not " + self.matcher.describe()


class IsNone(Matcher):
    def matches(self, value: Any) -> bool:
        return value is None

    def describe(self) -> str:
        return "null"


class _StringMatcher(Matcher):
    relation = ""

    def __init__(self, substring: str):
        self.substring = substring

    def matches(self, value: Any) -> bool:
        return isinstance(value, str) and self._check(value)

    def _check(self, value: str) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        return f"a string {self.relation} {describe_value(self.substring)}"


class ContainsString(_StringMatcher):
    relation = "containing"

    def _check(self, value: str) -> bool:
        return self.substring in value


class StartsWith(_StringMatcher):
    relation = "starting with"

    def _check(self, value: str) -> bool:
        return value.startswith(self.substring)


class EndsWith(_StringMatcher):
    relation = "ending with"

    def _check(self, value: str) -> bool:
        return value.endswith(self.substring)


class EqualToIgnoringCase(_StringMatcher):
    def _check(self, value: str) -> bool:
        return value.casefold() == self.substring.casefold()

    def describe(self) -> str:
        return f"a string equal to {describe_value(self.substring)} ignoring case"


class OrderingComparison(Matcher):
    def __init__(
        self, bound: Any, check: Callable[[Any, Any], bool], relation: str
    ):
        self.bound = bound
        self.check = check
        self.relation = relation

    def matches(self, value: Any) -> bool:
        if value is None:
            return False
        try:
            return self.check(value, self.bound)
        except TypeError:
            return False

    def describe(self) -> str:
        return f"a value {self.relation} {describe_value(self.bound)}"


class HasItem(Matcher):
    def __init__(self, matcher: Matcher):
        self.matcher = matcher

    def matches(self, value: Any) -> bool:
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            return False
        return any(self.matcher.matches(item) for item in value)

    def describe(self) -> str:
        return "a collection containing " + self.matcher.describe()


class HasSize(Matcher):
    def __init__(self, matcher: Matcher):
        self.matcher = matcher

    def matches(self, value: Any) -> bool:
        return isinstance(value, Sized) and self.matcher.matches(len(value))

    def describe(self) -> str:
        return "a collection with size " + self.matcher.describe()


class Empty(Matcher):
    def matches(self, value: Any) -> bool:
        return isinstance(value, Sized) and len(value) == 0

    def describe(self) -> str:
        return "an empty collection"


class InstanceOf(Matcher):
    def __init__(self, cls: type):
        self.cls = cls

    def matches(self, value: Any) -> bool:
        return isinstance(value, self.cls)

    def describe(self) -> str:
        return "an instance of " + self.cls.__name__


class AllOf(Matcher):
    def __init__(self, matchers: Iterable[Matcher]):
        self.matchers = list(matchers)

    def matches(self, value: Any) -> bool:
        return all(m.matches(value) for m in self.matchers)

    def describe(self) -> str:
        return "(" + " and ".join(m.describe() for m in self.matchers) + ")"


class AnyOf(Matcher):
    def __init__(self, matchers: Iterable[Matcher]):
        self.matchers = list(matchers)

    def matches(self, value: Any) -> bool:
        return any(m.matches(value) for m in self.matchers)

    def describe(self) -> str:
        return "(" + " or ".join(m.describe() for m in self.matchers) + ")"


def _plain(value: Any) -> Matcher:
    matcher = wrap(value)
    if isinstance(matcher, ResponseAwareMatcher):
        raise TypeError("response-aware matchers cannot be nested")
    return matcher


def equal_to(expected: Any) -> Matcher:
    return EqualTo(expected)


def is_(value: Any) -> Matcher:
    return Is(_plain(value))


def not_(value: Any) -> Matcher:
    return Not(_plain(value))


def none() -> Matcher:
    return IsNone()


def not_none() -> Matcher:
    return Not(IsNone())


def contains_string(substring: str) -> Matcher:
    return ContainsString(substring)


def starts_with(prefix: str) -> Matcher:
    return StartsWith(prefix)


def ends_with(suffix: str) -> Matcher:
    return EndsWith(suffix)


def equal_to_ignoring_case(expected: str) -> Matcher:
    return EqualToIgnoringCase(expected)


def greater_than(bound: Any) -> Matcher:
    return OrderingComparison(bound, lambda v, b: v > b, "greater than")


def greater_than_or_equal_to(bound: Any) -> Matcher:
    return OrderingComparison(bound, lambda v, b: v >= b, "equal to or greater than")


def less_than(bound: Any) -> Matcher:
    return OrderingComparison(bound, lambda v, b: v < b, "less than")


def less_than_or_equal_to(bound: Any) -> Matcher:
    return OrderingComparison(bound, lambda v, b: v <= b, "less than or equal to")


def has_item(item: Any) -> Matcher:
    return HasItem(_plain(item))


def has_items(*items: Any) -> Matcher:
    return AllOf(HasItem(_plain(item)) for item in items)


def has_size(size: Any) -> Matcher:
    return HasSize(_plain(size))


def empty() -> Matcher:
    return Empty()


def instance_of(cls: type) -> Matcher:
    return InstanceOf(cls)


def all_of(*matchers: Any) -> Matcher:
    return AllOf(_plain(m) for m in matchers)


def any_of(*matchers: Any) -> Matcher:
    return AnyOf(_plain(m) for m in matchers)


def equal_to_path(path: str) -> ResponseAwareMatcher:
    """Matches values equal to the value at another path of the response."""
    return response_aware(lambda response: equal_to(response.path(path)))


def starts_with_path(path: str) -> ResponseAwareMatcher:
    """Matches strings starting with the value at another path."""
    return response_aware(lambda response: starts_with(response.path(path)))


def ends_with_path(path: str) -> ResponseAwareMatcher:
    return response_aware(lambda response: ends_with(response.path(path)))


def contains_path(path: str) -> ResponseAwareMatcher:
    return response_aware(lambda response: contains_string(response.path(path)))
