"""Declarative HTTP exchanges for API tests.

    from restassay import given, equal_to

    given().param("name", "John").get("/greet").then().status_code(200).body(
        "greeting", equal_to("Greetings John")
    )
"""

from __future__ import annotations

from restassay.auth import Auth, BasicAuth, NoAuth, TokenAuth
from restassay.config import Config, CsrfConfig, CsrfPrioritization, LogConfig, RedirectConfig, csrf_config
from restassay.content import ContentType
from restassay.cookies import Cookie
from restassay.defaults import Defaults, current_defaults, reset, set_defaults, using_defaults
from restassay.error import CsrfTokenNotFound, RestAssayError, SpecUsageError, ValidationFailure
from restassay.filter import Filter, FilterContext
from restassay.log import RequestLoggingFilter, ResponseLoggingFilter
from restassay.matchers import (
    Matcher,
    ResponseAwareMatcher,
    all_of,
    any_of,
    contains_path,
    contains_string,
    empty,
    ends_with,
    ends_with_path,
    equal_to,
    equal_to_ignoring_case,
    equal_to_path,
    greater_than,
    greater_than_or_equal_to,
    has_item,
    has_items,
    has_size,
    instance_of,
    is_,
    less_than,
    less_than_or_equal_to,
    none,
    not_,
    not_none,
    response_aware,
    starts_with,
    starts_with_path,
)
from restassay.response import Response, ResponseBuilder
from restassay.spec import RequestSpec, SpecTemplate, SpecTemplateBuilder, expect, given, merge, when
from restassay.transport import RawResponse, Transport
from restassay.validation import ResponseSpec, ValidatableResponse, validate

__all__ = [
    "Auth",
    "BasicAuth",
    "Config",
    "ContentType",
    "Cookie",
    "CsrfConfig",
    "CsrfPrioritization",
    "CsrfTokenNotFound",
    "Defaults",
    "Filter",
    "FilterContext",
    "LogConfig",
    "Matcher",
    "NoAuth",
    "RawResponse",
    "RedirectConfig",
    "RequestLoggingFilter",
    "RequestSpec",
    "Response",
    "ResponseAwareMatcher",
    "ResponseBuilder",
    "ResponseLoggingFilter",
    "ResponseSpec",
    "RestAssayError",
    "SpecTemplate",
    "SpecTemplateBuilder",
    "SpecUsageError",
    "TokenAuth",
    "Transport",
    "ValidatableResponse",
    "ValidationFailure",
    "all_of",
    "any_of",
    "contains_path",
    "contains_string",
    "csrf_config",
    "current_defaults",
    "delete",
    "empty",
    "ends_with",
    "ends_with_path",
    "equal_to",
    "equal_to_ignoring_case",
    "equal_to_path",
    "expect",
    "get",
    "given",
    "greater_than",
    "greater_than_or_equal_to",
    "has_item",
    "has_items",
    "has_size",
    "head",
    "instance_of",
    "is_",
    "less_than",
    "less_than_or_equal_to",
    "merge",
    "none",
    "not_",
    "not_none",
    "options",
    "patch",
    "post",
    "put",
    "reset",
    "response_aware",
    "set_defaults",
    "starts_with",
    "starts_with_path",
    "using_defaults",
    "validate",
    "when",
]


def get(path: str = "", *path_args) -> Response:
    return given().get(path, *path_args)


def post(path: str = "", *path_args) -> Response:
    return given().post(path, *path_args)


def put(path: str = "", *path_args) -> Response:
    return given().put(path, *path_args)


def patch(path: str = "", *path_args) -> Response:
    return given().patch(path, *path_args)


def delete(path: str = "", *path_args) -> Response:
    return given().delete(path, *path_args)


def head(path: str = "", *path_args) -> Response:
    return given().head(path, *path_args)


def options(path: str = "", *path_args) -> Response:
    return given().options(path, *path_args)
