import os
import threading
from unittest import mock

import pytest

from restassay import defaults, expect, given
from restassay.defaults import (
    Defaults,
    current_defaults,
    reset,
    set_defaults,
    using_defaults,
)
from restassay.filter import FunctionFilter
from restassay.spec import SpecTemplate


@pytest.fixture(autouse=True)
def restore_defaults():
    previous = defaults.DEFAULTS
    yield
    defaults.DEFAULTS = previous


@mock.patch.dict(
    os.environ,
    {"RESTASSAY_BASE_URI": "http://api.example.com", "RESTASSAY_PORT": "9000"},
)
def test_defaults_from_environment():
    reset()
    d = current_defaults()
    assert d.base_uri == "http://api.example.com"
    assert d.port == 9000
    assert d.base_path == ""
    assert d.url_encoding_enabled


@mock.patch.dict(os.environ, {}, clear=True)
def test_reset_restores_environment_defaults():
    set_defaults(base_uri="http://other")
    reset()
    assert current_defaults() == Defaults()


def test_set_defaults_normalizes_values():
    d = set_defaults(
        request_spec=given().header("X", "1"),
        response_spec=expect().status_code(200),
        filters=[lambda request, response_spec, ctx: ctx.proceed(request, response_spec)],
    )
    assert isinstance(d.request_spec, SpecTemplate)
    assert len(d.response_spec) == 1
    assert isinstance(d.filters[0], FunctionFilter)

    d = set_defaults(response_spec=None)
    assert d.response_spec == ()


def test_using_defaults_restores_on_exit():
    before = current_defaults()
    with using_defaults(base_path="/v2") as scoped:
        assert scoped.base_path == "/v2"
        assert current_defaults() is scoped
    assert current_defaults() is before


def test_using_defaults_restores_on_exception():
    before = current_defaults()
    with pytest.raises(RuntimeError):
        with using_defaults(base_path="/v2"):
            raise RuntimeError("boom")
    assert current_defaults() is before


def test_using_defaults_scopes_are_serialized():
    entered = threading.Event()
    release = threading.Event()
    observed = []

    def hold():
        with using_defaults(base_path="/first"):
            entered.set()
            release.wait(5)

    def second():
        with using_defaults(base_path="/second") as scoped:
            observed.append(scoped.base_path)

    first_thread = threading.Thread(target=hold)
    first_thread.start()
    entered.wait(5)

    second_thread = threading.Thread(target=second)
    second_thread.start()
    second_thread.join(0.2)
    assert second_thread.is_alive()
    assert observed == []

    release.set()
    first_thread.join(5)
    second_thread.join(5)
    assert observed == ["/second"]
    assert current_defaults().base_path != "/second"
