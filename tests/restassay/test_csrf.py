import logging

import pytest
from greeting_service import CSRF_TOKEN, SESSION_ID, login_page

from restassay import (
    Config,
    CsrfPrioritization,
    CsrfTokenNotFound,
    ResponseBuilder,
    csrf_config,
    given,
    using_defaults,
)
from restassay.config import CsrfConfig
from restassay.csrf import (
    CsrfCarrier,
    CsrfResolver,
    CsrfState,
    scrape,
    token_meta_name,
)


def page_fetcher(html, calls=None):
    def fetch(path):
        if calls is not None:
            calls.append(path)
        return ResponseBuilder().content_type("text/html").body(html).build()

    return fetch


def test_token_meta_name():
    assert token_meta_name("_csrf_header") == "_csrf"
    assert token_meta_name("xsrf_header") == "xsrf"
    assert token_meta_name("csrf-header") == "_csrf"


def test_scrape_both_carriers():
    form, header = scrape(login_page(meta=True, form=True), CsrfConfig())
    assert form.carrier is CsrfCarrier.FORM
    assert (form.name, form.value) == ("_csrf", CSRF_TOKEN)
    assert header.carrier is CsrfCarrier.HEADER
    assert (header.name, header.value) == ("X-CSRF-TOKEN", CSRF_TOKEN)


def test_scrape_header_name_override():
    _, header = scrape(login_page(meta=True, form=False), CsrfConfig(header_name="X-XSRF"))
    assert header.name == "X-XSRF"


def test_scrape_specific_field():
    html = '<input name="token" value="1"/><input name="_csrf" value="2"/>'
    form, _ = scrape(html, CsrfConfig(input_field_name="token"))
    assert form.value == "1"
    form, _ = scrape(html, CsrfConfig())
    assert form.value == "2"


@pytest.mark.parametrize("method", ["GET", "HEAD", "get"])
def test_get_and_head_bypass(method):
    calls = []
    resolver = CsrfResolver(csrf_config("/login"), page_fetcher("", calls))
    assert resolver.resolve(method) is None
    assert calls == []


def test_disabled_without_token_path():
    calls = []
    session = CsrfResolver(CsrfConfig(), page_fetcher("", calls)).resolve("POST")
    assert session.state is CsrfState.DISABLED
    assert calls == []


@pytest.mark.parametrize(
    "prioritization,carrier",
    [
        (CsrfPrioritization.HEADER, CsrfCarrier.HEADER),
        (CsrfPrioritization.FORM, CsrfCarrier.FORM),
    ],
)
def test_prioritization(prioritization, carrier):
    config = csrf_config("/login", prioritization=prioritization)
    fetch = page_fetcher(login_page(meta=True, form=True))
    session = CsrfResolver(config, fetch).resolve("POST")
    assert session.state is CsrfState.RESOLVED
    assert session.token.carrier is carrier


def test_missing_specific_field_echoes_body():
    html = login_page(meta=False, form=False)
    config = csrf_config("/login", input_field_name="_csrf")
    with pytest.raises(CsrfTokenNotFound) as exc:
        CsrfResolver(config, page_fetcher(html)).resolve("POST")

    assert str(exc.value) == (
        "Couldn't find a the CSRF token in response. Expecting either an input "
        'field with name "_csrf" or a meta tag with name "_csrf_header". '
        f"Response was:\n{html}"
    )
    assert exc.value.field_name == "_csrf"
    assert exc.value.body == html


def test_auto_detection_failure():
    with pytest.raises(CsrfTokenNotFound, match="^Not found"):
        CsrfResolver(csrf_config("/login"), page_fetcher("<html></html>")).resolve("PUT")


def test_inject_only_resolved_sessions():
    request = given()
    config = csrf_config("/login", prioritization=CsrfPrioritization.FORM)
    session = CsrfResolver(config, page_fetcher(login_page(True, True))).resolve("POST")
    CsrfResolver.inject(session, request)
    assert session.state is CsrfState.INJECT
    assert request.state.form_params.get("_csrf") == CSRF_TOKEN

    CsrfResolver.inject(session, request)
    assert request.state.form_params.get_all("_csrf") == [CSRF_TOKEN]


def test_form_token_sent_with_request(served):
    response = (
        given()
        .csrf("/loginPageWithCsrfInput")
        .form_param("username", "John")
        .post("/login")
    )
    assert response.path("formToken") == CSRF_TOKEN
    assert response.path("headerToken") is None
    assert response.path("username") == "John"
    assert response.path("cookie") == f"JSESSIONID={SESSION_ID}"
    assert [r.url.path for r in served.requests] == ["/loginPageWithCsrfInput", "/login"]


def test_header_token_sent_with_request(served):
    response = given().csrf("/loginPageWithCsrfMeta").post("/login")
    assert response.path("headerToken") == CSRF_TOKEN
    assert response.path("formToken") is None


@pytest.mark.parametrize(
    "prioritization,form_token,header_token",
    [
        (CsrfPrioritization.HEADER, None, CSRF_TOKEN),
        (CsrfPrioritization.FORM, CSRF_TOKEN, None),
    ],
)
def test_prioritization_end_to_end(served, prioritization, form_token, header_token):
    config = Config(csrf=csrf_config(prioritization=prioritization))
    response = (
        given().config(config).csrf("/loginPageWithCsrfInputAndMeta").post("/login")
    )
    assert response.path("formToken") == form_token
    assert response.path("headerToken") == header_token


@pytest.mark.parametrize("method", ["get", "head"])
def test_no_token_page_for_get_and_head(served, method):
    getattr(given().csrf("/loginPageWithCsrfInput"), method)("/greet")
    assert [r.url.path for r in served.requests] == ["/greet"]


def test_static_config_applies_to_every_request(served):
    with using_defaults(config=Config(csrf=csrf_config("/loginPageWithCsrfInput"))):
        response = given().post("/login")
    assert response.path("formToken") == CSRF_TOKEN


def test_request_csrf_overrides_static_config(served):
    with using_defaults(config=Config(csrf=csrf_config("/loginPageWithoutCsrf"))):
        response = given().csrf("/loginPageWithCsrfMeta").post("/login")
    assert response.path("headerToken") == CSRF_TOKEN


def test_failure_aborts_exchange(served):
    with pytest.raises(CsrfTokenNotFound, match='input field with name "_csrf"'):
        given().csrf("/loginPageWithoutCsrf", "_csrf").post("/login")
    assert [r.url.path for r in served.requests] == ["/loginPageWithoutCsrf"]


def test_logging_of_token_page(served, caplog):
    config = Config(csrf=csrf_config(logging_enabled=True))
    with caplog.at_level(logging.INFO, logger="restassay.exchange"):
        given().config(config).csrf("/loginPageWithCsrfInput").post("/login")
        logged = caplog.text
        given().config(config).csrf("/loginPageWithCsrfInput").get("/greet")

    assert "Request URI:\thttp://localhost:8080/loginPageWithCsrfInput" in logged
    assert "Content-Type: text/html; charset=utf-8" in logged
    assert caplog.text == logged
