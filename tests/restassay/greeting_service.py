"""An in-process service answering the requests of the test suite."""

import base64
from urllib.parse import parse_qsl

import httpx

from restassay.test import Service

CSRF_TOKEN = "f8c6e1a2-5b8d-4c4b-9d1e-6f0a2b3c4d5e"
SESSION_ID = "3f9a1c"

LOTTO = {
    "lotto": {
        "lottoId": 5,
        "winning-numbers": [2, 45, 34, 23, 7, 5, 3],
        "winners": [
            {"winnerId": 23, "numbers": [2, 45, 34, 23, 3, 5]},
            {"winnerId": 54, "numbers": [52, 3, 12, 11, 18, 22]},
        ],
    }
}

GREETING_XML = "<greeting><firstName>{}</firstName><lastName>{}</lastName></greeting>"

_INPUT = '<input type="hidden" name="_csrf" value="{}"/>'
_META = '<meta name="_csrf" content="{}"/><meta name="_csrf_header" content="X-CSRF-TOKEN"/>'
_PAGE = """<html>
<head><title>Login</title>{meta}</head>
<body>
<form action="/login" method="POST">
<input type="text" name="username"/>
<input type="password" name="password"/>
{input}
</form>
</body>
</html>"""


def login_page(meta: bool, form: bool) -> str:
    return _PAGE.format(
        meta=_META.format(CSRF_TOKEN) if meta else "",
        input=_INPUT.format(CSRF_TOKEN) if form else "",
    )


def form_fields(request: httpx.Request) -> dict:
    return dict(parse_qsl(request.content.decode(), keep_blank_values=True))


def _greet(first: str, last: str) -> httpx.Response:
    return httpx.Response(200, json={"greeting": f"Greetings {first} {last}"})


def _html(body: str) -> httpx.Response:
    return httpx.Response(
        200,
        headers=[
            ("Content-Type", "text/html; charset=utf-8"),
            ("Set-Cookie", f"JSESSIONID={SESSION_ID}; Path=/; HttpOnly"),
        ],
        text=body,
    )


def greeting_service() -> Service:
    service = Service()

    @service.route("GET", "/greet")
    def greet(request):
        params = request.url.params
        return _greet(params.get("firstName", ""), params.get("lastName", ""))

    @service.route("POST", "/greet")
    def greet_form(request):
        fields = form_fields(request)
        return _greet(fields.get("firstName", ""), fields.get("lastName", ""))

    @service.route("GET", "/greetXML")
    def greet_xml(request):
        params = request.url.params
        body = GREETING_XML.format(params.get("firstName", ""), params.get("lastName", ""))
        return httpx.Response(200, headers={"Content-Type": "application/xml"}, text=body)

    @service.route("GET", "/lotto")
    def lotto(request):
        return httpx.Response(200, json=LOTTO)

    @service.route("GET", "/multiValueParam")
    def multi_value_param(request):
        return httpx.Response(
            200, json={"list": ",".join(request.url.params.get_list("list"))}
        )

    @service.route("GET", "/cookie")
    def cookie(request):
        return httpx.Response(
            200,
            headers=[
                ("Set-Cookie", "key1=value1"),
                ("Set-Cookie", "key2=value2; Path=/; Secure"),
            ],
            text="ok",
        )

    @service.route("GET", "/noCookies")
    def no_cookies(request):
        return httpx.Response(200, text="ok")

    @service.route("*", "/echo")
    def echo(request):
        return httpx.Response(
            200,
            json={
                "method": request.method,
                "url": str(request.url),
                "headers": {k: v for k, v in request.headers.items()},
                "body": request.content.decode(),
            },
        )

    @service.route("GET", "/secured/hello")
    def secured(request):
        expected = "Basic " + base64.b64encode(b"jetty:jetty").decode()
        if request.headers.get("Authorization") != expected:
            return httpx.Response(
                401, headers={"WWW-Authenticate": 'Basic realm="test"'}, text="denied"
            )
        return httpx.Response(200, json={"hello": "world"})

    @service.route("GET", "/loginPageWithCsrfInput")
    def login_form_only(request):
        return _html(login_page(meta=False, form=True))

    @service.route("GET", "/loginPageWithCsrfMeta")
    def login_meta_only(request):
        return _html(login_page(meta=True, form=False))

    @service.route("GET", "/loginPageWithCsrfInputAndMeta")
    def login_both(request):
        return _html(login_page(meta=True, form=True))

    @service.route("GET", "/loginPageWithoutCsrf")
    def login_none(request):
        return _html(login_page(meta=False, form=False))

    @service.route("POST", "/login")
    def login(request):
        fields = form_fields(request)
        return httpx.Response(
            200,
            json={
                "formToken": fields.get("_csrf"),
                "headerToken": request.headers.get("X-CSRF-TOKEN"),
                "cookie": request.headers.get("Cookie"),
                "username": fields.get("username"),
            },
        )

    return service
