import pytest

from restassay import ContentType, Response, ResponseBuilder, SpecUsageError
from restassay.cookies import Cookie, parse_set_cookie
from restassay.response import default_status_line
from restassay.transport import RawResponse


def test_parse_set_cookie():
    cookie = parse_set_cookie('session="abc"; Path=/; Domain=example.com; Secure; HttpOnly')
    assert cookie == Cookie("session", "abc")
    assert cookie.path == "/"
    assert cookie.domain == "example.com"
    assert cookie.secure
    assert cookie.http_only
    assert parse_set_cookie("no-value") is None


def test_default_status_line():
    assert default_status_line(200) == "HTTP/1.1 200 OK"
    assert default_status_line(799) == "HTTP/1.1 799"


def test_from_raw():
    raw = RawResponse(
        201,
        "Created",
        [("Content-Type", "application/json"), ("Set-Cookie", "a=1"), ("Set-Cookie", "A=2")],
        b'{"id": 7}',
        "HTTP/2",
    )
    response = Response.from_raw(raw)
    assert response.status_code == 201
    assert response.status_line == "HTTP/2 201 Created"
    assert response.header("content-type") == "application/json"
    assert response.cookie("a") == "2"
    assert response.detailed_cookie("A").value == "2"
    assert response.path("id") == 7
    assert repr(response) == "<Response [201]>"


def test_headers_copy_is_detached():
    response = ResponseBuilder().header("X", "1").build()
    response.headers.add("X", "2")
    assert response.headers.get_all("X") == ["1"]


def test_text_uses_charset():
    response = (
        ResponseBuilder()
        .content_type("text/plain; charset=iso-8859-1")
        .body("café")
        .build()
    )
    assert response.body == b"caf\xe9"
    assert response.text == "café"
    assert response.charset == "iso-8859-1"


def test_unknown_charset_falls_back_to_utf8():
    response = (
        ResponseBuilder()
        .content_type("application/json; charset=bogus")
        .body(b'{"name": "caf\xc3\xa9"}')
        .build()
    )
    assert response.charset == "utf-8"
    assert response.path("name") == "café"


def test_malformed_json_body():
    response = ResponseBuilder().content_type(ContentType.JSON).body(b'{"a": ').build()
    with pytest.raises(SpecUsageError, match="cannot parse JSON response body"):
        response.path("a")


def test_structured_without_evaluator_is_text():
    response = ResponseBuilder().content_type(ContentType.TEXT).body("hi").build()
    assert response.structured == "hi"
    with pytest.raises(SpecUsageError, match='cannot evaluate path "a"'):
        response.path("a")


def test_builder_clone_replaces_parts():
    original = ResponseBuilder().status_code(200).body({"a": 1}).header("X", "1").build()
    replaced = ResponseBuilder.clone(original).status_code(201).body({"a": 2}).build()

    assert replaced.status_code == 201
    assert replaced.status_line == "HTTP/1.1 201 Created"
    assert replaced.header("X") == "1"
    assert replaced.path("a") == 2
    assert original.path("a") == 1


def test_builder_cookies():
    response = (
        ResponseBuilder()
        .cookie(Cookie("session", "abc", {"path": "/", "httponly": ""}))
        .cookie("theme", "dark")
        .build()
    )
    assert response.headers.get_all("Set-Cookie") == [
        "session=abc; path=/; httponly",
        "theme=dark",
    ]
    assert response.detailed_cookie("session").http_only
    assert [c.name for c in response.cookies] == ["session", "theme"]


def test_builder_status_line():
    response = ResponseBuilder().status_line("HTTP/1.0 200 Fine").build()
    assert response.status_line == "HTTP/1.0 200 Fine"
