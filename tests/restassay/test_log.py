import logging

from restassay import RequestLoggingFilter, ResponseBuilder, ResponseLoggingFilter, given
from restassay.log import format_request, format_response


def test_format_request():
    request = (
        given()
        .base_uri("http://localhost")
        .port(8080)
        .query_param("firstName", "John")
        .form_param("list", "1", "2")
        .header("Accept", "*/*")
        .cookie("session", "abc")
    )
    request.method = "POST"
    request.path = "/greet"

    assert format_request(request) == "\n".join(
        [
            "Request method:\tPOST",
            "Request URI:\thttp://localhost:8080/greet?firstName=John",
            "Request params:\t<none>",
            "Query params:\tfirstName=John",
            "Form params:\tlist=1",
            "\t\t\tlist=2",
            "Path params:\t<none>",
            "Headers:\t\tAccept=*/*",
            "Cookies:\t\tsession=abc",
            "Body:\t\t\t<none>",
        ]
    )


def test_format_request_with_unresolved_uri():
    request = given()
    request.method = "GET"
    request.path = "/{missing}"
    assert "Request URI:\t<unresolved:" in format_request(request)


def test_format_response():
    response = (
        ResponseBuilder()
        .status_code(200)
        .header("Content-Type", "text/plain")
        .body("hello")
        .build()
    )
    assert format_response(response) == "HTTP/1.1 200 OK\nContent-Type: text/plain\n\nhello"


def test_logging_filters(served, caplog):
    log = logging.getLogger("test.exchanges")
    with caplog.at_level(logging.DEBUG, logger="test.exchanges"):
        given().filters(
            RequestLoggingFilter(log, logging.DEBUG), ResponseLoggingFilter(log)
        ).param("firstName", "John").get("/greet")

    messages = [r.getMessage() for r in caplog.records if r.name == "test.exchanges"]
    assert len(messages) == 2
    assert messages[0].startswith("Request method:\tGET")
    assert messages[1].startswith("HTTP/1.1 200 OK")
    assert "Greetings John " in messages[1]
    assert [r.levelno for r in caplog.records if r.name == "test.exchanges"] == [
        logging.DEBUG,
        logging.INFO,
    ]
