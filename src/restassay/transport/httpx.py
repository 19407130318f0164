import logging
import threading
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Optional

import httpx

from restassay.transport import Headers, RawResponse, Transport, request_headers

logger = logging.getLogger(__name__)

DEFAULT_CLIENT: Optional[httpx.Client] = None
_client_lock = threading.Lock()


def default_client() -> httpx.Client:
    """Returns the process-wide client used when no transport is configured."""
    global DEFAULT_CLIENT
    with _client_lock:
        if DEFAULT_CLIENT is None:
            # The jar refuses every cookie: exchanges must not leak cookies
            # into each other through the shared client.
            jar = CookieJar(DefaultCookiePolicy(allowed_domains=[]))
            DEFAULT_CLIENT = httpx.Client(cookies=jar)
        return DEFAULT_CLIENT


class HttpxTransport(Transport):
    """Sends requests with an httpx.Client.

    Cookies are sent as a Cookie header rather than through the client's
    cookie jar, so that exchanges sharing a client stay independent.
    """

    def __init__(
        self, client: Optional[httpx.Client] = None, follow_redirects: bool = True
    ):
        self.client = client or default_client()
        self.follow_redirects = follow_redirects

    def send(
        self,
        method: str,
        url: str,
        headers: Headers,
        cookies: Headers,
        body: Optional[bytes],
    ) -> RawResponse:
        logger.debug("sending %s %s with httpx", method, url)
        response = self.client.request(
            method,
            url,
            headers=request_headers(headers, cookies),
            content=body,
            follow_redirects=self.follow_redirects,
        )
        return RawResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            headers=[
                (name.decode("latin-1"), value.decode("latin-1"))
                for name, value in response.headers.raw
            ],
            body=response.content,
            http_version=response.http_version,
        )
