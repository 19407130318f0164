import logging
from http.cookiejar import DefaultCookiePolicy
from typing import Dict, Optional

import requests

from restassay.transport import Headers, RawResponse, Transport, request_headers

logger = logging.getLogger(__name__)

_HTTP_VERSIONS = {10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}


class RequestsTransport(Transport):
    """Sends requests with a requests.Session."""

    def __init__(
        self, session: Optional[requests.Session] = None, follow_redirects: bool = True
    ):
        if session is None:
            session = requests.Session()
            session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
        self.session = session
        self.follow_redirects = follow_redirects

    def send(
        self,
        method: str,
        url: str,
        headers: Headers,
        cookies: Headers,
        body: Optional[bytes],
    ) -> RawResponse:
        logger.debug("sending %s %s with requests", method, url)

        # requests takes a mapping, repeated headers are folded into one.
        folded: Dict[str, str] = {}
        for name, value in request_headers(headers, cookies):
            folded[name] = f"{folded[name]}, {value}" if name in folded else value

        response = self.session.request(
            method,
            url,
            headers=folded,
            data=body,
            allow_redirects=self.follow_redirects,
        )

        raw = response.raw
        # urllib3 keeps repeated headers such as Set-Cookie apart.
        iteritems = getattr(getattr(raw, "headers", None), "iteritems", None)
        if iteritems is not None:
            response_headers = list(iteritems())
            version = _HTTP_VERSIONS.get(getattr(raw, "version", 11), "HTTP/1.1")
        else:
            response_headers = list(response.headers.items())
            version = "HTTP/1.1"

        return RawResponse(
            status_code=response.status_code,
            reason=response.reason or "",
            headers=response_headers,
            body=response.content,
            http_version=version,
        )
