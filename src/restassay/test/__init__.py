"""In-process HTTP services for testing code built on restassay.

A Service routes httpx requests to handler functions and records every
request it receives. transport() returns a transport that sends exchanges
to the service without touching the network:

    service = Service()

    @service.route("GET", "/greet")
    def greet(request):
        return httpx.Response(200, json={"greeting": "Greetings John Doe"})

    with using_defaults(transport=transport(service)):
        given().get("/greet").then().body("greeting", "Greetings John Doe")
"""

import logging
import threading
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Callable, Dict, List, Optional, Tuple

import httpx

from restassay.transport.httpx import HttpxTransport

__all__ = [
    "Handler",
    "Service",
    "transport",
]

logger = logging.getLogger(__name__)

Handler = Callable[[httpx.Request], httpx.Response]


class Service:
    """Route table of handler functions, usable as an httpx.MockTransport
    handler.

    Routes are keyed by method and URL path; a route registered with the
    method "*" answers every method. Unknown routes answer 404.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []
        self._lock = threading.Lock()

    def route(self, method: str, path: str) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, path, handler)
            return handler

        return decorator

    def add_route(self, method: str, path: str, handler: Handler):
        self.routes[(method.upper(), path)] = handler

    def requests_to(self, path: str) -> List[httpx.Request]:
        with self._lock:
            return [r for r in self.requests if r.url.path == path]

    def reset(self):
        with self._lock:
            self.requests.clear()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        path = request.url.path
        handler = self.routes.get((request.method, path)) or self.routes.get(("*", path))
        if handler is None:
            logger.debug("no route for %s %s", request.method, path)
            return httpx.Response(404, text=f"no route for {request.method} {path}")
        return handler(request)


def transport(
    service: Service, follow_redirects: bool = True, client: Optional[httpx.Client] = None
) -> HttpxTransport:
    """Returns a transport delivering requests to service."""
    if client is None:
        jar = CookieJar(DefaultCookiePolicy(allowed_domains=[]))
        client = httpx.Client(transport=httpx.MockTransport(service), cookies=jar)
    return HttpxTransport(client, follow_redirects=follow_redirects)
