import base64
from dataclasses import dataclass
from typing import Optional


class Auth:
    """Describes how credentials are placed on a request."""

    def authorization(self) -> Optional[str]:
        """Returns the Authorization header to send up front, if any."""
        return None

    def challenge_authorization(self, challenge: str) -> Optional[str]:
        """Returns the Authorization header answering a WWW-Authenticate
        challenge, or None if this scheme cannot answer it."""
        return None


@dataclass(frozen=True)
class NoAuth(Auth):
    pass


@dataclass(frozen=True)
class BasicAuth(Auth):
    """HTTP basic authentication.

    Preemptive basic auth sends the credentials with the first request.
    Otherwise they are only sent after the server challenges for them.
    """

    username: str
    password: str
    preemptive: bool = False

    def _header(self) -> str:
        credentials = f"{self.username}:{self.password}".encode()
        return "Basic " + base64.b64encode(credentials).decode("ascii")

    def authorization(self) -> Optional[str]:
        return self._header() if self.preemptive else None

    def challenge_authorization(self, challenge: str) -> Optional[str]:
        if challenge.strip().lower().startswith("basic"):
            return self._header()
        return None

    def __repr__(self):
        return f"BasicAuth(username={self.username!r}, preemptive={self.preemptive})"


@dataclass(frozen=True)
class TokenAuth(Auth):
    """Places an already acquired token on the request."""

    token: str
    scheme: str = "Bearer"

    def authorization(self) -> Optional[str]:
        return f"{self.scheme} {self.token}" if self.scheme else self.token

    def __repr__(self):
        return f"TokenAuth(scheme={self.scheme!r})"


def basic(username: str, password: str) -> BasicAuth:
    return BasicAuth(username, password)


def preemptive_basic(username: str, password: str) -> BasicAuth:
    return BasicAuth(username, password, preemptive=True)


def oauth2(token: str) -> TokenAuth:
    return TokenAuth(token)


def none() -> NoAuth:
    return NoAuth()
