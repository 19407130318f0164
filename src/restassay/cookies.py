from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional


@dataclass(frozen=True)
class Cookie:
    """A cookie sent with a request or received in a Set-Cookie header.

    Attribute names (Domain, Path, Expires, Secure...) are stored lowercased.
    Flag attributes such as Secure have an empty value.
    """

    name: str
    value: str
    attributes: Dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def domain(self) -> Optional[str]:
        return self.attributes.get("domain")

    @property
    def path(self) -> Optional[str]:
        return self.attributes.get("path")

    @property
    def expires(self) -> Optional[str]:
        return self.attributes.get("expires")

    @property
    def secure(self) -> bool:
        return "secure" in self.attributes

    @property
    def http_only(self) -> bool:
        return "httponly" in self.attributes

    def __str__(self):
        return f"{self.name}={self.value}"


def parse_set_cookie(header: str) -> Optional[Cookie]:
    """Parses a Set-Cookie header value, returns None if it has no name."""
    first, *rest = header.split(";")
    name, sep, value = first.partition("=")
    name = name.strip()
    if not sep or not name:
        return None

    attributes: Dict[str, str] = {}
    for attribute in rest:
        key, _, attr_value = attribute.partition("=")
        key = key.strip().lower()
        if key:
            attributes[key] = attr_value.strip()
    return Cookie(name, value.strip().strip('"'), attributes)


def parse_set_cookies(headers: Iterable[str]) -> List[Cookie]:
    return [c for c in (parse_set_cookie(h) for h in headers) if c is not None]
