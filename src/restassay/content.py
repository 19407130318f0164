import codecs
import enum
from typing import Optional, Tuple, Union

DEFAULT_CHARSET = "utf-8"


@enum.unique
class ContentType(enum.Enum):
    """Well-known content types and the MIME types that they cover."""

    ANY = ("*/*",)
    TEXT = ("text/plain",)
    JSON = (
        "application/json",
        "application/javascript",
        "text/javascript",
        "text/json",
    )
    XML = ("application/xml", "text/xml", "application/xhtml+xml")
    HTML = ("text/html",)
    URLENC = ("application/x-www-form-urlencoded",)
    BINARY = ("application/octet-stream",)

    def __repr__(self):
        return self.name

    def __str__(self):
        return self.name

    @property
    def mime_types(self) -> Tuple[str, ...]:
        return self.value

    @property
    def primary(self) -> str:
        return self.value[0]

    def matches(self, content_type: Optional[str]) -> bool:
        """Whether a Content-Type header value belongs to this content type."""
        if self is ContentType.ANY:
            return True
        mime = mime_type(content_type)
        if not mime:
            return False
        if mime in self.value:
            return True
        if self is ContentType.JSON:
            return mime.endswith("+json")
        if self is ContentType.XML:
            return mime.endswith("+xml")
        return False

    @classmethod
    def of(cls, content_type: Optional[str]) -> Optional["ContentType"]:
        """Returns the well-known content type of a header value, if any."""
        for member in (cls.JSON, cls.XML, cls.HTML, cls.TEXT, cls.URLENC, cls.BINARY):
            if member.matches(content_type):
                return member
        return None


def mime_type(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def charset(content_type: Optional[str], default: str = DEFAULT_CHARSET) -> str:
    """Returns the charset parameter of a Content-Type header value."""
    if not content_type:
        return default
    for param in content_type.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            value = value.strip().strip('"')
            try:
                codecs.lookup(value)
            except LookupError:
                return default
            return value
    return default


_TEXTUAL = {ContentType.TEXT, ContentType.JSON, ContentType.XML, ContentType.HTML}


def content_type_header(value: Union[ContentType, str]) -> str:
    """Returns the Content-Type header value to send for a content type."""
    if not isinstance(value, ContentType):
        return value
    if value in _TEXTUAL:
        return f"{value.primary}; charset={DEFAULT_CHARSET}"
    return value.primary
