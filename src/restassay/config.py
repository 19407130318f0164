import enum
import os
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple


@dataclass
class EnvironmentSetting:
    """A setting whose value defaults to an environment variable.

    The variable is read when the setting is created. Assigning a value
    detaches the setting from the environment.
    """

    _envvar: str
    _default: str
    _value: str
    _from_envvar: bool

    def __init__(self, envvar: str, default: str = "", value: Optional[str] = None):
        self._envvar = envvar
        self._default = default
        if value is None:
            self._value = os.environ.get(envvar) or default
            self._from_envvar = envvar in os.environ
        else:
            self._value = value
            self._from_envvar = False

    def __str__(self):
        return self.value

    @property
    def name(self) -> str:
        return self._envvar if self._from_envvar else "default"

    @property
    def value(self) -> str:
        return self._value

    @value.setter
    def value(self, value: str):
        self._value = value
        self._from_envvar = False


DEFAULT_BASE_URI = "http://localhost"
DEFAULT_PORT = 8080
DEFAULT_CSRF_META_TAG_NAME = "_csrf_header"
DEFAULT_CSRF_HEADER_NAME = "X-CSRF-TOKEN"


def base_uri_setting() -> EnvironmentSetting:
    return EnvironmentSetting("RESTASSAY_BASE_URI", DEFAULT_BASE_URI)


def port_setting() -> Optional[int]:
    """Returns the port configured in RESTASSAY_PORT, or None if unset.

    Raises:
        ValueError: If the variable does not hold a port number.
    """
    value = EnvironmentSetting("RESTASSAY_PORT").value
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(
            f"invalid port in RESTASSAY_PORT environment variable: {value!r}"
        ) from None


def base_path_setting() -> EnvironmentSetting:
    return EnvironmentSetting("RESTASSAY_BASE_PATH", "")


@enum.unique
class CsrfPrioritization(enum.Enum):
    """Carrier used when a page advertises both a CSRF header (via meta tags)
    and a CSRF form field."""

    HEADER = "header"
    FORM = "form"

    def __repr__(self):
        return self.name

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class CsrfConfig:
    """Settings for automatic CSRF token resolution.

    Attributes:
        token_path: Path of the page that exposes the token. None or an empty
            string disables CSRF resolution entirely.
        input_field_name: Name of the hidden input field carrying the token.
            When None, the field is detected automatically.
        meta_tag_name: Name of the meta tag advertising the header name. The
            token itself is read from the meta tag with the same name minus
            its "_header" suffix.
        header_name: Overrides the header name advertised by the page.
        prioritization: Carrier to use when the page exposes both.
        logging_enabled: Log the token sub-request and its response.
    """

    token_path: Optional[str] = None
    input_field_name: Optional[str] = None
    meta_tag_name: str = DEFAULT_CSRF_META_TAG_NAME
    header_name: Optional[str] = None
    prioritization: CsrfPrioritization = CsrfPrioritization.HEADER
    logging_enabled: bool = False

    @property
    def enabled(self) -> bool:
        return bool(self.token_path)

    def with_(self, **changes) -> "CsrfConfig":
        return replace(self, **changes)


@dataclass(frozen=True)
class LogConfig:
    log_if_validation_fails: bool = False


@dataclass(frozen=True)
class RedirectConfig:
    follow: bool = True


@dataclass(frozen=True)
class Config:
    """Effective settings of an exchange.

    Configs are immutable; use with_() to derive a modified copy.
    """

    csrf: CsrfConfig = field(default_factory=CsrfConfig)
    log: LogConfig = field(default_factory=LogConfig)
    redirect: RedirectConfig = field(default_factory=RedirectConfig)
    default_headers: Tuple[Tuple[str, str], ...] = ()
    fail_fast: bool = True

    def with_(self, **changes) -> "Config":
        if "default_headers" in changes:
            headers = changes["default_headers"]
            if isinstance(headers, dict):
                headers = headers.items()
            changes["default_headers"] = tuple((str(k), str(v)) for k, v in headers)
        return replace(self, **changes)


def csrf_config(token_path: Optional[str] = None, **kwargs) -> CsrfConfig:
    return CsrfConfig(token_path=token_path, **kwargs)
