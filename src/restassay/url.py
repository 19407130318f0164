"""Building request URIs and form bodies.

With URL encoding enabled every literal path fragment, path parameter,
query parameter and form field is percent-encoded, even when it already
looks encoded ("%3A" becomes "%253A"). With encoding disabled everything is
sent verbatim.
"""

import re
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote, quote_plus, urlsplit

from restassay.error import SpecUsageError

_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")
_ABSOLUTE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")

# Sub-delimiters and ":" / "@" may appear literally in a path segment.
_PATH_SAFE = "/:@!$&'()*+,;="


def is_absolute(uri: str) -> bool:
    return bool(_ABSOLUTE.match(uri))


def _join_paths(*parts: str) -> str:
    path = ""
    for part in parts:
        if not part:
            continue
        if path.endswith("/") and part.startswith("/"):
            path += part[1:]
        elif path and not path.endswith("/") and not part.startswith("/"):
            path += "/" + part
        else:
            path += part
    return path


def _encode_query(pairs: Iterable[Tuple[str, Any]], encode: bool) -> str:
    parts = []
    for name, value in pairs:
        if encode:
            name = quote(str(name), safe="")
            value = None if value is None else quote(str(value), safe="")
        if value is None:
            parts.append(str(name))
        else:
            parts.append(f"{name}={value}")
    return "&".join(parts)


def _split_query(query: str) -> List[Tuple[str, Optional[str]]]:
    pairs: List[Tuple[str, Optional[str]]] = []
    for part in query.split("&"):
        if not part:
            continue
        name, sep, value = part.partition("=")
        pairs.append((name, value if sep else None))
    return pairs


class _PathArguments:
    """Feeds placeholder values: named parameters first, then unnamed
    arguments in order."""

    def __init__(self, named: Mapping[str, Any], unnamed: Sequence[Any]):
        self.named = named
        self.unnamed: Iterator[Any] = iter(unnamed)
        self.unnamed_count = len(unnamed)
        self.used_names: set = set()
        self.used_unnamed = 0

    def value(self, name: str) -> Any:
        if name in self.named:
            self.used_names.add(name)
            return self.named[name]
        try:
            value = next(self.unnamed)
        except StopIteration:
            raise SpecUsageError(
                f'You specified too few path parameters to the request, no value for "{name}".'
            ) from None
        self.used_unnamed += 1
        return value

    def check_all_used(self):
        if self.used_unnamed < self.unnamed_count:
            raise SpecUsageError(
                "Invalid number of path parameters. Expected "
                f"{self.used_unnamed}, was {self.unnamed_count}."
            )
        redundant = [n for n in self.named if n not in self.used_names]
        if redundant:
            listing = ", ".join(f"{n}={self.named[n]}" for n in redundant)
            raise SpecUsageError(
                "Path parameters were not correctly defined. Redundant path "
                f"parameters are: {listing}."
            )


def _expand(template: str, args: _PathArguments, encode: bool, literal_safe: str) -> str:
    result = []
    position = 0
    for match in _PLACEHOLDER.finditer(template):
        literal = template[position : match.start()]
        result.append(quote(literal, safe=literal_safe) if encode else literal)
        value = str(args.value(match.group(1)))
        result.append(quote(value, safe="") if encode else value)
        position = match.end()
    literal = template[position:]
    result.append(quote(literal, safe=literal_safe) if encode else literal)
    return "".join(result)


def build_uri(
    base_uri: str,
    port: Optional[int],
    base_path: str,
    path: str,
    path_params: Mapping[str, Any],
    path_args: Sequence[Any],
    query: Iterable[Tuple[str, Any]],
    encode: bool = True,
) -> str:
    """Returns the full request URI.

    An absolute path replaces the base URI, port and base path.
    """
    if is_absolute(path):
        parts = urlsplit(path)
        root = f"{parts.scheme}://{parts.netloc}"
        path = path[len(root) :]
        prefix = ""
    else:
        parts = urlsplit(base_uri)
        root = f"{parts.scheme}://{parts.netloc}"
        if port is not None and parts.port is None:
            root = f"{root}:{port}"
        prefix = _join_paths(parts.path, base_path)

    template, _, template_query = path.partition("?")
    args = _PathArguments(path_params, path_args)
    expanded = _expand(template, args, encode, _PATH_SAFE)

    query_pairs: List[Tuple[str, Any]] = []
    for name, value in _split_query(template_query):
        name = _expand(name, args, False, "")
        if value is not None:
            value = _expand(value, args, False, "")
        query_pairs.append((name, value))
    args.check_all_used()
    query_pairs.extend(query)

    # The prefix comes from configuration and is never re-encoded.
    uri = root + _join_paths(prefix, expanded)
    if query_pairs:
        uri += "?" + _encode_query(query_pairs, encode)
    return uri


def form_body(pairs: Iterable[Tuple[str, Any]], encode: bool = True) -> str:
    parts = []
    for name, value in pairs:
        if encode:
            parts.append(f"{quote_plus(str(name))}={quote_plus(str(value))}")
        else:
            parts.append(f"{name}={value}")
    return "&".join(parts)
