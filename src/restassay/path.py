"""Path expressions addressing sub-values of structured response bodies.

Expressions are dot separated. A step is a name, optionally followed by one
or more [index] selectors; indexes may be negative. The size() step returns
the number of elements of the current value, and @name selects an XML
attribute. Names containing dots can be quoted: 'content.type'.

Selecting a name on a list of objects collects the name from every element,
so "store.book.author" returns the authors of all books.
"""

import json
import xml.etree.ElementTree as ElementTree
from typing import Any, List, Optional, Protocol, Tuple, Union

from restassay.content import ContentType
from restassay.error import SpecUsageError

Step = Tuple[str, Union[str, int, None]]

KEY = "key"
INDEX = "index"
SIZE = "size"
ATTRIBUTE = "attribute"


def parse_path(expression: str) -> List[Step]:
    """Parses a path expression into a list of (kind, argument) steps."""
    expression = expression.strip()
    if expression in ("", "$"):
        return []
    if expression.startswith("$."):
        expression = expression[2:]

    steps: List[Step] = []
    for segment in _split(expression):
        if not segment:
            raise SpecUsageError(f"invalid path expression: {expression!r}")
        if segment == "size()":
            steps.append((SIZE, None))
            continue

        name, selectors = _split_selectors(segment, expression)
        if name:
            if name.startswith("@"):
                steps.append((ATTRIBUTE, name[1:]))
            else:
                steps.append((KEY, name))
        for index in selectors:
            steps.append((INDEX, index))
    return steps


def _split(expression: str) -> List[str]:
    segments = []
    current = []
    quote: Optional[str] = None
    depth = 0
    for char in expression:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
            current.append(char)
        elif char == "[":
            depth += 1
            current.append(char)
        elif char == "]":
            depth -= 1
            current.append(char)
        elif char == "." and depth == 0:
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    if quote or depth:
        raise SpecUsageError(f"unbalanced path expression: {expression!r}")
    segments.append("".join(current))
    return segments


def _split_selectors(segment: str, expression: str) -> Tuple[str, List[int]]:
    bracket = segment.find("[")
    if segment[:1] in "'\"":
        end = segment.index(segment[0], 1)
        name = segment[1:end]
        rest = segment[end + 1 :]
    elif bracket < 0:
        return segment, []
    else:
        name = segment[:bracket]
        rest = segment[bracket:]

    selectors = []
    while rest:
        if not rest.startswith("[") or "]" not in rest:
            raise SpecUsageError(f"invalid path expression: {expression!r}")
        end = rest.index("]")
        try:
            selectors.append(int(rest[1:end].strip()))
        except ValueError:
            raise SpecUsageError(
                f"invalid index {rest[1:end]!r} in path expression: {expression!r}"
            ) from None
        rest = rest[end + 1 :]
    return name, selectors


class PathEvaluator(Protocol):
    """Protocol for path evaluators of a body shape."""

    kind: str

    def parse(self, body: bytes, charset: str) -> Any:
        """Parse a raw body into the tree that extract() operates on."""
        ...

    def extract(self, tree: Any, expression: str) -> Any:
        """Return the value (or list of values) addressed by expression."""
        ...


class JsonPath:
    kind = "JSON"

    def parse(self, body: bytes, charset: str) -> Any:
        if not body.strip():
            return None
        try:
            return json.loads(body.decode(charset))
        except (UnicodeDecodeError, LookupError, ValueError) as e:
            raise SpecUsageError(f"cannot parse JSON response body: {e}") from e

    def extract(self, tree: Any, expression: str) -> Any:
        value = tree
        for kind, arg in parse_path(expression):
            value = _json_step(value, kind, arg)
        return value


def _json_step(value: Any, kind: str, arg: Any) -> Any:
    if value is None:
        return None
    if kind == SIZE:
        if isinstance(value, (list, dict, str)):
            return len(value)
        return None
    if kind == INDEX:
        if isinstance(value, (list, str)):
            try:
                return value[arg]
            except IndexError:
                return None
        return None
    # Attributes only exist in XML, treat them as plain keys.
    if isinstance(value, dict):
        return value.get(arg)
    if isinstance(value, list):
        return [item.get(arg) for item in value if isinstance(item, dict)]
    return None


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def _node_value(node: ElementTree.Element) -> str:
    return "".join(node.itertext())


class XmlPath:
    kind = "XML"

    def parse(self, body: bytes, charset: str) -> Any:
        try:
            return ElementTree.fromstring(body)
        except ElementTree.ParseError as e:
            raise SpecUsageError(f"cannot parse XML response body: {e}") from e

    def extract(self, tree: Any, expression: str) -> Any:
        steps = parse_path(expression)
        if not steps:
            return _node_value(tree)

        # The root element may be named explicitly, GPath style.
        if steps[0] == (KEY, _local_name(tree.tag)):
            steps = steps[1:]

        nodes: List[ElementTree.Element] = [tree]
        values: Optional[List[str]] = None
        for kind, arg in steps:
            if values is not None:
                if kind == SIZE:
                    return len(values)
                if kind == INDEX:
                    values = _select(values, arg)
                    continue
                return None
            if kind == SIZE:
                return len(nodes)
            if kind == INDEX:
                nodes = _select(nodes, arg)
            elif kind == ATTRIBUTE:
                values = [n.attrib[arg] for n in nodes if arg in n.attrib]
            else:
                nodes = [c for n in nodes for c in n if _local_name(c.tag) == arg]

        result = values if values is not None else [_node_value(n) for n in nodes]
        if not result:
            return None
        if len(result) == 1:
            return result[0]
        return result


def _select(items: list, index: Any) -> list:
    try:
        return [items[index]]
    except IndexError:
        return []


_EVALUATORS: List[Tuple[ContentType, PathEvaluator]] = []


def register_path_evaluator(content_type: ContentType, evaluator: PathEvaluator):
    """Register the path evaluator used for bodies of a content type.

    Evaluators registered later take precedence over earlier ones.
    """
    _EVALUATORS.insert(0, (content_type, evaluator))


def evaluator_for(content_type: Optional[str]) -> Optional[PathEvaluator]:
    """Returns the evaluator registered for a Content-Type header value."""
    for registered, evaluator in _EVALUATORS:
        if registered.matches(content_type):
            return evaluator
    return None


register_path_evaluator(ContentType.XML, XmlPath())
register_path_evaluator(ContentType.JSON, JsonPath())
