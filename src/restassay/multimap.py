"""Ordered multimaps whose entries remember where they came from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, NamedTuple, Optional, Set, Tuple


class Origin(NamedTuple):
    """Provenance of an entry contributed by a template: the template that
    introduced it, the field it was added to and its position there."""

    template: int
    field: str
    index: int


@dataclass(frozen=True)
class Entry:
    name: str
    value: Any
    origin: Optional[Origin] = None


class MultiMap:
    """Ordered multimap of (name, value) entries.

    Values under the same name keep their insertion order. Name lookups are
    case-sensitive unless the map is created with case_insensitive=True.
    Entries added directly by a caller have no origin; entries merged from a
    template carry one, which lets a merge skip entries it already
    contributed even when equal values are present.
    """

    __slots__ = ("_entries", "case_insensitive")

    def __init__(
        self,
        entries: Iterable[Entry] = (),
        case_insensitive: bool = False,
    ):
        self._entries: List[Entry] = list(entries)
        self.case_insensitive = case_insensitive

    def _key(self, name: str) -> str:
        return name.lower() if self.case_insensitive else name

    def add(self, name: str, *values: Any, origin: Optional[Origin] = None):
        for value in values:
            self._entries.append(Entry(name, value, origin))

    def append(self, entry: Entry):
        self._entries.append(entry)

    def set(self, name: str, *values: Any):
        """Replace every value under name."""
        self.remove(name)
        self.add(name, *values)

    def remove(self, name: str):
        key = self._key(name)
        self._entries = [e for e in self._entries if self._key(e.name) != key]

    def get(self, name: str, default: Any = None) -> Any:
        key = self._key(name)
        for entry in self._entries:
            if self._key(entry.name) == key:
                return entry.value
        return default

    def get_all(self, name: str) -> List[Any]:
        key = self._key(name)
        return [e.value for e in self._entries if self._key(e.name) == key]

    def names(self) -> List[str]:
        seen: Set[str] = set()
        names = []
        for entry in self._entries:
            key = self._key(entry.name)
            if key not in seen:
                seen.add(key)
                names.append(entry.name)
        return names

    def items(self) -> List[Tuple[str, Any]]:
        return [(e.name, e.value) for e in self._entries]

    def entries(self) -> List[Entry]:
        return list(self._entries)

    def origins(self) -> Set[Origin]:
        return {e.origin for e in self._entries if e.origin is not None}

    def tagged(self, template: int, field: str) -> MultiMap:
        """Returns a copy where every untagged entry is attributed to the
        given template and field."""
        entries = [
            e if e.origin is not None else Entry(e.name, e.value, Origin(template, field, i))
            for i, e in enumerate(self._entries)
        ]
        return MultiMap(entries, self.case_insensitive)

    def copy(self) -> MultiMap:
        return MultiMap(self._entries, self.case_insensitive)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        key = self._key(name)
        return any(self._key(e.name) == key for e in self._entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MultiMap):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self):
        return f"MultiMap({self.items()!r})"
