"""
Category entries as reported by the server, and an ordered list of them.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, Iterator, List, Optional


@dataclass
class CategoryEntry:
    """One server-side category."""

    name: str
    category_id: str = ""
    description: str = ""
    html_url: str = ""
    rss_url: str = ""
    parent_id: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "CategoryEntry":
        return cls(
            name=str(data.get("name", "")),
            category_id=str(data.get("category_id", "")),
            description=str(data.get("description", "")),
            html_url=str(data.get("html_url", "")),
            rss_url=str(data.get("rss_url", "")),
            parent_id=str(data.get("parent_id", "")),
        )


class CategoryList:
    """
    Ordered list of categories with unique names.

    Adding an entry whose name is already present replaces the old entry
    in place, so lookups by name are never ambiguous.
    """

    def __init__(self, entries: Iterable[CategoryEntry] = ()):
        self._entries: List[CategoryEntry] = []
        for entry in entries:
            self.add(entry)

    def add(self, entry: CategoryEntry) -> None:
        for index, existing in enumerate(self._entries):
            if existing.name == entry.name:
                self._entries[index] = entry
                return
        self._entries.append(entry)

    def replace(self, entries: Iterable[CategoryEntry]) -> None:
        """Drop every entry and add the given ones."""
        self._entries = []
        for entry in entries:
            self.add(entry)

    def by_name(self, name: str) -> Optional[CategoryEntry]:
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def by_id(self, category_id: str) -> Optional[CategoryEntry]:
        for entry in self._entries:
            if entry.category_id == str(category_id):
                return entry
        return None

    def names(self) -> List[str]:
        return [entry.name for entry in self._entries]

    def entries(self) -> List[CategoryEntry]:
        return list(self._entries)

    def __iter__(self) -> Iterator[CategoryEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)
