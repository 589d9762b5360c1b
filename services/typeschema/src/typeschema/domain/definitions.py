from __future__ import annotations

from collections.abc import Hashable, Iterator
from dataclasses import dataclass
import re
from typing import Final, TypeAlias

from typeschema.domain.schema_model import JsonType


class InProgress:
    """Marker stored under a name whose schema is still being derived."""

    def __repr__(self) -> str:
        return "IN_PROGRESS"


IN_PROGRESS: Final = InProgress()

Entry: TypeAlias = JsonType | InProgress

_UNSAFE_RUN = re.compile(r"[^A-Za-z0-9_.]+")


def sanitize_name(display: str) -> str:
    name = _UNSAFE_RUN.sub("_", display).strip("_")
    return name or "anonymous"


@dataclass(frozen=True)
class NamerState:
    names: dict[Hashable, str]
    owners: dict[str, Hashable]


@dataclass(frozen=True)
class Snapshot:
    entries: dict[str, Entry]
    namer: NamerState


class Namer:
    """Maps type identities to definition names, suffixing genuine collisions."""

    def __init__(self) -> None:
        self._names: dict[Hashable, str] = {}
        self._owners: dict[str, Hashable] = {}

    def name_for(self, key: Hashable, display: str) -> str:
        known = self._names.get(key)
        if known is not None:
            return known
        base = sanitize_name(display)
        candidate = base
        suffix = 1
        while candidate in self._owners:
            suffix += 1
            candidate = f"{base}_{suffix}"
        self._names[key] = candidate
        self._owners[candidate] = key
        return candidate

    def snapshot(self) -> NamerState:
        return NamerState(dict(self._names), dict(self._owners))

    def restore(self, state: NamerState) -> None:
        self._names = dict(state.names)
        self._owners = dict(state.owners)


class Definitions:
    def __init__(self, namer: Namer | None = None) -> None:
        self._entries: dict[str, Entry] = {}
        self.namer = namer or Namer()

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def name_for(self, key: Hashable, display: str) -> str:
        return self.namer.name_for(key, display)

    def get(self, name: str) -> Entry | None:
        return self._entries.get(name)

    def is_in_progress(self, name: str) -> bool:
        return self._entries.get(name) is IN_PROGRESS

    def reserve(self, name: str) -> None:
        self._entries[name] = IN_PROGRESS

    def define(self, name: str, schema: JsonType) -> None:
        self._entries[name] = schema

    def discard(self, name: str) -> None:
        self._entries.pop(name, None)

    def snapshot(self) -> Snapshot:
        return Snapshot(dict(self._entries), self.namer.snapshot())

    def restore(self, snapshot: Snapshot) -> None:
        """Forget entries and names claimed since ``snapshot`` was taken."""
        self._entries = dict(snapshot.entries)
        self.namer.restore(snapshot.namer)

    def finished(self) -> dict[str, JsonType]:
        table: dict[str, JsonType] = {}
        for name, entry in self._entries.items():
            if isinstance(entry, InProgress):
                raise RuntimeError(f"Definition {name!r} was never completed")
            table[name] = entry
        return table
