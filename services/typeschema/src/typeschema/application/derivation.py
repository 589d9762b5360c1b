from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
import json
import logging
import threading

from typeschema.application.builder import build
from typeschema.application.schema_serialization import dumps, render_document
from typeschema.domain.definitions import Definitions
from typeschema.domain.json_types import JsonDict, as_json_dict
from typeschema.domain.schema_model import iter_refs
from typeschema.ports.type_descriptor import TypeDescriptor

logger = logging.getLogger(__name__)

CacheKey = tuple[Hashable, str]


@dataclass(frozen=True)
class DeriveOptions:
    indent: str = ""


def derive_document(descriptor: TypeDescriptor) -> JsonDict:
    """Derive ``descriptor`` and everything it reaches into a schema document."""
    definitions = Definitions()
    root = build(descriptor, definitions)
    table = definitions.finished()
    for schema in (root, *table.values()):
        for name in iter_refs(schema):
            if name not in table:
                raise RuntimeError(f"Dangling reference to {name!r} in {descriptor.name}")
    logger.debug("Derived %s with %d definition(s)", descriptor.name, len(table))
    return render_document(root, table)


class DerivationCache:
    """Rendered schema text per (type identity, indent), shared by the process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._texts: dict[CacheKey, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._texts)

    def get(self, key: CacheKey) -> str | None:
        with self._lock:
            return self._texts.get(key)

    def store(self, key: CacheKey, text: str) -> str:
        with self._lock:
            return self._texts.setdefault(key, text)

    def clear(self) -> None:
        with self._lock:
            self._texts.clear()


DEFAULT_CACHE = DerivationCache()


class SchemaHandle:
    def __init__(
        self,
        descriptor: TypeDescriptor,
        options: DeriveOptions,
        cache: DerivationCache,
    ) -> None:
        self.descriptor = descriptor
        self.options = options
        self._cache = cache
        self._text: str | None = None

    @property
    def cache_key(self) -> CacheKey:
        return (self.descriptor.key, self.options.indent)

    @property
    def schema_text(self) -> str:
        if self._text is not None:
            return self._text
        cached = self._cache.get(self.cache_key)
        if cached is None:
            logger.debug("Cache miss for %s", self.descriptor.name)
            text = dumps(derive_document(self.descriptor), self.options.indent)
            cached = self._cache.store(self.cache_key, text)
        self._text = cached
        return cached

    @property
    def document(self) -> JsonDict:
        return as_json_dict(json.loads(self.schema_text))


def derive_schema(
    descriptor: TypeDescriptor,
    options: DeriveOptions | None = None,
    cache: DerivationCache | None = None,
) -> SchemaHandle:
    return SchemaHandle(
        descriptor,
        options or DeriveOptions(),
        DEFAULT_CACHE if cache is None else cache,
    )
