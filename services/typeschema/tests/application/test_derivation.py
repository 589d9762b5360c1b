from concurrent.futures import ThreadPoolExecutor

import pytest

from typeschema.adapters import synthetic
from typeschema.adapters.synthetic import INT
from typeschema.application.derivation import DerivationCache, DeriveOptions, derive_schema
from typeschema.domain.errors import UnsupportedType
from typeschema.ports.type_descriptor import FieldInfo


def _point():
    return synthetic.record("Point", [FieldInfo("x", INT), FieldInfo("y", INT)])


def test_rederivation_is_idempotent():
    cache = DerivationCache()
    point = _point()
    first = derive_schema(point, cache=cache).schema_text
    second = derive_schema(point, cache=cache).schema_text
    assert first == second
    assert len(cache) == 1


def test_cache_keys_include_indent():
    cache = DerivationCache()
    point = _point()
    compact = derive_schema(point, cache=cache).schema_text
    pretty = derive_schema(point, DeriveOptions(indent="    "), cache=cache).schema_text
    assert compact != pretty
    assert len(cache) == 2
    cache.clear()
    assert len(cache) == 0


def test_handle_is_lazy_and_memoized():
    cache = DerivationCache()
    handle = derive_schema(_point(), cache=cache)
    assert len(cache) == 0
    assert handle.schema_text is handle.schema_text
    assert handle.document["definitions"]["Point"]["required"] == ["x", "y"]


def test_concurrent_derivations_agree():
    cache = DerivationCache()
    point = _point()
    with ThreadPoolExecutor(max_workers=8) as pool:
        texts = list(pool.map(lambda _: derive_schema(point, cache=cache).schema_text, range(32)))
    assert len(set(texts)) == 1
    assert len(cache) == 1


def test_failures_are_not_cached():
    cache = DerivationCache()
    handle = derive_schema(synthetic.unsupported("Socket"), cache=cache)
    with pytest.raises(UnsupportedType):
        handle.schema_text
    assert len(cache) == 0


def test_short_lived_types_never_share_a_cache_entry():
    cache = DerivationCache()
    for i in range(50):
        record = synthetic.record(f"R{i}", [FieldInfo(f"f{i}", INT)])
        text = derive_schema(record, cache=cache).schema_text
        assert f'"R{i}"' in text
        assert f'"f{i}"' in text
        del record
    assert len(cache) == 50
