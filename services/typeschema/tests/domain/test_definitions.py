import pytest

from typeschema.domain.definitions import IN_PROGRESS, Definitions, Namer, sanitize_name
from typeschema.domain.schema_model import STRING, Null


def test_sanitize_name_replaces_unsafe_runs():
    assert sanitize_name("Map<String,Float>") == "Map_String_Float"
    assert sanitize_name("pkg.mod.Point") == "pkg.mod.Point"
    assert sanitize_name("<>") == "anonymous"


def test_namer_is_stable_per_identity():
    namer = Namer()
    assert namer.name_for("a", "Point") == "Point"
    assert namer.name_for("a", "Point") == "Point"


def test_namer_suffixes_genuine_collisions():
    namer = Namer()
    assert namer.name_for("a", "Box<Int>") == "Box_Int"
    assert namer.name_for("b", "Box Int") == "Box_Int_2"
    assert namer.name_for("c", "Box_Int") == "Box_Int_3"
    assert namer.name_for("b", "whatever") == "Box_Int_2"


def test_in_progress_marker_is_not_null():
    defs = Definitions()
    defs.reserve("T")
    assert "T" in defs
    assert defs.is_in_progress("T")
    assert defs.get("T") is IN_PROGRESS
    assert defs.get("T") != Null()


def test_finished_rejects_unfinished_entries():
    defs = Definitions()
    defs.reserve("T")
    with pytest.raises(RuntimeError):
        defs.finished()
    defs.define("T", STRING)
    assert defs.finished() == {"T": STRING}


def test_snapshot_restore_rolls_back():
    defs = Definitions()
    defs.define("A", STRING)
    snap = defs.snapshot()
    defs.reserve("B")
    defs.define("A", Null())
    defs.restore(snap)
    assert list(defs) == ["A"]
    assert defs.get("A") == STRING


def test_restore_releases_names_claimed_after_snapshot():
    defs = Definitions()
    assert defs.name_for("kept", "T") == "T"
    snap = defs.snapshot()
    assert defs.name_for("dropped", "U") == "U"
    defs.restore(snap)
    assert defs.name_for("other", "U") == "U"
    assert defs.name_for("kept", "T") == "T"
