"""Tests for the archive merge layer and the resource table."""

import pytest

from ukformats import byml
from ukformats.aamp import Parameter, ParameterIO, ParameterObject
from Content.archive import ArchiveEntry, ResourceTable, SarcMap
from Content.delete_map import SortedDeleteMap
from Content.resource import DataKind
from ukformats.sarc import SarcReader, SarcWriter, yaz0
from Utils.endian import Endian
from Utils.errors import MissingResource

PACK_PATH = "content/Actor/Pack/Enemy_Bokoblin.sbactorpack"
PACK_KEY = "Actor/Pack/Enemy_Bokoblin.bactorpack"
LINK = "Actor/ActorLink/Enemy_Bokoblin.bxml"
PHYSICS = "Actor/Physics/Enemy_Bokoblin.bphysics"
OPAQUE = "x.dat"


def _link(model: str) -> bytes:
    return ParameterIO().with_object(
        "LinkTarget", ParameterObject().with_param("ModelUser", Parameter.string64(model)),
    ).to_binary()


def _pack(members: dict[str, bytes], compress: bool = True) -> bytes:
    data = SarcWriter(Endian.LITTLE, members).to_binary()
    return yaz0.compress(data) if compress else data


BASE_MEMBERS = {
    LINK: _link("Bokoblin"),
    PHYSICS: b"physics bytes",
    OPAQUE: b"opaque \x00\x01\x02",
}


def _table(members: dict[str, bytes]) -> ResourceTable:
    return ResourceTable.from_archive(PACK_PATH, _pack(members))


def _members(data: bytes) -> dict[str, bytes]:
    return SarcReader(yaz0.decompress(data)).files()


class TestLoading:
    """Test recursive archive loading."""

    def test_members_become_keys(self) -> None:
        """Test every nested member is a table key of its own."""
        table = _table(BASE_MEMBERS)
        assert set(table.resources) == {PACK_KEY, LINK, PHYSICS, OPAQUE}
        assert table.get(PACK_KEY).kind is DataKind.SARC
        assert table.get(LINK).kind is DataKind.MERGEABLE
        assert table.get(OPAQUE).kind is DataKind.BINARY

    def test_archive_entries_point_at_keys(self) -> None:
        """Test the archive map records member keys and compression."""
        inner = {"Model/Foo.sbfres": yaz0.compress(b"FRES" + bytes(32))}
        table = _table(inner)
        sarc_map = table.get(PACK_KEY).value
        assert sarc_map.entries["Model/Foo.sbfres"] == ArchiveEntry("Model/Foo.bfres", True)


class TestPassthrough:
    """Test untouched content is written back byte for byte."""

    def test_pristine_archive_is_identical(self) -> None:
        """Test an archive nothing changed is copied unchanged."""
        data = _pack(BASE_MEMBERS)
        table = ResourceTable.from_archive(PACK_PATH, data)
        assert table.is_pristine(PACK_KEY)
        assert table.file_bytes(PACK_PATH, Endian.LITTLE) == data

    def test_untouched_members_survive_a_merge(self) -> None:
        """Test a changed member does not disturb its siblings."""
        base = _table(BASE_MEMBERS)
        mod = _table({**BASE_MEMBERS, LINK: _link("Lynel")})
        merged = base.merge(base.diff(mod))
        assert not merged.is_pristine(PACK_KEY)
        assert merged.is_pristine(OPAQUE)
        members = _members(merged.file_bytes(PACK_PATH, Endian.LITTLE))
        assert members[OPAQUE] == BASE_MEMBERS[OPAQUE]
        assert members[PHYSICS] == BASE_MEMBERS[PHYSICS]
        assert ParameterIO.from_binary(members[LINK]).require_object("LinkTarget")[
            "ModelUser"
        ].as_string() == "Lynel"

    def test_new_member_is_copied(self) -> None:
        """Test a member only the mod has is written as the mod stored it."""
        added = yaz0.compress(b"opaque new member")
        base = _table(BASE_MEMBERS)
        mod = _table({**BASE_MEMBERS, "Actor/Extra.sbin": added})
        merged = base.merge(base.diff(mod))
        assert _members(merged.file_bytes(PACK_PATH, Endian.LITTLE))["Actor/Extra.sbin"] == added

    def test_removed_member(self) -> None:
        """Test a member the mod removed is gone from the output."""
        base = _table(BASE_MEMBERS)
        mod = _table({LINK: BASE_MEMBERS[LINK], PHYSICS: BASE_MEMBERS[PHYSICS]})
        merged = base.merge(base.diff(mod))
        assert OPAQUE not in _members(merged.file_bytes(PACK_PATH, Endian.LITTLE))


class TestTableDiff:
    """Test whole-table diff and merge."""

    def test_diff_holds_only_changes(self) -> None:
        """Test unchanged keys are left out of a diff."""
        base = _table(BASE_MEMBERS)
        mod = _table({**BASE_MEMBERS, PHYSICS: b"new physics"})
        assert set(base.diff(mod).resources) == {PHYSICS}

    @pytest.mark.parametrize("order", [(0, 1), (1, 0)])
    def test_two_mods_different_members(self, order) -> None:
        """Test changes to different members of one archive both apply."""
        base = _table(BASE_MEMBERS)
        diffs = [
            base.diff(_table({**BASE_MEMBERS, LINK: _link("Lynel")})),
            base.diff(_table({**BASE_MEMBERS, PHYSICS: b"new physics"})),
        ]
        merged = base
        for i in order:
            merged = merged.merge(diffs[i])
        members = _members(merged.file_bytes(PACK_PATH, Endian.LITTLE))
        assert members[PHYSICS] == b"new physics"
        assert b"Lynel" in members[LINK]

    def test_conflict_last_writer_wins(self) -> None:
        """Test the later mod's version of an opaque member is kept."""
        base = _table(BASE_MEMBERS)
        d1 = base.diff(_table({**BASE_MEMBERS, OPAQUE: b"first"}))
        d2 = base.diff(_table({**BASE_MEMBERS, OPAQUE: b"second"}))
        assert _members(base.merge(d1).merge(d2).file_bytes(PACK_PATH, Endian.LITTLE))[OPAQUE] == b"second"
        assert _members(base.merge(d2).merge(d1).file_bytes(PACK_PATH, Endian.LITTLE))[OPAQUE] == b"first"

    def test_value_type_change_is_kept(self) -> None:
        """Test a file whose only change is an int turned float is merged as shipped."""
        path = "content/Event/EventInfo.product.byml"
        modified_bytes = byml.to_binary({"Ev<A>": {"v": 1.0}})
        base, mod = ResourceTable(), ResourceTable()
        base.add(path, byml.to_binary({"Ev<A>": {"v": 1}}))
        mod.add(path, modified_bytes)
        diff = base.diff(mod)
        assert set(diff.resources) == {"Event/EventInfo.product.byml"}
        merged = base.merge(diff)
        assert "Event/EventInfo.product.byml" in merged.touched
        assert merged.file_bytes(path, Endian.LITTLE) == modified_bytes

    def test_unparseable_mod_file_is_taken_whole(self) -> None:
        """Test a parameter file replaced by bytes that no longer parse."""
        path = "content/Foo/Bar.bxyz"
        base, mod = ResourceTable(), ResourceTable()
        base.add(path, _link("Bokoblin"))
        mod.add(path, b"garbage")
        diff = base.diff(mod)
        assert diff.get("Foo/Bar.bxyz").kind is DataKind.BINARY
        assert base.merge(diff).file_bytes(path, Endian.LITTLE) == b"garbage"

    def test_fold_matches_sequential_merge(self) -> None:
        """Test folding one key over several diffs equals merging them in turn."""
        base = _table(BASE_MEMBERS)
        d1 = base.diff(_table({**BASE_MEMBERS, OPAQUE: b"first"}))
        d2 = base.diff(_table({**BASE_MEMBERS, OPAQUE: b"second"}))
        value, stored = base.fold(OPAQUE, [d1, d2])
        assert value == base.merge(d1).merge(d2).get(OPAQUE)
        assert stored is None


class TestMissingMembers:
    """Test archives referencing keys the table lacks."""

    def _orphan(self) -> SarcMap:
        return SarcMap(Endian.LITTLE, SortedDeleteMap({"a.bin": ArchiveEntry("a.bin")}))

    def test_missing_member_raises(self) -> None:
        """Test the error names the member and the archive."""
        with pytest.raises(MissingResource) as exc_info:
            self._orphan().to_binary(Endian.LITTLE, ResourceTable(), name="Test.pack")
        assert exc_info.value.key == "a.bin"
        assert exc_info.value.archive == "Test.pack"

    def test_skip_missing(self) -> None:
        """Test skip_missing drops the member instead."""
        data = self._orphan().to_binary(Endian.LITTLE, ResourceTable(), skip_missing=True)
        assert SarcReader(data).files() == {}

    def test_nested_archive_reports_inner_archive(self) -> None:
        """Test the innermost archive is named when a nested member is missing."""
        table = _table(BASE_MEMBERS)
        del table.resources[OPAQUE]
        del table.originals[OPAQUE]
        with pytest.raises(MissingResource) as exc_info:
            table.file_bytes(PACK_PATH, Endian.LITTLE)
        assert exc_info.value.archive == PACK_KEY
