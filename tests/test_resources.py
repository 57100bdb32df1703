"""Diff/merge tests for every mergeable resource kind."""

import pytest

from ukformats import byml
from ukformats.aamp import Parameter, ParameterIO, ParameterList, ParameterObject
from ukformats.byml import UInt
from Content.actor_info import ActorInfo, actor_hash
from Content.actor_link import ActorLink
from Content.ai_program import AIProgram
from Content.area_data import AreaData
from Content.att_client_list import AttClientList
from Content.delete_map import DeleteList, DeleteMap, DeleteSet, SortedDeleteMap
from Content.drop_table import DropTable
from Content.event_info import EventInfo
from Content.gamedata import SHARD_SIZE, GameData, GameDataPack, data_type_for
from Content.general_param_list import GeneralParamList
from Content.generic import GenericParams
from Content.resident_actors import ResidentActors
from Content.resident_events import ResidentEvents
from Content.resource import DataKind, ResourceData, ResourceKind
from Content.save_data import SHARD_SIZE as SAVE_SHARD_SIZE, SaveData, SaveDataPack
from Content.static import START_POS, EntryPos, Static
from ukformats.sarc import SarcReader
from Utils.endian import Endian
from Utils.errors import ParseError, SchemaMismatch


def _strings(**params: str) -> ParameterObject:
    obj = ParameterObject()
    for name, value in params.items():
        obj[name] = Parameter.string64(value)
    return obj


def _actor_link_pio(model: str = "Bokoblin", tags: tuple[str, ...] = ()) -> ParameterIO:
    pio = ParameterIO().with_object(
        "LinkTarget", _strings(ModelUser=model, ASUser="Enemy", PhysicsUser="Dummy"),
    )
    if tags:
        pio.set_object("Tags", _strings(**{f"Tag{i}": t for i, t in enumerate(tags)}))
    return pio


def _assert_merge_law(base, modified) -> None:
    assert base.merge(base.diff(modified)) == modified


class TestActorLink:
    """Test actor link files."""

    def test_parse(self) -> None:
        """Test link targets and tags are read."""
        link = ActorLink.from_binary(_actor_link_pio(tags=("Enemy", "Boss")).to_binary())
        assert link.targets["ModelUser"].as_string() == "Bokoblin"
        assert list(link.tags) == ["Enemy", "Boss"]

    def test_binary_round_trip(self) -> None:
        """Test writing and reading gives the same resource."""
        link = ActorLink.from_pio(_actor_link_pio(tags=("A", "B")))
        assert ActorLink.from_binary(link.to_binary(Endian.BIG)) == link

    def test_missing_link_target(self) -> None:
        """Test the LinkTarget object is required."""
        with pytest.raises(ParseError):
            ActorLink.from_pio(ParameterIO())

    def test_merge_law(self) -> None:
        """Test merging a diff reproduces the modified file."""
        base = ActorLink.from_pio(_actor_link_pio(tags=("Enemy",)))
        modified = ActorLink.from_pio(_actor_link_pio(model="Lynel", tags=("Enemy", "Boss")))
        _assert_merge_law(base, modified)

    def test_two_mods_combine(self) -> None:
        """Test a target change and a tag change from different mods both apply."""
        base = ActorLink.from_pio(_actor_link_pio(tags=("Enemy",)))
        d1 = base.diff(ActorLink.from_pio(_actor_link_pio(model="Lynel", tags=("Enemy",))))
        d2 = base.diff(ActorLink.from_pio(_actor_link_pio(tags=("Enemy", "Boss"))))
        for merged in (base.merge(d1).merge(d2), base.merge(d2).merge(d1)):
            assert merged.targets["ModelUser"].as_string() == "Lynel"
            assert merged.tags == DeleteSet(["Enemy", "Boss"])

    def test_schema_mismatch(self) -> None:
        """Test diffing against another kind is a programming error."""
        with pytest.raises(SchemaMismatch):
            ActorLink().diff(DropTable())


def _att_client_list(clients: dict[str, str]) -> AttClientList:
    return AttClientList(
        att_pos=ParameterObject().with_param("Pos", Parameter.vec3(0, 1, 0)),
        att_clients=DeleteMap(clients),
    )


class TestAttClientList:
    """Test attention client lists."""

    def test_binary_round_trip(self) -> None:
        """Test clients survive a write and read."""
        acl = _att_client_list({"Talk": "NPC_Talk", "Lock": "Enemy_Lock"})
        assert AttClientList.from_binary(acl.to_binary(Endian.LITTLE)) == acl

    def test_merge_law_with_removed_client(self) -> None:
        """Test a removed client is removed by the merge."""
        base = _att_client_list({"Talk": "NPC_Talk", "Lock": "Enemy_Lock"})
        modified = _att_client_list({"Talk": "NPC_Talk2"})
        diff = base.diff(modified)
        assert diff.att_clients.deleted_keys() == ["Lock"]
        _assert_merge_law(base, modified)


def _drop_table(tables: dict[str, dict[str, str]]) -> DropTable:
    return DropTable(tables=DeleteMap({
        name: _strings(**items) for name, items in tables.items()
    }))


class TestDropTable:
    """Test drop tables."""

    def test_binary_round_trip(self) -> None:
        """Test the header and tables survive a write and read."""
        table = _drop_table({"Normal": {"ItemName01": "Item_Apple"}, "Rare": {"ItemName01": "Gem"}})
        data = table.to_binary(Endian.LITTLE)
        assert DropTable.from_binary(data) == table
        header = ParameterIO.from_binary(data).require_object("Header")
        assert header["TableNum"].as_int() == 2
        assert header["Table02"].as_string() == "Rare"

    def test_mods_touching_different_items(self) -> None:
        """Test two mods editing different items of one table both apply."""
        base = _drop_table({"Normal": {"ItemName01": "Apple", "ItemName02": "Wood"}})
        d1 = base.diff(_drop_table({"Normal": {"ItemName01": "Banana", "ItemName02": "Wood"}}))
        d2 = base.diff(_drop_table({"Normal": {"ItemName01": "Apple", "ItemName02": "Stone"}}))
        merged = base.merge(d1).merge(d2)
        assert merged.tables["Normal"]["ItemName01"].as_string() == "Banana"
        assert merged.tables["Normal"]["ItemName02"].as_string() == "Stone"

    def test_new_table_updates_count(self) -> None:
        """Test adding a table is reflected in the written header."""
        base = _drop_table({"Normal": {"ItemName01": "Apple"}})
        modified = _drop_table({"Normal": {"ItemName01": "Apple"}, "Extra": {"ItemName01": "Gem"}})
        merged = base.merge(base.diff(modified))
        header = merged.to_pio().require_object("Header")
        assert header["TableNum"].as_int() == 2


class TestGeneralParamList:
    """Test general parameter lists."""

    def test_merge_law(self) -> None:
        """Test parameter-level changes inside objects merge back."""
        base = GeneralParamList.from_pio(ParameterIO().with_object(
            "General", ParameterObject().with_param("Speed", Parameter.f32(1.0)),
        ))
        modified = GeneralParamList.from_pio(ParameterIO().with_object(
            "General", ParameterObject()
            .with_param("Speed", Parameter.f32(2.0))
            .with_param("Life", Parameter.int(100)),
        ).with_object("Attack", ParameterObject().with_param("Power", Parameter.int(5))))
        _assert_merge_law(base, modified)
        assert GeneralParamList.from_binary(modified.to_binary(Endian.BIG)) == modified


class TestGenericParams:
    """Test the fallback parameter archive merge."""

    def test_nested_lists_merge(self) -> None:
        """Test changes in different child lists from two mods both apply."""
        def pio(x: int, extra: bool) -> ParameterIO:
            root = ParameterIO().with_list("A", ParameterList().with_object(
                "Obj", ParameterObject().with_param("X", Parameter.int(x)).with_param("Y", Parameter.int(1)),
            ))
            if extra:
                root.set_list("B", ParameterList().with_object("New", _strings(Name="added")))
            return root

        base = GenericParams(pio(0, False))
        d1 = base.diff(GenericParams(pio(5, False)))
        d2 = base.diff(GenericParams(pio(0, True)))
        merged = base.merge(d1).merge(d2)
        assert merged == GenericParams(pio(5, True))
        _assert_merge_law(base, GenericParams(pio(5, True)))

    def test_keeps_byte_order_of_base(self) -> None:
        """Test the merged archive is written in the base's byte order."""
        base = GenericParams(ParameterIO.from_binary(_actor_link_pio().to_binary(Endian.BIG)))
        merged = base.merge(base.diff(GenericParams(_actor_link_pio(model="Lynel"))))
        assert ParameterIO.from_binary(merged.to_binary(Endian.LITTLE)).endian is Endian.BIG


def _actor(name: str, **extra) -> dict:
    return {"name": name, "instSize": 1024, **extra}


class TestActorInfo:
    """Test the actor information table."""

    NAMES = ["Enemy_Bokoblin", "Weapon_Sword_001", "Item_Apple", "NPC_Hylian", "Obj_Chest"]

    def test_hashes_follow_actors(self) -> None:
        """Test hashes are written sorted and in step with the actors."""
        info = ActorInfo.from_byml({"Actors": [_actor(n) for n in self.NAMES], "Hashes": []})
        root = info.to_byml()
        hashes = [int(h) for h in root["Hashes"]]
        assert hashes == sorted(actor_hash(n) for n in self.NAMES)
        assert [actor_hash(a["name"]) for a in root["Actors"]] == hashes

    def test_large_hashes_are_unsigned(self) -> None:
        """Test hashes above the signed range are written as u32 nodes."""
        info = ActorInfo.from_byml({"Actors": [_actor(n) for n in self.NAMES]})
        for h in info.to_byml()["Hashes"]:
            assert isinstance(h, UInt) == (int(h) > 0x7FFFFFFF)
        back = ActorInfo.from_binary(info.to_binary(Endian.LITTLE))
        assert back == info

    def test_disjoint_mods(self) -> None:
        """Test an edited actor and a removed actor from two mods."""
        base = ActorInfo.from_byml({"Actors": [_actor(n) for n in self.NAMES]})
        edited = [_actor(n, instSize=4096) if n == "Item_Apple" else _actor(n) for n in self.NAMES]
        removed = [_actor(n) for n in self.NAMES if n != "Obj_Chest"]
        d1 = base.diff(ActorInfo.from_byml({"Actors": edited}))
        d2 = base.diff(ActorInfo.from_byml({"Actors": removed}))
        for merged in (base.merge(d1).merge(d2), base.merge(d2).merge(d1)):
            assert actor_hash("Obj_Chest") not in merged.actors
            assert merged.actors[actor_hash("Item_Apple")]["instSize"] == 4096
            assert len(merged.actors) == 4


class TestResidentActors:
    """Test resident actor lists."""

    def test_merge_law(self) -> None:
        """Test added, changed and removed entries."""
        base = ResidentActors.from_byml([
            {"name": "GameROMPlayer", "only_res": False},
            {"name": "Dm_Npc", "only_res": True},
        ])
        modified = ResidentActors.from_byml([
            {"name": "GameROMPlayer", "only_res": True},
            {"name": "Mod_Actor", "only_res": False},
        ])
        _assert_merge_law(base, modified)
        assert ResidentActors.from_binary(modified.to_binary(Endian.BIG)) == modified


class TestEventInfo:
    """Test event information."""

    def test_merge_law(self) -> None:
        """Test events keyed by name diff and merge."""
        base = EventInfo.from_byml({"Demo001<Start>": {"type": "Demo"}, "Talk<Hi>": {"type": "Talk"}})
        modified = EventInfo.from_byml({"Demo001<Start>": {"type": "Demo2"}, "New<Entry>": {}})
        _assert_merge_law(base, modified)


class TestAreaData:
    """Test ecosystem area data."""

    def test_written_in_area_order(self) -> None:
        """Test areas come out sorted by AreaNumber."""
        data = AreaData.from_byml([{"AreaNumber": 3}, {"AreaNumber": 1}, {"AreaNumber": 2}])
        assert [a["AreaNumber"] for a in data.to_byml()] == [1, 2, 3]

    def test_merge_law(self) -> None:
        """Test changed and new areas merge back."""
        base = AreaData.from_byml([{"AreaNumber": 1, "Climate": "Hot"}, {"AreaNumber": 2}])
        modified = AreaData.from_byml([{"AreaNumber": 1, "Climate": "Cold"}, {"AreaNumber": 7}])
        _assert_merge_law(base, modified)

    def test_missing_area_number(self) -> None:
        """Test an area without AreaNumber is a type mismatch."""
        with pytest.raises(ParseError):
            AreaData.from_byml([{"Climate": "Hot"}])


def _pos(map_name: str, pos_name: str, y: float = 0.0, **extra) -> dict:
    return {
        "Map": map_name, "PosName": pos_name,
        "Rotate": {"X": 0.0, "Y": 0.0, "Z": 0.0},
        "Translate": {"X": 1.0, "Y": y, "Z": 2.0},
        **extra,
    }


class TestStatic:
    """Test map static data."""

    ROOT = {
        START_POS: [
            _pos("A-1", "Entrance"),
            _pos("A-1", "Exit", PlayerState="Ride"),
            _pos("B-2", "Entrance"),
            {"Map": "C-3", "Rotate": {"X": 0.0}, "Translate": {"X": 0.0}},
        ],
        "LocationMarker": [{"Icon": "Village"}, {"Icon": "Tower"}],
    }

    def test_parse(self) -> None:
        """Test start positions are grouped by map and position name."""
        static = Static.from_byml(self.ROOT)
        assert list(static.start_pos) == ["A-1", "B-2"]
        assert static.start_pos["A-1"]["Exit"].player_state == "Ride"
        assert len(static.general[START_POS]) == 1
        assert len(static.general["LocationMarker"]) == 2

    def test_binary_round_trip(self) -> None:
        """Test the document survives a write and read."""
        static = Static.from_byml(self.ROOT)
        assert Static.from_binary(static.to_binary(Endian.BIG)) == static

    def test_missing_translate(self) -> None:
        """Test a named entry point needs both Rotate and Translate."""
        entry = _pos("A-1", "Broken")
        del entry["Translate"]
        with pytest.raises(ParseError):
            Static.from_byml({START_POS: [entry]})

    def test_two_mods_change_different_entries(self) -> None:
        """Test moving one entry point and adding another both apply."""
        base = Static.from_byml(self.ROOT)
        moved = Static.from_byml({**self.ROOT, START_POS: [
            _pos("A-1", "Entrance", y=50.0), *self.ROOT[START_POS][1:],
        ]})
        added = Static.from_byml({**self.ROOT, START_POS: [
            *self.ROOT[START_POS], _pos("A-1", "Secret"),
        ]})
        d1, d2 = base.diff(moved), base.diff(added)
        for merged in (base.merge(d1).merge(d2), base.merge(d2).merge(d1)):
            assert merged.start_pos["A-1"]["Entrance"].translate["Y"] == 50.0
            assert "Secret" in merged.start_pos["A-1"]
            assert "Exit" in merged.start_pos["A-1"]

    def test_general_list_additions(self) -> None:
        """Test markers added by two mods are all kept."""
        base = Static.from_byml(self.ROOT)
        markers = self.ROOT["LocationMarker"]
        d1 = base.diff(Static.from_byml({**self.ROOT, "LocationMarker": [*markers, {"Icon": "Shrine"}]}))
        d2 = base.diff(Static.from_byml({**self.ROOT, "LocationMarker": [*markers, {"Icon": "Stable"}]}))
        merged = base.merge(d1).merge(d2)
        assert merged.general["LocationMarker"] == DeleteList(
            [*markers, {"Icon": "Shrine"}, {"Icon": "Stable"}]
        )

    def test_merge_law(self) -> None:
        """Test merging a diff reproduces the modified data."""
        base = Static.from_byml(self.ROOT)
        modified = Static.from_byml({
            START_POS: [_pos("A-1", "Entrance", y=3.0), _pos("D-4", "Gate"), self.ROOT[START_POS][3]],
            "LocationMarker": [{"Icon": "Tower"}],
            "TargetPosMarker": [{"UniqueName": "x"}],
        })
        _assert_merge_law(base, modified)

    def test_entry_pos_fields(self) -> None:
        """Test player state is optional."""
        pos = Static.from_byml({START_POS: [_pos("A-1", "Entrance")]}).start_pos["A-1"]["Entrance"]
        assert pos == EntryPos(
            rotate={"X": 0.0, "Y": 0.0, "Z": 0.0}, translate={"X": 1.0, "Y": 0.0, "Z": 2.0},
        )


def _flags(count: int, start: int = 0) -> SortedDeleteMap:
    return SortedDeleteMap(
        (i, {"DataName": f"flag_{i}", "HashValue": i, "InitValue": 0})
        for i in range(start, start + count)
    )


class TestGameData:
    """Test game flag packs."""

    @pytest.mark.parametrize("count, shards", [(0, 0), (1, 1), (SHARD_SIZE, 1), (SHARD_SIZE + 1, 2)])
    def test_shard_count(self, count: int, shards: int) -> None:
        """Test flags are split into 4096-entry shards."""
        parts = GameData("bool_data", _flags(count)).divide()
        assert len(parts) == shards
        assert sum(len(p.flags) for p in parts) == count
        assert all(len(p.flags) <= SHARD_SIZE for p in parts)

    def test_shard_boundary_order(self) -> None:
        """Test the last flag lands alone in the second shard."""
        first, second = GameData("s32_data", _flags(SHARD_SIZE + 1)).divide()
        assert list(second.flags) == [SHARD_SIZE]
        assert list(first.flags)[-1] == SHARD_SIZE - 1

    def test_pack_round_trip(self) -> None:
        """Test shards are written and folded back into one family."""
        pack = GameDataPack(
            bool_data=GameData("bool_data", _flags(SHARD_SIZE + 1)),
            revival_s32_data=GameData(data_type_for("revival_s32_data"), _flags(3, 100)),
        )
        writer = pack.to_sarc(Endian.LITTLE)
        assert sorted(writer.files) == [
            "/bool_data_0.bgdata", "/bool_data_1.bgdata", "/revival_s32_data_0.bgdata",
        ]
        back = GameDataPack.from_binary(pack.to_binary(Endian.LITTLE))
        assert back == pack

    def test_family_prefixes_do_not_collide(self) -> None:
        """Test bool_data shards are not read as revival_bool_data."""
        files = {
            "/bool_data_0.bgdata": byml.to_binary({"bool_data": [{"HashValue": 1, "DataName": "a"}]}),
            "/revival_bool_data_0.bgdata": byml.to_binary({"bool_data": [{"HashValue": 2, "DataName": "b"}]}),
        }
        pack = GameDataPack.from_files(files)
        assert list(pack.bool_data.flags) == [1]
        assert list(pack.revival_bool_data.flags) == [2]

    def test_hash_values_are_unsigned_keys(self) -> None:
        """Test negative stored hashes are keyed as u32."""
        data = GameData.from_byml({"s32_data": [{"HashValue": -1, "DataName": "x"}]})
        assert list(data.flags) == [0xFFFFFFFF]

    def test_special_data_types(self) -> None:
        """Test families whose document key differs from the file name."""
        assert data_type_for("string32_data") == "string_data"
        assert data_type_for("revival_bool_data") == "bool_data"
        assert data_type_for("vector3f_data") == "vector3f_data"

    def test_mods_add_different_flags(self) -> None:
        """Test flags added by two mods are both present after merging."""
        base = GameDataPack(bool_data=GameData("bool_data", _flags(10)))
        one = GameDataPack(bool_data=GameData("bool_data", _flags(11)))
        two = GameDataPack(bool_data=GameData("bool_data", _flags(10).merge(_flags(1, 50))))
        merged = base.merge(base.diff(one)).merge(base.diff(two))
        assert list(merged.bool_data.flags) == [*range(11), 50]

    def test_type_mismatch(self) -> None:
        """Test merging different flag types is refused."""
        with pytest.raises(SchemaMismatch):
            GameData("bool_data").merge(GameData("s32_data"))

    def test_written_pack_is_a_sarc(self) -> None:
        """Test the pack binary is an archive with the platform byte order."""
        pack = GameDataPack(f32_data=GameData("f32_data", _flags(2)))
        reader = SarcReader(pack.to_binary(Endian.BIG))
        assert reader.endian is Endian.BIG
        assert list(reader.files()) == ["/f32_data_0.bgdata"]


def _ai_program(*classes: str, demo_idx: int = 0) -> AIProgram:
    ais = ParameterList()
    for i, name in enumerate(classes):
        ais.set_list(f"AI_{i}", ParameterList().with_object(
            "Def", ParameterObject().with_param("ClassName", Parameter.string32(name)),
        ))
    pio = ParameterIO().with_list("AI", ais)
    for category in ("Action", "Behavior", "Query"):
        pio.set_list(category, ParameterList())
    pio.set_object("DemoAIActionIdx", ParameterObject().with_param("Demo_Idle", Parameter.int(demo_idx)))
    return AIProgram.from_pio(pio)


class TestAIProgram:
    """Test actor AI programs."""

    def test_entries_keyed_by_index(self) -> None:
        """Test numbered child lists are read in index order."""
        program = _ai_program("Root", "Wander")
        assert list(program.ais) == [0, 1]
        assert program.ais[1].require_object("Def")["ClassName"].as_string() == "Wander"
        assert AIProgram.from_binary(program.to_binary(Endian.BIG)) == program

    def test_merge_law(self) -> None:
        """Test an edited entry, an appended entry and a root object change."""
        base = _ai_program("Root", "Wander")
        modified = _ai_program("Root", "Attack", "Flee", demo_idx=2)
        diff = base.diff(modified)
        assert list(diff.ais) == [1, 2]
        _assert_merge_law(base, modified)

    def test_two_mods(self) -> None:
        """Test one mod's edit and another's addition both apply."""
        base = _ai_program("Root", "Wander")
        edited = base.diff(_ai_program("Root", "Attack"))
        added = base.diff(_ai_program("Root", "Wander", "Flee"))
        merged = base.merge(edited).merge(added)
        names = [e.require_object("Def")["ClassName"].as_string() for e in merged.ais.values()]
        assert names == ["Root", "Attack", "Flee"]

    def test_written_under_index_names(self) -> None:
        """Test entries are written back as <category>_<index>."""
        plist = _ai_program("Root", "Wander").to_pio().require_list("AI")
        assert plist.list("AI_0") is not None
        assert plist.list("AI_1") is not None
        assert len(plist.lists) == 2

    def test_gap_in_numbering(self) -> None:
        """Test a category with a missing index is rejected."""
        ais = ParameterList().with_list("AI_0", ParameterList()).with_list("AI_2", ParameterList())
        with pytest.raises(ParseError):
            AIProgram.from_pio(ParameterIO().with_list("AI", ais))

    def test_unknown_root_list(self) -> None:
        """Test lists outside the four categories are rejected."""
        with pytest.raises(ParseError):
            AIProgram.from_pio(ParameterIO().with_list("Extra", ParameterList()))


def _event(file: str, **extra) -> dict:
    return {"file": file, **extra}


class TestResidentEvents:
    """Test resident event lists."""

    def test_merge_law(self) -> None:
        """Test added, changed and removed events."""
        base = ResidentEvents.from_byml([_event("Demo000_0", entry="A"), _event("Demo001_0")])
        modified = ResidentEvents.from_byml([_event("Demo000_0", entry="B"), _event("Mod_0")])
        _assert_merge_law(base, modified)
        assert ResidentEvents.from_binary(modified.to_binary(Endian.BIG)) == modified

    def test_two_mods_add_events(self) -> None:
        """Test events added by different mods are kept in load order."""
        base = ResidentEvents.from_byml([_event("Demo000_0")])
        one = base.diff(ResidentEvents.from_byml([_event("Demo000_0"), _event("A")]))
        two = base.diff(ResidentEvents.from_byml([_event("Demo000_0"), _event("B")]))
        assert [e["file"] for e in base.merge(one).merge(two).to_byml()] == ["Demo000_0", "A", "B"]

    def test_missing_file_field(self) -> None:
        """Test an entry without a file name cannot be keyed."""
        with pytest.raises(ParseError):
            ResidentEvents.from_byml([{"entry": "A"}])


def _save(file_name: str, count: int, start: int = 0, revision: int = 0) -> SaveData:
    return SaveData(
        header={"file_name": file_name, "IsCommon": False, "IsSaveSecureCode": True},
        save_info={"directory_num": 8, "is_build_machine": True, "revision": revision},
        flags=SortedDeleteMap(
            (i, {"DataName": f"flag_{i}", "HashValue": i}) for i in range(start, start + count)
        ),
    )


class TestSaveData:
    """Test save file layout packs."""

    @pytest.mark.parametrize("count, shards", [
        (0, 1), (1, 1), (SAVE_SHARD_SIZE, 1), (SAVE_SHARD_SIZE + 1, 2),
    ])
    def test_shard_count(self, count: int, shards: int) -> None:
        """Test flags are split into 8192-entry shards, never zero."""
        parts = _save("game_data.sav", count).divide()
        assert len(parts) == shards
        assert sum(len(p.flags) for p in parts) == count
        assert all(p.header["file_name"] == "game_data.sav" for p in parts)

    def test_pack_round_trip(self) -> None:
        """Test shards are numbered across files and grouped again on read."""
        pack = SaveDataPack(files=DeleteMap({
            "game_data.sav": _save("game_data.sav", SAVE_SHARD_SIZE + 1),
            "caption.sav": _save("caption.sav", 2, start=100),
        }))
        assert sorted(pack.to_sarc(Endian.LITTLE).files) == [
            "/saveformat_0.bgsvdata", "/saveformat_1.bgsvdata", "/saveformat_2.bgsvdata",
        ]
        back = SaveDataPack.from_binary(pack.to_binary(Endian.LITTLE))
        assert list(back.files) == ["game_data.sav", "caption.sav"]
        assert back == pack

    def test_shard_numbers_sort_numerically(self) -> None:
        """Test /saveformat_10 is read after /saveformat_2."""
        files = {
            f"/saveformat_{i}.bgsvdata": byml.to_binary(_save(f"file_{i}.sav", 1, start=i).to_byml())
            for i in (10, 2)
        }
        assert list(SaveDataPack.from_files(files).files) == ["file_2.sav", "file_10.sav"]

    def test_unchanged_header_left_out_of_diff(self) -> None:
        """Test a diff only carries the header when it changed."""
        base = _save("game_data.sav", 3)
        diff = base.diff(_save("game_data.sav", 4))
        assert diff.header is None and diff.save_info is None
        assert list(diff.flags) == [3]

    def test_mods_merge(self) -> None:
        """Test an added flag and a changed revision from different mods."""
        base = SaveDataPack(files=DeleteMap({"game_data.sav": _save("game_data.sav", 3)}))
        flags = SaveDataPack(files=DeleteMap({"game_data.sav": _save("game_data.sav", 4)}))
        revision = SaveDataPack(files=DeleteMap({"game_data.sav": _save("game_data.sav", 3, revision=1)}))
        merged = base.merge(base.diff(flags)).merge(base.diff(revision))
        save = merged.files["game_data.sav"]
        assert list(save.flags) == [0, 1, 2, 3]
        assert save.save_info["revision"] == 1
        _assert_merge_law(base, flags)

    def test_hash_values_are_unsigned_keys(self) -> None:
        """Test negative stored hashes are keyed as u32."""
        save = SaveData.from_byml({
            "file_list": [{"file_name": "game_data.sav"}, [{"HashValue": -2, "DataName": "x"}]],
            "save_info": [{"revision": 0}],
        })
        assert list(save.flags) == [0xFFFFFFFE]

    def test_malformed_document(self) -> None:
        """Test a file list without its flag array is rejected."""
        with pytest.raises(ParseError):
            SaveData.from_byml({"file_list": [{"file_name": "a"}], "save_info": [{}]})

    def test_loaded_from_bootup_pack(self) -> None:
        """Test the pack inside Bootup.pack is parsed, not unpacked as an archive."""
        data = SaveDataPack(files=DeleteMap({"caption.sav": _save("caption.sav", 1)})).to_binary(Endian.LITTLE)
        res = ResourceData.from_binary("Pack/Bootup.pack//GameData/savedataformat.ssarc", data)
        assert res.kind is DataKind.MERGEABLE
        assert res.value.kind is ResourceKind.SAVE_DATA_PACK


def _assert_same_bytes_after_merge(base, modified, endian: Endian = Endian.LITTLE) -> None:
    merged = base.merge(base.diff(modified))
    assert merged == modified
    assert merged.to_binary(endian) == modified.to_binary(endian)


class TestValueTypeChanges:
    """Test edits that only change a value's node type are not lost."""

    def test_event_info(self) -> None:
        """Test an int parameter turned float."""
        base = EventInfo.from_byml({"Ev<A>": {"v": 1}})
        modified = EventInfo.from_byml({"Ev<A>": {"v": 1.0}})
        assert list(base.diff(modified).events) == ["Ev<A>"]
        _assert_same_bytes_after_merge(base, modified)

    def test_area_data(self) -> None:
        """Test an int flag turned bool."""
        base = AreaData.from_byml([{"AreaNumber": 1, "Flag": 1}])
        modified = AreaData.from_byml([{"AreaNumber": 1, "Flag": True}])
        assert list(base.diff(modified).areas) == [1]
        _assert_same_bytes_after_merge(base, modified)

    def test_resident_actors(self) -> None:
        """Test a bool turned int."""
        base = ResidentActors.from_byml([{"name": "GameROMPlayer", "only_res": False}])
        modified = ResidentActors.from_byml([{"name": "GameROMPlayer", "only_res": 0}])
        _assert_same_bytes_after_merge(base, modified, Endian.BIG)

    def test_actor_info(self) -> None:
        """Test a signed value turned unsigned."""
        base = ActorInfo.from_byml({"Actors": [_actor("Item_Apple")]})
        modified = ActorInfo.from_byml({"Actors": [_actor("Item_Apple", instSize=UInt(1024))]})
        assert len(base.diff(modified).actors) == 1
        _assert_same_bytes_after_merge(base, modified)

    def test_static(self) -> None:
        """Test float coordinates turned int, in entry points and general lists."""
        base = Static.from_byml({START_POS: [_pos("A-1", "Entrance")], "Objs": [{"v": 1}]})
        modified = Static.from_byml({
            START_POS: [_pos("A-1", "Entrance", y=0)], "Objs": [{"v": 1.0}],
        })
        diff = base.diff(modified)
        assert "A-1" in diff.start_pos
        assert "Objs" in diff.general
        _assert_same_bytes_after_merge(base, modified)

    def test_game_data(self) -> None:
        """Test an int initial value turned bool."""
        base = GameDataPack(bool_data=GameData("bool_data", SortedDeleteMap(
            {7: {"DataName": "flag", "HashValue": 7, "InitValue": 0}},
        )))
        modified = GameDataPack(bool_data=GameData("bool_data", SortedDeleteMap(
            {7: {"DataName": "flag", "HashValue": 7, "InitValue": False}},
        )))
        assert list(base.diff(modified).bool_data.flags) == [7]
        _assert_same_bytes_after_merge(base, modified)

    def test_resident_events(self) -> None:
        """Test an int field turned float."""
        base = ResidentEvents.from_byml([_event("Demo000_0", order=1)])
        modified = ResidentEvents.from_byml([_event("Demo000_0", order=1.0)])
        assert list(base.diff(modified).events) == ["Demo000_0"]
        _assert_same_bytes_after_merge(base, modified)

    def test_save_data(self) -> None:
        """Test a header flag and a save info field whose type alone changed."""
        base = SaveDataPack(files=DeleteMap({"game_data.sav": _save("game_data.sav", 2)}))
        changed = _save("game_data.sav", 2)
        changed.header["IsCommon"] = 0
        changed.save_info["revision"] = 0.0
        modified = SaveDataPack(files=DeleteMap({"game_data.sav": changed}))
        diff = base.diff(modified).files["game_data.sav"]
        assert diff.header is not None and diff.save_info is not None
        _assert_same_bytes_after_merge(base, modified)


class TestRepeatedListValues:
    """Test unkeyed lists that hold the same object more than once."""

    def test_static_general_duplicates(self) -> None:
        """Test an object the mod repeats is written twice."""
        base = Static.from_byml({"Objs": [{"id": 1}]})
        modified = Static.from_byml({"Objs": [{"id": 1}, {"id": 1}]})
        merged = base.merge(base.diff(modified))
        assert merged.to_byml()["Objs"] == [{"id": 1}, {"id": 1}]
        _assert_same_bytes_after_merge(base, modified)
