# Project file and recents store tests - ASCII only
import json

import pytest

from constants import NodeType, RECENTS_KEY, IMPORTED_PROJECT_NAME
from gas_network import GasNetwork, ValidationError
from projects import (
    ProjectFormatError, export_project, import_project, RecentProjectStore,
)


def sample_network():
    net = GasNetwork()
    net.add_node(NodeType.METER, 100, 100, node_id="m")
    net.add_node(NodeType.APPLIANCE, 400, 400, name="Dryer", demand=20000, node_id="d")
    net.add_edge("m", "d", size='3/4"', length_ft=22.5, edge_id="e")
    return net


# == Test 1: .proflex export / import ==
def test_export_then_import_preserves_graph():
    text = export_project("Garage", sample_network())
    data = json.loads(text)
    assert data["projectName"] == "Garage"
    assert data["edges"][0] == {"id": "e", "from": "m", "to": "d", "size": '3/4"', "length": 22.5}

    name, net = import_project(text)
    assert name == "Garage"
    assert net.get_node("d").demand == 20000
    assert net.get_edge("e").length_ft == 22.5


def test_missing_project_name_uses_default():
    name, _ = import_project('{"nodes": [], "edges": []}')
    assert name == IMPORTED_PROJECT_NAME


@pytest.mark.parametrize("text", [
    "not json",
    "[]",
    '{"nodes": {}, "edges": []}',
    '{"nodes": [{"id": "a", "type": "BOILER", "x": 0, "y": 0, "name": "A", "btu": 0}], "edges": []}',
    '{"nodes": [], "edges": [{"id": "e", "from": "a", "to": "b", "size": "2in", "length": 5}]}',
])
def test_malformed_files_rejected(text):
    with pytest.raises(ProjectFormatError):
        import_project(text)


def test_cyclic_file_rejected():
    payload = {
        "nodes": [
            {"id": "a", "type": "JUNCTION", "x": 0, "y": 0, "name": "A", "btu": 0},
            {"id": "b", "type": "JUNCTION", "x": 0, "y": 0, "name": "B", "btu": 0},
        ],
        "edges": [
            {"id": "e1", "from": "a", "to": "b", "size": '1/2"', "length": 10},
            {"id": "e2", "from": "b", "to": "a", "size": '1/2"', "length": 10},
        ],
    }
    with pytest.raises(ProjectFormatError):
        import_project(json.dumps(payload))


def test_dangling_edge_accepted():
    payload = {
        "nodes": [{"id": "a", "type": "METER", "x": 0, "y": 0, "name": "A", "btu": 0}],
        "edges": [{"id": "e1", "from": "a", "to": "zz", "size": '1/2"', "length": 10}],
    }
    _, net = import_project(json.dumps(payload))
    assert len(net.edges) == 1


# == Test 2: recents store ==
def test_save_and_load_roundtrip(tmp_path):
    store = RecentProjectStore(str(tmp_path / "recents.json"))
    pid = store.save("Garage", sample_network())
    name, net = store.load(pid)
    assert name == "Garage"
    assert net.get_edge("e").size == '3/4"'
    assert store.load("nope") is None


def test_resave_moves_to_front_without_duplicates(tmp_path):
    store = RecentProjectStore(str(tmp_path / "recents.json"))
    first = store.save("One", sample_network())
    second = store.save("Two", sample_network())
    store.save("One v2", sample_network(), project_id=first)
    listing = store.list()
    assert [p["id"] for p in listing] == [first, second]
    assert listing[0]["name"] == "One v2"


def test_list_is_capped(tmp_path):
    store = RecentProjectStore(str(tmp_path / "recents.json"), limit=15)
    ids = [store.save(f"P{i}", GasNetwork()) for i in range(18)]
    listing = store.list()
    assert len(listing) == 15
    assert listing[0]["id"] == ids[-1]
    assert ids[0] not in {p["id"] for p in listing}


def test_save_as_issues_new_id_and_needs_name(tmp_path):
    store = RecentProjectStore(str(tmp_path / "recents.json"))
    pid = store.save("Base", GasNetwork())
    copy_id = store.save_as("  Copy  ", GasNetwork())
    assert copy_id != pid
    assert store.list()[0]["name"] == "Copy"
    with pytest.raises(ValidationError):
        store.save_as("   ", GasNetwork())


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "recents.json"
    path.write_text("{broken", encoding="utf-8")
    store = RecentProjectStore(str(path))
    assert store.list() == []
    store.save("Fresh", GasNetwork())
    assert json.loads(path.read_text(encoding="utf-8"))[RECENTS_KEY][0]["name"] == "Fresh"
