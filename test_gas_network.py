# Graph store tests - ASCII only
import pytest

from constants import NodeType, CANVAS_SIZE, DEFAULT_PIPE_SIZE, DEFAULT_PIPE_LENGTH_FT
from gas_network import GasNetwork, ValidationError, TopologyError


def make_chain():
    net = GasNetwork()
    meter = net.add_node(NodeType.METER, 100, 100)
    tee = net.add_node(NodeType.JUNCTION, 300, 300)
    heater = net.add_node(NodeType.APPLIANCE, 500, 500, name="Water Heater", demand=40000)
    e1 = net.add_edge(meter.id, tee.id)
    e2 = net.add_edge(tee.id, heater.id)
    return net, meter, tee, heater, e1, e2


# == Test 1: nodes ==
def test_add_node_defaults():
    net = GasNetwork()
    m = net.add_node(NodeType.METER)
    j = net.add_node("JUNCTION")
    assert m.name == "Gas Meter" and j.name == "T-Junction"
    assert m.position == (500.0, 500.0)
    assert m.id != j.id


def test_demand_ignored_for_non_appliance():
    net = GasNetwork()
    j = net.add_node(NodeType.JUNCTION, demand=5000)
    assert j.demand == 0.0
    net.update_node(j.id, demand=1234)
    assert j.demand == 0.0


def test_negative_demand_rejected():
    net = GasNetwork()
    with pytest.raises(ValidationError):
        net.add_node(NodeType.APPLIANCE, demand=-1)
    a = net.add_node(NodeType.APPLIANCE, demand=10)
    with pytest.raises(ValidationError):
        net.update_node(a.id, demand=-5)


def test_duplicate_node_id_rejected():
    net = GasNetwork()
    net.add_node(NodeType.METER, node_id="abc")
    with pytest.raises(ValidationError):
        net.add_node(NodeType.METER, node_id="abc")


def test_move_node_clamps_to_canvas():
    net = GasNetwork()
    n = net.add_node(NodeType.MANIFOLD)
    net.move_node(n.id, -50, CANVAS_SIZE + 200)
    assert n.position == (0.0, CANVAS_SIZE)


# == Test 2: edges ==
def test_add_edge_defaults():
    net, meter, tee, _, e1, _ = make_chain()
    assert e1.from_id == meter.id and e1.to_id == tee.id
    assert e1.size == DEFAULT_PIPE_SIZE and e1.length_ft == DEFAULT_PIPE_LENGTH_FT


def test_self_loop_rejected():
    net, meter, _, _, _, _ = make_chain()
    with pytest.raises(TopologyError):
        net.add_edge(meter.id, meter.id)


def test_cycle_rejected():
    net, meter, _, heater, _, _ = make_chain()
    with pytest.raises(TopologyError):
        net.add_edge(heater.id, meter.id)
    assert len(net.edges) == 2


def test_missing_endpoint_rejected():
    net, meter, _, _, _, _ = make_chain()
    with pytest.raises(TopologyError):
        net.add_edge(meter.id, "nope")


def test_edge_value_checks():
    net, meter, tee, heater, e1, _ = make_chain()
    other = net.add_node(NodeType.APPLIANCE, demand=1)
    with pytest.raises(ValidationError):
        net.add_edge(tee.id, other.id, size='9"')
    with pytest.raises(ValidationError):
        net.add_edge(tee.id, other.id, length_ft=0)
    with pytest.raises(ValidationError):
        net.update_edge(e1.id, length_ft=-3)
    net.update_edge(e1.id, size='1"', length_ft=25)
    assert e1.size == '1"' and e1.length_ft == 25.0


def test_branching_allowed():
    net, _, tee, _, _, _ = make_chain()
    cooktop = net.add_node(NodeType.APPLIANCE, demand=65000)
    net.add_edge(tee.id, cooktop.id)
    assert len(net.outgoing(tee.id)) == 2


# == Test 3: deletion ==
def test_delete_node_cascades():
    net, _, tee, _, e1, e2 = make_chain()
    removed = net.delete_node(tee.id)
    assert {e.id for e in removed} == {e1.id, e2.id}
    assert net.edges == []
    assert net.get_node(tee.id) is None


def test_delete_missing_is_noop():
    net, _, _, _, _, _ = make_chain()
    assert net.delete_node("missing") == []
    assert net.delete_edge("missing") is None
    assert len(net.edges) == 2


# == Test 4: structure checks and plain structure ==
def test_find_cycle_on_loaded_graph():
    net = GasNetwork.from_dict({
        "nodes": [
            {"id": "a", "type": "JUNCTION", "x": 0, "y": 0, "name": "A", "btu": 0},
            {"id": "b", "type": "JUNCTION", "x": 0, "y": 0, "name": "B", "btu": 0},
        ],
        "edges": [
            {"id": "e1", "from": "a", "to": "b", "size": '1/2"', "length": 10},
            {"id": "e2", "from": "b", "to": "a", "size": '1/2"', "length": 10},
        ],
    })
    cycle = net.find_cycle()
    assert cycle is not None and cycle[0] == cycle[-1]


def test_find_cycle_none_for_tree():
    net, _, _, _, _, _ = make_chain()
    assert net.find_cycle() is None


def test_to_dict_shape():
    net, _, _, heater, _, _ = make_chain()
    data = net.to_dict()
    assert set(data) == {"nodes", "edges"}
    node = [n for n in data["nodes"] if n["id"] == heater.id][0]
    assert node["btu"] == 40000 and node["type"] == "APPLIANCE"
    assert set(data["edges"][0]) == {"id", "from", "to", "size", "length"}


def test_copy_is_independent():
    net, meter, _, _, _, _ = make_chain()
    clone = net.copy()
    clone.move_node(meter.id, 900, 900)
    assert net.get_node(meter.id).position == (100.0, 100.0)
