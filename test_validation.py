# Demand aggregation and validator tests - ASCII only
import pytest

from constants import NodeType
from capacity import pipe_capacity
from gas_network import GasNetwork, TopologyError
from validation import (
    edge_flow, validate_network, verdict, summarize_validation,
    multi_feed_nodes, supply_roots,
)


def branching_network():
    net = GasNetwork()
    meter = net.add_node(NodeType.METER, 100, 100, node_id="meter")
    tee = net.add_node(NodeType.JUNCTION, 300, 300, node_id="tee")
    heater = net.add_node(NodeType.APPLIANCE, 500, 200, demand=40000, node_id="heater")
    cooktop = net.add_node(NodeType.APPLIANCE, 500, 400, demand=65000, node_id="cooktop")
    net.add_edge("meter", "tee", size='3/4"', edge_id="main")
    net.add_edge("tee", "heater", edge_id="to_heater")
    net.add_edge("tee", "cooktop", edge_id="to_cooktop")
    return net


# == Test 1: demand summation ==
def test_chain_flow():
    net = GasNetwork()
    net.add_node(NodeType.METER, node_id="m")
    net.add_node(NodeType.JUNCTION, node_id="j")
    net.add_node(NodeType.APPLIANCE, demand=40000, node_id="a")
    e1 = net.add_edge("m", "j")
    net.add_edge("j", "a")
    assert edge_flow(net, e1) == 40000


def test_branching_flow():
    net = branching_network()
    assert edge_flow(net, net.get_edge("main")) == 105000
    assert edge_flow(net, net.get_edge("to_heater")) == 40000
    assert edge_flow(net, net.get_edge("to_cooktop")) == 65000


def test_appliance_with_downstream_adds_both():
    net = branching_network()
    dryer = net.add_node(NodeType.APPLIANCE, demand=20000)
    net.add_edge("heater", dryer.id)
    assert edge_flow(net, net.get_edge("to_heater")) == 60000
    assert edge_flow(net, net.get_edge("main")) == 125000


def test_dangling_edge_has_zero_flow():
    net = GasNetwork.from_dict({
        "nodes": [{"id": "m", "type": "METER", "x": 0, "y": 0, "name": "M", "btu": 0}],
        "edges": [{"id": "e", "from": "m", "to": "gone", "size": '1/2"', "length": 10}],
    })
    assert edge_flow(net, net.get_edge("e")) == 0
    assert validate_network(net)["e"].flow == 0


def test_cycle_raises_instead_of_recursing():
    net = GasNetwork.from_dict({
        "nodes": [
            {"id": "a", "type": "JUNCTION", "x": 0, "y": 0, "name": "A", "btu": 0},
            {"id": "b", "type": "APPLIANCE", "x": 0, "y": 0, "name": "B", "btu": 100},
        ],
        "edges": [
            {"id": "ab", "from": "a", "to": "b", "size": '1/2"', "length": 10},
            {"id": "ba", "from": "b", "to": "a", "size": '1/2"', "length": 10},
        ],
    })
    with pytest.raises(TopologyError):
        validate_network(net)


# == Test 2: verdicts ==
def test_validity_threshold_is_non_strict():
    assert verdict(80000, 77000).is_valid is False
    assert verdict(77000, 77000).is_valid is True
    assert verdict(0, 0).is_valid is True


def test_validate_network_covers_every_edge():
    net = branching_network()
    results = validate_network(net, 0.5)
    assert set(results) == {"main", "to_heater", "to_cooktop"}
    main = results["main"]
    assert main.flow == 105000
    assert main.capacity == pipe_capacity('3/4"', 10, 0.5)
    assert main.is_valid is (main.flow <= main.capacity)


def test_overloaded_half_inch_fails():
    net = GasNetwork()
    net.add_node(NodeType.METER, node_id="m")
    net.add_node(NodeType.APPLIANCE, demand=100000, node_id="furnace")
    net.add_edge("m", "furnace", size='1/2"', edge_id="e")
    assert validate_network(net, 0.5)["e"].is_valid is False


def test_revalidation_is_idempotent():
    net = branching_network()
    assert validate_network(net, 0.5) == validate_network(net, 0.5)


def test_deleted_node_leaves_no_stale_verdicts():
    net = branching_network()
    net.delete_node("tee")
    assert validate_network(net) == {}


# == Test 3: summary and diagnostics ==
def test_summary_counts():
    net = branching_network()
    net.update_node("cooktop", demand=500000)
    results = validate_network(net, 0.5)
    s = summarize_validation(results)
    assert s["total"] == 3
    assert s["failed"] == len(s["failing_ids"])
    assert "to_cooktop" in s["failing_ids"]
    assert s["worst_edge_id"] == "to_cooktop"
    assert s["max_utilization"] > 1.0


def test_summary_empty():
    s = summarize_validation({})
    assert s["total"] == 0 and s["worst_edge_id"] is None


def test_multi_feed_and_roots():
    net = branching_network()
    net.add_node(NodeType.MANIFOLD, node_id="mf")
    net.add_edge("mf", "heater")
    assert multi_feed_nodes(net) == ["heater"]
    assert set(supply_roots(net)) == {"meter", "mf"}
