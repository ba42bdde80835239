# Parts / validation table / export tests - ASCII only
import io

import pandas as pd

from constants import NodeType
from gas_network import GasNetwork
from validation import validate_network
from audit import FALLBACK_REPORT
from reports import parts_summary, validation_table, export_excel, build_report_docx


def house():
    net = GasNetwork()
    net.add_node(NodeType.METER, node_id="m")
    net.add_node(NodeType.JUNCTION, node_id="t")
    net.add_node(NodeType.APPLIANCE, name="Furnace", demand=100000, node_id="f")
    net.add_node(NodeType.APPLIANCE, name="Dryer", demand=20000, node_id="d")
    net.add_edge("m", "t", size='1"', length_ft=20, edge_id="main")
    net.add_edge("t", "f", size='1/2"', length_ft=10, edge_id="furn")
    net.add_edge("t", "d", size='1/2"', length_ft=15, edge_id="dry")
    return net


# == Test 1: parts ==
def test_parts_summary_counts():
    pipes, comps = parts_summary(house())
    assert list(pipes["Size"]) == ['1/2"', '1"']
    half = pipes[pipes["Size"] == '1/2"'].iloc[0]
    assert half["Segments"] == 2 and half["Total length (ft)"] == 25
    counts = dict(zip(comps["Type"], comps["Count"]))
    assert counts == {"METER": 1, "JUNCTION": 1, "MANIFOLD": 0, "APPLIANCE": 2}


def test_parts_summary_empty_network():
    pipes, comps = parts_summary(GasNetwork())
    assert pipes.empty
    assert comps["Count"].sum() == 0


# == Test 2: validation table ==
def test_validation_table_statuses():
    net = house()
    df = validation_table(net, validate_network(net, 0.5))
    assert list(df["Pipe"]) == ["main", "furn", "dry"]
    status = dict(zip(df["Pipe"], df["Status"]))
    assert status["furn"] == "FAIL"
    assert status["dry"] == "PASS"
    assert df.loc[df["Pipe"] == "main", "Flow (BTU/h)"].iloc[0] == 120000
    assert df.loc[df["Pipe"] == "furn", "From"].iloc[0] == "T-Junction"


# == Test 3: files ==
def test_excel_has_three_sheets():
    net = house()
    data = export_excel(net, validate_network(net))
    assert data[:2] == b"PK"
    sheets = pd.read_excel(io.BytesIO(data), sheet_name=None, engine="openpyxl")
    assert set(sheets) == {"Validation", "Pipes", "Components"}
    assert len(sheets["Validation"]) == 3


def test_docx_report_builds_with_and_without_audit():
    net = house()
    verdicts = validate_network(net)
    plain = build_report_docx("House", net, verdicts, 0.5)
    full = build_report_docx("House", net, verdicts, 0.5, audit_text=FALLBACK_REPORT)
    assert plain[:2] == b"PK" and full[:2] == b"PK"


def test_docx_report_empty_network():
    assert build_report_docx("Empty", GasNetwork(), {}, 0.5)[:2] == b"PK"
