# ! 가스배관 설계 도구: 자재 집계 / 판정 표 / Excel·DOCX 리포트 생성
# * pandas DataFrame 기반 표, openpyxl Excel, python-docx 문서

import io
from datetime import datetime
from typing import Dict, Optional, Tuple

import pandas as pd
from docx import Document
from docx.shared import Pt, Mm, RGBColor
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.oxml.ns import qn

from constants import NodeType, PIPE_SIZES
from gas_network import GasNetwork
from validation import EdgeVerdict, summarize_validation, multi_feed_nodes
from audit import parse_audit_report


# ══════════════════════════════════════════════
#  PART 1: 표 데이터
# ══════════════════════════════════════════════

def parts_summary(network: GasNetwork) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    ! 자재 집계 (Parts)

    반환:
      pipes_df      : 구경별 구간 수 / 총 길이 (작은 구경 순, 사용된 구경만)
      components_df : 노드 종류별 수량 (0개 포함, NodeType 순서)
    """
    pipe_rows = []
    for size in PIPE_SIZES:
        segs = [e for e in network.edges if e.size == size]
        if segs:
            pipe_rows.append({
                "Size": size,
                "Segments": len(segs),
                "Total length (ft)": round(sum(e.length_ft for e in segs), 2),
            })
    pipes_df = pd.DataFrame(pipe_rows, columns=["Size", "Segments", "Total length (ft)"])

    components_df = pd.DataFrame([
        {"Type": t.value, "Count": sum(1 for n in network.nodes if n.type == t)}
        for t in NodeType
    ])
    return pipes_df, components_df


def validation_table(network: GasNetwork, verdicts: Dict[str, EdgeVerdict]) -> pd.DataFrame:
    """배관 구간별 유량/용량/판정 표 (배관 추가 순서)"""
    def label(node_id: str) -> str:
        node = network.get_node(node_id)
        return node.name if node is not None else "(missing)"

    rows = []
    for edge in network.edges:
        v = verdicts.get(edge.id)
        if v is None:
            continue
        util = v.utilization
        rows.append({
            "Pipe": edge.id,
            "From": label(edge.from_id),
            "To": label(edge.to_id),
            "Size": edge.size,
            "Length (ft)": edge.length_ft,
            "Flow (BTU/h)": v.flow,
            "Capacity (BTU/h)": v.capacity,
            "Utilization (%)": round(util * 100, 1) if util != float("inf") else None,
            "Status": "PASS" if v.is_valid else "FAIL",
        })
    return pd.DataFrame(rows, columns=[
        "Pipe", "From", "To", "Size", "Length (ft)",
        "Flow (BTU/h)", "Capacity (BTU/h)", "Utilization (%)", "Status",
    ])


# ══════════════════════════════════════════════
#  PART 2: Excel
# ══════════════════════════════════════════════

def export_excel(network: GasNetwork, verdicts: Dict[str, EdgeVerdict]) -> bytes:
    pipes_df, components_df = parts_summary(network)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as w:
        validation_table(network, verdicts).to_excel(w, sheet_name="Validation", index=False)
        pipes_df.to_excel(w, sheet_name="Pipes", index=False)
        components_df.to_excel(w, sheet_name="Components", index=False)
    return buf.getvalue()


# ══════════════════════════════════════════════
#  PART 3: DOCX 리포트
# ══════════════════════════════════════════════

def set_cell_shading(cell, color_hex):
    """셀 배경색 설정"""
    tcPr = cell._tc.get_or_add_tcPr()
    shading = tcPr.makeelement(qn('w:shd'), {
        qn('w:fill'): color_hex,
        qn('w:val'): 'clear',
    })
    tcPr.append(shading)


def add_styled_heading(doc, text, level=1):
    h = doc.add_heading(text, level=level)
    for run in h.runs:
        run.font.color.rgb = RGBColor(0x1A, 0x3C, 0x6E)
    return h


def make_table(doc, df: pd.DataFrame, header_color="1A3C6E", fail_color="FDE2E2"):
    """DataFrame → 표. Status 열이 FAIL 인 행은 붉은 배경"""
    headers = list(df.columns)
    table = doc.add_table(rows=1 + len(df), cols=len(headers))
    table.style = "Table Grid"
    table.alignment = WD_TABLE_ALIGNMENT.CENTER

    # 헤더
    for j, h in enumerate(headers):
        cell = table.rows[0].cells[j]
        cell.text = ""
        p = cell.paragraphs[0]
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = p.add_run(str(h))
        run.bold = True
        run.font.size = Pt(9)
        run.font.color.rgb = RGBColor(0xFF, 0xFF, 0xFF)
        set_cell_shading(cell, header_color)

    # 데이터
    for i, row in enumerate(df.itertuples(index=False)):
        failed = "Status" in headers and row[headers.index("Status")] == "FAIL"
        for j, val in enumerate(row):
            cell = table.rows[i + 1].cells[j]
            cell.text = ""
            p = cell.paragraphs[0]
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = p.add_run("" if pd.isna(val) else str(val))
            run.font.size = Pt(9)
            if failed:
                set_cell_shading(cell, fail_color)
            elif i % 2 == 1:
                set_cell_shading(cell, "F0F4FA")
    return table


def build_report_docx(
    project_name: str,
    network: GasNetwork,
    verdicts: Dict[str, EdgeVerdict],
    pressure_drop: float,
    audit_text: Optional[str] = None,
) -> bytes:
    """
    ! 설계 검토 리포트 (DOCX)

    구성:
    1. 설계 조건 + 판정 요약
    2. 구간별 판정 표
    3. 자재 집계
    4. AI 감사 리포트 (있을 때만)
    """
    doc = Document()

    # ── 페이지 설정 ──
    section = doc.sections[0]
    section.page_width = Mm(210)
    section.page_height = Mm(297)
    for side in ("top_margin", "bottom_margin", "left_margin", "right_margin"):
        setattr(section, side, Mm(20))

    style = doc.styles["Normal"]
    style.font.size = Pt(10)

    title = doc.add_heading(f"{project_name} - Gas Piping Design Review", level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    # ── 1. 요약 ──
    summary = summarize_validation(verdicts)
    add_styled_heading(doc, "1. Design Conditions & Summary", level=1)
    doc.add_paragraph(f"Design pressure drop: {pressure_drop}")
    doc.add_paragraph(
        f"Components: {len(network.nodes)} | Pipe segments: {summary['total']} | "
        f"PASS: {summary['passed']} | FAIL: {summary['failed']}"
    )
    if summary["worst_edge_id"] is not None and summary["max_utilization"] != float("inf"):
        doc.add_paragraph(
            f"Highest utilization: {summary['max_utilization'] * 100:.1f}% "
            f"(pipe {summary['worst_edge_id']})"
        )
    multi = multi_feed_nodes(network)
    if multi:
        names = [network.get_node(nid).name for nid in multi]
        p = doc.add_paragraph()
        r = p.add_run("Warning: multiple feeds into " + ", ".join(names)
                      + " - upstream demand is counted once per feed.")
        r.font.color.rgb = RGBColor(0xB9, 0x1C, 0x1C)

    # ── 2. 판정 표 ──
    add_styled_heading(doc, "2. Segment Validation", level=1)
    table_df = validation_table(network, verdicts)
    if table_df.empty:
        doc.add_paragraph("No pipe segments.")
    else:
        make_table(doc, table_df)

    # ── 3. 자재 ──
    add_styled_heading(doc, "3. Parts", level=1)
    pipes_df, components_df = parts_summary(network)
    if not pipes_df.empty:
        make_table(doc, pipes_df)
    doc.add_paragraph()
    make_table(doc, components_df)

    # ── 4. AI 감사 ──
    if audit_text:
        add_styled_heading(doc, "4. System Audit", level=1)
        for sec in parse_audit_report(audit_text):
            add_styled_heading(doc, sec.title, level=2)
            for b in sec.bullets:
                doc.add_paragraph(b, style="List Bullet")

    # ── 푸터 ──
    doc.add_paragraph()
    footer = doc.add_paragraph()
    footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run_f = footer.add_run(
        f"Generated by ProFlex Draw | {datetime.now().strftime('%Y-%m-%d %H:%M')}"
    )
    run_f.font.size = Pt(8)
    run_f.font.color.rgb = RGBColor(0x99, 0x99, 0x99)

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()
