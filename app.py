# ! 가스배관 설계 도구: Streamlit UI (ProFlex Draw)
# * 사이드바: 편집 모드 + 구성요소 추가 + 프로젝트 저장/불러오기
# * 메인: Plotly 캔버스(클릭 → 포인터 이벤트) + 편집 패널 + 5개 탭

import sys
import os
import time
import logging
import streamlit as st
import numpy as np
import pandas as pd
import plotly.graph_objects as go

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from constants import (
    NodeType, NODE_TYPE_SPECS, PIPE_SPECS, PIPE_SIZES, COLORS,
    DEFAULT_APPLIANCES, CANVAS_SIZE, PRESSURE_DROP_MIN, PRESSURE_DROP_MAX,
    PROJECT_FILE_EXTENSION, node_radius,
)
from config import RECENTS_PATH
from capacity import capacity_curve, recommend_pipe_size, max_run_length
from gas_network import ValidationError
from validation import summarize_validation, multi_feed_nodes
from interaction import (
    Mode, PointerEvent, EventKind, TargetKind, preview_line, click_target,
)
from editor import DesignSession
from projects import RecentProjectStore, ProjectFormatError, import_project, export_project
from audit import audit_system, parse_audit_report
from reports import parts_summary, validation_table, export_excel, build_report_docx

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# ──────────────────────────────────────────────
# ? 페이지 설정
# ──────────────────────────────────────────────
st.set_page_config(
    page_title="ProFlex Draw",
    page_icon="🔥",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    '<h1 style="margin-bottom:0">Pro<span style="color:#6366f1">Flex</span> Draw</h1>',
    unsafe_allow_html=True,
)
st.caption("가스배관 설계 및 구간별 용량 실시간 검증 (Professional Gas Piping Designer)")

if "session" not in st.session_state:
    st.session_state["session"] = DesignSession()
if "store" not in st.session_state:
    st.session_state["store"] = RecentProjectStore(RECENTS_PATH)

session: DesignSession = st.session_state["session"]
store: RecentProjectStore = st.session_state["store"]


def now_ms() -> int:
    return int(time.time() * 1000)


def tap(target_kind: TargetKind, target_id, position) -> None:
    """캔버스 클릭 1회 → DOWN + UP 이벤트 쌍으로 전달"""
    ts = now_ms()
    for kind in (EventKind.DOWN, EventKind.UP):
        session.dispatch(PointerEvent(
            kind=kind, position=position, target_kind=target_kind,
            target_id=target_id, timestamp_ms=ts,
        ))


# ══════════════════════════════════════════════
#  사이드바 입력
# ══════════════════════════════════════════════

# ── 1. 편집 모드 ──
st.sidebar.header(":material/edit: 편집 모드")
mode_label = st.sidebar.radio(
    "모드",
    ["선택/이동 (Select)", "배관 연결 (Pipe)"],
    index=0 if session.mode == Mode.SELECT else 1,
    help="Select: 클릭으로 선택, 더블클릭으로 편집. "
         "Pipe: 출발 노드 클릭 → 도착 노드 클릭으로 배관 연결. 같은 노드를 다시 클릭하면 취소.",
)
selected_mode = Mode.SELECT if "Select" in mode_label else Mode.PIPE
if selected_mode != session.mode:
    session.set_mode(selected_mode)

pipe_size = st.sidebar.selectbox(
    "신규 배관 구경",
    PIPE_SIZES,
    index=PIPE_SIZES.index(session.settings.pipe_size),
    format_func=lambda s: f'{s}  ({PIPE_SPECS[s]["capacity"]:,} BTU @10ft)',
)
session.set_pipe_size(pipe_size)

pressure_drop = st.sidebar.number_input(
    "설계 압력 강하 (in. w.c.)",
    min_value=PRESSURE_DROP_MIN, max_value=PRESSURE_DROP_MAX,
    value=float(session.settings.pressure_drop), step=0.1,
    help="모든 배관 구간에 공통 적용되는 허용 압력 강하입니다.",
)
if pressure_drop != session.settings.pressure_drop:
    session.set_pressure_drop(pressure_drop)

# ── 2. 구성요소 추가 ──
st.sidebar.header(":material/add_circle: 구성요소 추가")
_c1, _c2 = st.sidebar.columns(2)
for _i, _t in enumerate([NodeType.METER, NodeType.JUNCTION, NodeType.MANIFOLD]):
    with (_c1 if _i % 2 == 0 else _c2):
        if st.button(NODE_TYPE_SPECS[_t]["default_name"], use_container_width=True):
            session.add_node(_t)

with st.sidebar.expander("가전 (Appliance)", expanded=True):
    for preset in DEFAULT_APPLIANCES:
        if st.button(f"{preset['name']}  ({preset['btu'] // 1000}k)", use_container_width=True):
            session.add_appliance(preset["name"])
    custom_name = st.text_input("사용자 정의 가전 이름", value="Appliance")
    custom_btu = st.number_input("수요 (BTU/h)", min_value=0, value=50000, step=5000)
    if st.button("사용자 정의 가전 추가", use_container_width=True):
        session.add_node(NodeType.APPLIANCE, demand=float(custom_btu), name=custom_name)

# ── 3. 프로젝트 ──
st.sidebar.header(":material/folder: 프로젝트")
session.project_name = st.sidebar.text_input("프로젝트 이름", value=session.project_name)

_s1, _s2 = st.sidebar.columns(2)
with _s1:
    if st.button("저장", type="primary", use_container_width=True):
        session.project_id = store.save(session.project_name, session.network, session.project_id)
        st.sidebar.success("Design Saved")
with _s2:
    if st.button("새 프로젝트", use_container_width=True):
        session.reset()
        st.rerun()

with st.sidebar.expander("다른 이름으로 저장"):
    save_as_name = st.text_input("새 이름", value=f"{session.project_name} Copy")
    if st.button("Save As", use_container_width=True):
        try:
            session.project_id = store.save_as(save_as_name, session.network)
            session.project_name = save_as_name.strip()
            st.success("저장되었습니다.")
        except ValidationError as e:
            st.error(f"입력 오류: {e}")

recents = store.list()
if recents:
    recent_choice = st.sidebar.selectbox(
        "최근 프로젝트",
        recents,
        format_func=lambda p: f"{p['name']}  ({time.strftime('%Y-%m-%d', time.localtime(p['timestamp'] / 1000))})",
    )
    if st.sidebar.button("불러오기", use_container_width=True):
        try:
            loaded = store.load(recent_choice["id"])
        except ProjectFormatError as e:
            st.sidebar.error(f"불러오기 실패: {e}")
            loaded = None
        if loaded is not None:
            session.load_graph(loaded[1], loaded[0], project_id=recent_choice["id"])
            st.rerun()

uploaded = st.sidebar.file_uploader(f"파일 불러오기 ({PROJECT_FILE_EXTENSION})", type=None)
if uploaded is not None and st.sidebar.button("가져오기", use_container_width=True):
    try:
        name, network = import_project(uploaded.getvalue().decode("utf-8"))
        session.load_graph(network, name)
        st.rerun()
    except (ProjectFormatError, UnicodeDecodeError) as e:
        st.sidebar.error(f"Invalid .proflex file: {e}")


# ══════════════════════════════════════════════
#  메인 영역
# ══════════════════════════════════════════════

for notice in session.pop_notices():
    st.warning(notice)

verdicts = session.verdicts
summary = summarize_validation(verdicts)

k1, k2, k3, k4 = st.columns(4)
k1.metric("구성요소", len(session.network.nodes))
k2.metric("배관 구간", summary["total"])
k3.metric("용량 초과 (FAIL)", summary["failed"],
          delta=None if summary["failed"] == 0 else "검토 필요", delta_color="inverse")
if summary["worst_edge_id"] is not None and summary["max_utilization"] != float("inf"):
    k4.metric("최대 이용률", f"{summary['max_utilization'] * 100:.1f}%")
else:
    k4.metric("최대 이용률", "N/A")

_multi = multi_feed_nodes(session.network)
if _multi:
    st.warning(
        "**유입 배관 중복**: "
        + ", ".join(session.network.get_node(n).name for n in _multi)
        + " 노드에 배관이 2개 이상 들어옵니다. 수요 집계는 트리 구조를 가정하므로 상류 유량이 중복 계산됩니다."
    )


# ──────────────────────────────────────────────
# ? 캔버스 (Plotly)
# ──────────────────────────────────────────────
def build_canvas() -> go.Figure:
    net = session.network
    state = session.interaction
    fig = go.Figure()

    # ── 배관 ──
    for edge in net.edges:
        a, b = net.get_node(edge.from_id), net.get_node(edge.to_id)
        if a is None or b is None:
            continue
        v = verdicts.get(edge.id)
        valid = v.is_valid if v is not None else True
        color = (COLORS["PIPE_SELECTED"] if state.selected_id == edge.id else COLORS["PIPE"]) \
            if valid else COLORS["ERROR"]
        fig.add_trace(go.Scatter(
            x=[a.x, b.x], y=[a.y, b.y], mode="lines",
            line=dict(color=color, width=4 + PIPE_SIZES.index(edge.size) * 2),
            hoverinfo="skip", showlegend=False,
        ))

    # ── 배관 중앙 라벨 (클릭 대상) ──
    mids = [e for e in net.edges if net.get_node(e.from_id) and net.get_node(e.to_id)]
    if mids:
        fig.add_trace(go.Scatter(
            x=[(net.get_node(e.from_id).x + net.get_node(e.to_id).x) / 2 for e in mids],
            y=[(net.get_node(e.from_id).y + net.get_node(e.to_id).y) / 2 for e in mids],
            mode="markers+text",
            marker=dict(size=26, color="white",
                        line=dict(width=1, color=[COLORS["PIPE"] if verdicts[e.id].is_valid
                                                   else COLORS["ERROR"] for e in mids])),
            text=[f"{e.length_ft:g}ft" for e in mids], textfont=dict(size=10),
            customdata=[["edge", e.id] for e in mids],
            hovertext=[f"{e.size} | flow {verdicts[e.id].flow:,.0f} / cap {verdicts[e.id].capacity:,}"
                       for e in mids],
            hoverinfo="text", showlegend=False,
        ))

    # ── 연결 미리보기 / 잠긴 출발점 ──
    line = preview_line(state, net)
    if line is not None:
        (x0, y0), (x1, y1) = line
        fig.add_trace(go.Scatter(
            x=[x0, x1], y=[y0, y1], mode="lines",
            line=dict(color=COLORS["SOURCE_LOCK"], width=4, dash="dash"),
            hoverinfo="skip", showlegend=False,
        ))
    if state.pipe_source_id and net.get_node(state.pipe_source_id):
        src = net.get_node(state.pipe_source_id)
        fig.add_trace(go.Scatter(
            x=[src.x], y=[src.y], mode="markers",
            marker=dict(size=(node_radius(src.type) + 24) * 2, color="rgba(0,0,0,0)",
                        line=dict(width=6, color=COLORS["SOURCE_LOCK"])),
            hoverinfo="skip", showlegend=False,
        ))

    # ── 노드 ──
    if net.nodes:
        fig.add_trace(go.Scatter(
            x=[n.x for n in net.nodes], y=[n.y for n in net.nodes],
            mode="markers+text",
            marker=dict(
                size=[node_radius(n.type) * 2 for n in net.nodes],
                color=[NODE_TYPE_SPECS[n.type]["color"] for n in net.nodes],
                symbol=["circle" if n.type == NodeType.JUNCTION else "square" for n in net.nodes],
                line=dict(
                    width=[4 if state.selected_id == n.id else 2 for n in net.nodes],
                    color=[COLORS["PIPE_SELECTED"] if state.selected_id == n.id else "white"
                           for n in net.nodes],
                ),
            ),
            text=[n.name.upper() for n in net.nodes], textposition="bottom center",
            customdata=[["node", n.id] for n in net.nodes],
            hovertext=[f"{n.name} ({n.type.value})"
                       + (f" | {n.demand:,.0f} BTU/h" if n.type == NodeType.APPLIANCE else "")
                       for n in net.nodes],
            hoverinfo="text", showlegend=False,
        ))

    fig.update_layout(
        height=700, margin=dict(l=10, r=10, t=10, b=10),
        plot_bgcolor="#f1f5f9", clickmode="event+select", dragmode=False,
        xaxis=dict(range=[0, CANVAS_SIZE], showticklabels=False, gridcolor="#e2e8f0", dtick=40),
        yaxis=dict(range=[CANVAS_SIZE, 0], showticklabels=False, gridcolor="#e2e8f0", dtick=40,
                   scaleanchor="x", scaleratio=1),
    )
    return fig


if session.mode == Mode.PIPE:
    st.info("STEP 2: 도착 노드를 클릭하세요" if session.interaction.pipe_source_id
            else "STEP 1: 출발 노드를 클릭하세요")

canvas_col, panel_col = st.columns([3, 1])

with canvas_col:
    # * 클릭마다 차트 key 를 바꿔 선택 상태를 비움 (같은 노드 재클릭도 새 이벤트)
    click_seq = st.session_state.setdefault("canvas_click_seq", 0)
    canvas_event = st.plotly_chart(
        build_canvas(), key=f"canvas_{click_seq}", on_select="rerun",
        selection_mode="points", use_container_width=True,
    )
    points = canvas_event.selection.points if canvas_event else []
    click = click_target(points, session.network)
    if click is not None:
        tap(*click)
        st.session_state["canvas_click_seq"] = click_seq + 1
        st.rerun()

    if st.button("선택 해제 / 연결 취소"):
        tap(TargetKind.BACKGROUND, None, (0.0, 0.0))
        st.rerun()

# ──────────────────────────────────────────────
# ? 편집 패널
# ──────────────────────────────────────────────
with panel_col:
    target_id = session.edit_target_id or session.selected_id
    node = session.network.get_node(target_id) if target_id else None
    edge = session.network.get_edge(target_id) if target_id else None

    if node is not None:
        st.subheader(f"{node.type.value} 편집")
        new_name = st.text_input("이름", value=node.name, key=f"name_{node.id}")
        new_demand = None
        if NODE_TYPE_SPECS[node.type]["has_demand"]:
            new_demand = st.number_input("수요 (BTU/h)", min_value=0.0, value=float(node.demand),
                                         step=1000.0, key=f"btu_{node.id}")
        new_x = st.number_input("X", 0.0, CANVAS_SIZE, float(node.x), 10.0, key=f"x_{node.id}")
        new_y = st.number_input("Y", 0.0, CANVAS_SIZE, float(node.y), 10.0, key=f"y_{node.id}")
        if st.button("적용", type="primary", use_container_width=True):
            try:
                session.update_node(node.id, name=new_name, demand=new_demand)
                session.move_node(node.id, new_x, new_y)
                st.rerun()
            except ValidationError as e:
                st.error(f"입력 오류: {e}")
        if session.mode == Mode.SELECT and session.selected_id == node.id:
            if st.button("× 삭제", use_container_width=True):
                session.request_delete(node.id)
                st.rerun()
    elif edge is not None:
        st.subheader("배관 편집")
        v = verdicts.get(edge.id)
        new_size = st.selectbox("구경", PIPE_SIZES, index=PIPE_SIZES.index(edge.size),
                                key=f"size_{edge.id}")
        new_len = st.number_input("길이 (ft)", min_value=0.5, value=float(edge.length_ft),
                                  step=1.0, key=f"len_{edge.id}")
        if v is not None:
            st.metric("유량 / 용량", f"{v.flow:,.0f} / {v.capacity:,}",
                      delta="PASS" if v.is_valid else "FAIL",
                      delta_color="normal" if v.is_valid else "inverse")
            rec = recommend_pipe_size(v.flow, new_len, session.settings.pressure_drop)
            st.caption(f"권장 구경: {rec}" if rec else "권장 구경: 없음 (구간 분할 필요)")
        if st.button("적용", type="primary", use_container_width=True):
            try:
                session.update_edge(edge.id, size=new_size, length_ft=new_len)
                st.rerun()
            except ValidationError as e:
                st.error(f"입력 오류: {e}")
        if st.button("배관 삭제", use_container_width=True):
            session.delete_edge(edge.id)
            st.rerun()
    else:
        st.caption("노드 또는 배관을 클릭하면 편집 패널이 표시됩니다. (더블클릭: 편집)")


# ══════════════════════════════════════════════
#  탭
# ══════════════════════════════════════════════
tab1, tab2, tab3, tab4, tab5 = st.tabs([
    "구간 판정", "자재 (Parts)", "용량 곡선", "AI 감사", "내보내기",
])

# ── Tab 1: 구간 판정 ──
with tab1:
    df_v = validation_table(session.network, verdicts)
    if df_v.empty:
        st.caption("배관 구간이 없습니다.")
    else:
        st.dataframe(df_v, use_container_width=True, hide_index=True)

# ── Tab 2: 자재 집계 ──
with tab2:
    pipes_df, components_df = parts_summary(session.network)
    c1, c2 = st.columns(2)
    with c1:
        st.subheader("배관")
        st.dataframe(pipes_df, use_container_width=True, hide_index=True)
    with c2:
        st.subheader("구성요소")
        st.dataframe(components_df, use_container_width=True, hide_index=True)

# ── Tab 3: 용량 곡선 ──
with tab3:
    st.caption(f"설계 압력 강하 {session.settings.pressure_drop} 기준, 길이별 최대 허용 유량 (1000 단위 내림)")
    lengths = np.linspace(5, 150, 146)
    fig_cap = go.Figure()
    for size in PIPE_SIZES:
        fig_cap.add_trace(go.Scatter(
            x=lengths, y=capacity_curve(size, lengths, session.settings.pressure_drop),
            mode="lines", name=size,
        ))
    fig_cap.update_layout(
        xaxis_title="길이 (ft)", yaxis_title="용량 (BTU/h)", height=450,
        margin=dict(l=20, r=20, t=20, b=20),
    )
    st.plotly_chart(fig_cap, use_container_width=True)

    target_flow = st.number_input("검토 유량 (BTU/h)", min_value=0, value=100000, step=5000)
    st.dataframe(pd.DataFrame({
        "Size": PIPE_SIZES,
        "Max run (ft)": [round(max_run_length(s, target_flow, session.settings.pressure_drop), 1)
                         for s in PIPE_SIZES],
    }), use_container_width=True, hide_index=True)

# ── Tab 4: AI 감사 ──
with tab4:
    if st.button("Audit System", type="primary"):
        with st.spinner("Auditing..."):
            st.session_state["audit_text"] = audit_system(session.network)
    if st.session_state.get("audit_text"):
        for sec in parse_audit_report(st.session_state["audit_text"]):
            st.subheader(sec.title)
            for b in sec.bullets:
                st.markdown(f"- {b}")

# ── Tab 5: 내보내기 ──
with tab5:
    c1, c2, c3 = st.columns(3)
    with c1:
        st.download_button(
            "프로젝트 파일 (.proflex)",
            export_project(session.project_name, session.network).encode("utf-8"),
            f"{session.project_name}{PROJECT_FILE_EXTENSION}", "application/json",
            use_container_width=True,
        )
    with c2:
        st.download_button(
            "Excel 다운로드", export_excel(session.network, verdicts),
            f"{session.project_name}_validation.xlsx",
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            use_container_width=True,
        )
    with c3:
        st.download_button(
            "검토 리포트 (DOCX)",
            build_report_docx(session.project_name, session.network, verdicts,
                              session.settings.pressure_drop,
                              st.session_state.get("audit_text")),
            f"{session.project_name}_review.docx",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            use_container_width=True,
        )
