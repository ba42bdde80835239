# ! 가스배관 설계 도구: 캔버스 입력 상태기계 (Interaction State Machine)
# * 마우스/터치 포인터 이벤트 → 그래프 변경 의도(Intent) + 일시적 UI 상태
# * 순수 리듀서: (state, event) → (new_state, intents). 전역 가변 상태 없음
# * SELECT 모드: 드래그 이동, 탭 선택, 더블탭 편집
# * PIPE 모드: "출발점 탭 → 도착점 탭" 2단계 배관 연결

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

from constants import (
    DEFAULT_PIPE_SIZE, DEFAULT_PIPE_LENGTH_FT,
    DRAG_THRESHOLD_POINTER, DRAG_THRESHOLD_TOUCH,
    DOUBLE_TAP_WINDOW_MS, TOUCH_HIT_PADDING,
    node_radius,
)
from gas_network import GasNetwork, clamp_to_canvas

Point = Tuple[float, float]


# ══════════════════════════════════════════════
#  PART 1: 이벤트 / 의도 / 상태
# ══════════════════════════════════════════════

class Mode(str, Enum):
    SELECT = "select"
    PIPE = "pipe"


class EventKind(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"


class TargetKind(str, Enum):
    NODE = "node"
    EDGE = "edge"
    BACKGROUND = "background"


@dataclass(frozen=True)
class PointerEvent:
    """
    ! 렌더러가 전달하는 저수준 포인터/터치 이벤트

    * position     : 논리 캔버스 좌표 (0 ~ 1000)
    * target_kind  : 이벤트를 받은 요소 종류
    * target_id    : 노드/배관 ID (배경이면 None)
    * is_touch     : 터치 입력 여부 (드래그 임계값 결정)
    * timestamp_ms : 이벤트 시각 (ms), 더블탭 판정에 사용
    """
    kind: EventKind
    position: Point
    target_kind: TargetKind = TargetKind.BACKGROUND
    target_id: Optional[str] = None
    is_touch: bool = False
    timestamp_ms: int = 0


@dataclass(frozen=True)
class Select:
    target_id: str


@dataclass(frozen=True)
class ClearSelection:
    pass


@dataclass(frozen=True)
class RequestEdit:
    target_id: str


@dataclass(frozen=True)
class MoveNode:
    node_id: str
    position: Point


@dataclass(frozen=True)
class AddEdge:
    from_id: str
    to_id: str
    size: str
    length_ft: float


@dataclass(frozen=True)
class DeleteNode:
    node_id: str


@dataclass(frozen=True)
class InteractionState:
    """
    ! 입력 처리 상태 (불변 값 객체, 이벤트마다 새 상태 반환)

    * pipe_source_id : PIPE 모드에서 잠긴 출발 노드
    * press_node_id  : PIPE 모드에서 누르고 있는 노드 (드래그 연결 미리보기용)
    * last_tapped_id / last_tap_ms / tap_count : 더블탭 판정
    """
    mode: Mode = Mode.SELECT
    dragging_node_id: Optional[str] = None
    pipe_source_id: Optional[str] = None
    press_node_id: Optional[str] = None
    pointer_position: Point = (0.0, 0.0)
    drag_start_position: Point = (0.0, 0.0)
    has_moved_past_threshold: bool = False
    last_tapped_id: Optional[str] = None
    last_tap_ms: Optional[int] = None
    tap_count: int = 0
    selected_id: Optional[str] = None


# ══════════════════════════════════════════════
#  PART 2: 보조 함수
# ══════════════════════════════════════════════

def drag_threshold(is_touch: bool) -> float:
    return DRAG_THRESHOLD_TOUCH if is_touch else DRAG_THRESHOLD_POINTER


def node_at(network: GasNetwork, position: Point,
            padding: float = TOUCH_HIT_PADDING) -> Optional[str]:
    """
    좌표 아래의 노드 ID (판정 반경 = 노드 반경 + padding)

    * 여러 노드가 겹치면 중심이 가장 가까운 노드
    """
    px, py = position
    best_id, best_dist = None, math.inf
    for node in network.nodes:
        dist = math.hypot(node.x - px, node.y - py)
        if dist <= node_radius(node.type) + padding and dist < best_dist:
            best_id, best_dist = node.id, dist
    return best_id


def preview_line(state: InteractionState,
                 network: GasNetwork) -> Optional[Tuple[Point, Point]]:
    """
    ! 연결 미리보기 선 (출발 노드 → 현재 포인터)

    * 잠긴 출발점, 또는 PIPE 모드에서 누른 채 임계값 이상 움직인 노드 기준
    * 화면 표시 전용 - 그래프에 저장되지 않음
    """
    source_id = state.pipe_source_id
    if source_id is None and state.mode == Mode.PIPE and state.has_moved_past_threshold:
        source_id = state.press_node_id
    if source_id is None:
        return None
    source = network.get_node(source_id)
    if source is None:
        return None
    return (source.position, state.pointer_position)


def click_target(points: list,
                 network: GasNetwork) -> Optional[Tuple[TargetKind, str, Point]]:
    """
    캔버스 선택 이벤트의 점 목록 → (대상 종류, ID, 좌표)

    * 점의 customdata = ["node" | "edge", id]
    * 노드는 노드 중심 좌표, 배관은 클릭한 라벨 좌표
    * 빈 선택, 알 수 없는 형식, 이미 삭제된 대상 → None
    """
    if not points:
        return None
    point = points[0]
    data = point.get("customdata") or []
    if len(data) < 2:
        return None
    kind, target_id = data[0], data[1]
    if kind == "node":
        node = network.get_node(target_id)
        if node is None:
            return None
        return TargetKind.NODE, target_id, node.position
    if kind == "edge" and network.get_edge(target_id) is not None:
        return TargetKind.EDGE, target_id, (point.get("x", 0.0), point.get("y", 0.0))
    return None


# ══════════════════════════════════════════════
#  PART 3: 리듀서
# ══════════════════════════════════════════════

def handle_pointer(
    state: InteractionState,
    event: PointerEvent,
    network: GasNetwork,
    pipe_size: str = DEFAULT_PIPE_SIZE,
    pipe_length_ft: float = DEFAULT_PIPE_LENGTH_FT,
) -> Tuple[InteractionState, list]:
    """
    ! 포인터 이벤트 1개 처리

    network : 노드 존재 확인/좌표 재판정용 (읽기 전용, 변경하지 않음)
    반환    : (새 상태, Intent 리스트)
    """
    if event.kind == EventKind.DOWN:
        return _on_down(state, event)
    if event.kind == EventKind.MOVE:
        return _on_move(state, event, network)
    return _on_up(state, event, network, pipe_size, pipe_length_ft)


def _on_down(state: InteractionState, event: PointerEvent) -> Tuple[InteractionState, list]:
    new_state = replace(
        state,
        pointer_position=event.position,
        drag_start_position=event.position,
        has_moved_past_threshold=False,
        dragging_node_id=None,
        press_node_id=None,
    )
    if event.target_kind == TargetKind.NODE:
        if state.mode == Mode.SELECT:
            new_state = replace(new_state, dragging_node_id=event.target_id)
        else:
            new_state = replace(new_state, press_node_id=event.target_id)
    return new_state, []


def _on_move(state: InteractionState, event: PointerEvent,
             network: GasNetwork) -> Tuple[InteractionState, list]:
    x, y = event.position
    sx, sy = state.drag_start_position
    threshold = drag_threshold(event.is_touch)
    moved = state.has_moved_past_threshold or abs(x - sx) > threshold or abs(y - sy) > threshold

    new_state = replace(state, pointer_position=event.position, has_moved_past_threshold=moved)
    intents: list = []
    if (state.mode == Mode.SELECT and moved and state.dragging_node_id is not None
            and network.get_node(state.dragging_node_id) is not None):
        intents.append(MoveNode(state.dragging_node_id, clamp_to_canvas(x, y)))
    return new_state, intents


def _on_up(state: InteractionState, event: PointerEvent, network: GasNetwork,
           pipe_size: str, pipe_length_ft: float) -> Tuple[InteractionState, list]:
    # * 제스처 종료: 드래그/누름 상태는 항상 해제
    ended = replace(state, pointer_position=event.position,
                    dragging_node_id=None, press_node_id=None)

    if state.mode == Mode.PIPE:
        return _pipe_tap(state, ended, event, network, pipe_size, pipe_length_ft)

    # ── SELECT 모드 ──
    if event.target_kind == TargetKind.BACKGROUND:
        return replace(ended, selected_id=None, pipe_source_id=None), [ClearSelection()]
    if state.has_moved_past_threshold or event.target_id is None:
        return ended, []
    return _select_tap(ended, event.target_id, event.timestamp_ms)


def _select_tap(state: InteractionState, target_id: str,
                now_ms: int) -> Tuple[InteractionState, list]:
    """
    ! 탭 판정 - 같은 대상을 500ms 미만 간격으로 다시 탭하면 누적

    * 누적 2회 이상 → RequestEdit, 카운터 0으로 초기화
    * 그 외 → Select
    """
    within_window = (
        target_id == state.last_tapped_id
        and state.last_tap_ms is not None
        and now_ms - state.last_tap_ms < DOUBLE_TAP_WINDOW_MS
    )
    count = state.tap_count + 1 if within_window else 1

    if count >= 2:
        return (
            replace(state, last_tapped_id=target_id, last_tap_ms=now_ms,
                    tap_count=0, selected_id=target_id),
            [RequestEdit(target_id)],
        )
    return (
        replace(state, last_tapped_id=target_id, last_tap_ms=now_ms,
                tap_count=count, selected_id=target_id),
        [Select(target_id)],
    )


def _pipe_tap(before: InteractionState, state: InteractionState, event: PointerEvent,
              network: GasNetwork, pipe_size: str,
              pipe_length_ft: float) -> Tuple[InteractionState, list]:
    """
    ! PIPE 모드 탭 처리 (출발점 잠금 → 도착점 연결)

    * 배경 탭 → 잠금 해제
    * 터치 + 임계값 이상 이동 → 손가락을 뗀 위치의 노드로 대상 재판정
      (터치 캡처 때문에 이벤트 대상이 처음 누른 노드로 남아 있음)
    """
    if event.target_kind == TargetKind.BACKGROUND:
        return replace(state, pipe_source_id=None), []

    moved = before.has_moved_past_threshold
    target_id = event.target_id
    if event.is_touch and moved:
        resolved = node_at(network, event.position)
        if resolved is not None:
            target_id = resolved

    if target_id is None or network.get_node(target_id) is None:
        return state, []

    source_id = before.pipe_source_id
    if source_id is None:
        # * 끌어다 놓은 경우에도 손을 뗀 노드를 출발점으로 잠금 (연결은 다음 탭)
        return replace(state, pipe_source_id=target_id, selected_id=None), [ClearSelection()]

    if source_id == target_id:
        if not moved:
            return replace(state, pipe_source_id=None), []
        return state, []

    return (
        replace(state, pipe_source_id=None),
        [AddEdge(source_id, target_id, pipe_size, pipe_length_ft)],
    )


# ══════════════════════════════════════════════
#  PART 4: 모드 전환 / 삭제 버튼 / 정리
# ══════════════════════════════════════════════

def set_mode(state: InteractionState, mode: Mode) -> InteractionState:
    """모드 전환 - SELECT 로 전환 시 잠긴 출발점은 무조건 해제"""
    mode = Mode(mode)
    if mode == Mode.SELECT:
        return replace(state, mode=mode, pipe_source_id=None,
                       press_node_id=None, dragging_node_id=None)
    return replace(state, mode=mode, dragging_node_id=None)


def request_delete(state: InteractionState,
                   node_id: str) -> Tuple[InteractionState, list]:
    """
    선택된 노드의 삭제 버튼 - 탭 카운트를 거치지 않고 바로 DeleteNode

    * SELECT 모드에서 현재 선택된 노드에만 유효
    """
    if state.mode != Mode.SELECT or state.selected_id != node_id:
        return state, []
    return replace(state, selected_id=None, tap_count=0), [DeleteNode(node_id)]


def forget_missing(state: InteractionState, network: GasNetwork) -> InteractionState:
    """삭제/불러오기 후 더 이상 존재하지 않는 노드·배관 참조 제거"""
    def alive(item_id: Optional[str]) -> Optional[str]:
        if item_id is None:
            return None
        if network.get_node(item_id) is None and network.get_edge(item_id) is None:
            return None
        return item_id

    return replace(
        state,
        dragging_node_id=alive(state.dragging_node_id),
        pipe_source_id=alive(state.pipe_source_id),
        press_node_id=alive(state.press_node_id),
        selected_id=alive(state.selected_id),
    )
