# ! 가스배관 설계 도구: 설계 세션 (입력 상태기계 + 그래프 + 검증 결합)
# * 이벤트 → Intent → 그래프 변경 → 전체 재검증 을 엄격한 순서로 실행
# * 단일 스레드, 단일 작성자 (잠금 불필요)

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from constants import (
    NodeType, PIPE_SPECS, DEFAULT_PRESSURE_DROP, DEFAULT_PIPE_SIZE,
    DEFAULT_PIPE_LENGTH_FT, DEFAULT_PROJECT_NAME, DEFAULT_APPLIANCES,
)
from gas_network import GasNetwork, Node, Edge, ValidationError, TopologyError
from validation import EdgeVerdict, validate_network
from interaction import (
    InteractionState, PointerEvent, Mode,
    Select, ClearSelection, RequestEdit, MoveNode, AddEdge, DeleteNode,
    handle_pointer, set_mode, request_delete, forget_missing,
)

logger = logging.getLogger(__name__)


@dataclass
class EditorSettings:
    """
    ! 프로젝트 단위 설정값

    * pressure_drop  : 설계 압력 강하 (모든 배관 공통)
    * pipe_size      : 신규 배관 기본 구경 (툴바 선택값)
    * pipe_length_ft : 신규 배관 기본 길이
    """
    pressure_drop: float = DEFAULT_PRESSURE_DROP
    pipe_size: str = DEFAULT_PIPE_SIZE
    pipe_length_ft: float = DEFAULT_PIPE_LENGTH_FT


class DesignSession:
    """
    ! 하나의 열린 설계 프로젝트

    * network     : 배관망 (유일한 원본)
    * interaction  - 입력 상태기계 상태
    * verdicts    : 최신 구간별 판정 (모든 변경 직후 재계산)
    * notices     : 거부된 연결 등 사용자 안내 메시지 (UI 가 꺼내 감)
    """

    def __init__(self, network: Optional[GasNetwork] = None,
                 settings: Optional[EditorSettings] = None,
                 project_name: str = DEFAULT_PROJECT_NAME,
                 project_id: Optional[str] = None):
        self.network = network or GasNetwork()
        self.settings = settings or EditorSettings()
        self.project_name = project_name
        self.project_id = project_id
        self.interaction = InteractionState()
        self.edit_target_id: Optional[str] = None
        self.notices: List[str] = []
        self.verdicts: Dict[str, EdgeVerdict] = {}
        self.revalidate()

    # ── 조회 ──
    @property
    def mode(self) -> Mode:
        return self.interaction.mode

    @property
    def selected_id(self) -> Optional[str]:
        return self.interaction.selected_id

    def revalidate(self) -> Dict[str, EdgeVerdict]:
        self.verdicts = validate_network(self.network, self.settings.pressure_drop)
        return self.verdicts

    def pop_notices(self) -> List[str]:
        notices, self.notices = self.notices, []
        return notices

    # ══════════════════════════════════════════
    #  입력 이벤트
    # ══════════════════════════════════════════
    def dispatch(self, event: PointerEvent) -> list:
        """
        ! 포인터 이벤트 1개 처리 → 발생한 Intent 리스트 반환

        * Intent 는 발생 순서대로 적용, 그래프 변경이 있으면 즉시 재검증
        """
        self.interaction, intents = handle_pointer(
            self.interaction, event, self.network,
            pipe_size=self.settings.pipe_size,
            pipe_length_ft=self.settings.pipe_length_ft,
        )
        self._apply(intents)
        return intents

    def request_delete(self, node_id: str) -> list:
        self.interaction, intents = request_delete(self.interaction, node_id)
        self._apply(intents)
        return intents

    def set_mode(self, mode: Mode) -> None:
        self.interaction = set_mode(self.interaction, mode)

    def _apply(self, intents: list) -> None:
        mutated = False
        for intent in intents:
            if isinstance(intent, MoveNode):
                self.network.move_node(intent.node_id, *intent.position)
                mutated = True
            elif isinstance(intent, AddEdge):
                try:
                    self.network.add_edge(intent.from_id, intent.to_id,
                                          size=intent.size, length_ft=intent.length_ft)
                    mutated = True
                except TopologyError as e:
                    logger.warning("Rejected pipe %s -> %s: %s", intent.from_id, intent.to_id, e)
                    self.notices.append(str(e))
            elif isinstance(intent, DeleteNode):
                self.network.delete_node(intent.node_id)
                if self.edit_target_id == intent.node_id:
                    self.edit_target_id = None
                mutated = True
            elif isinstance(intent, RequestEdit):
                self.edit_target_id = intent.target_id
            elif isinstance(intent, (Select, ClearSelection)):
                self.edit_target_id = None
        if mutated:
            self.revalidate()

    # ══════════════════════════════════════════
    #  명시적 편집 (툴바 / 편집 패널)
    # ══════════════════════════════════════════
    def add_node(self, node_type: NodeType, demand: float = 0.0,
                 name: Optional[str] = None) -> Node:
        """기본 위치에 노드 추가 후 선택 상태로 전환"""
        node = self.network.add_node(node_type, name=name, demand=demand)
        self.interaction = replace(self.interaction, selected_id=node.id)
        self.revalidate()
        return node

    def add_appliance(self, preset_name: str) -> Node:
        for preset in DEFAULT_APPLIANCES:
            if preset["name"] == preset_name:
                return self.add_node(NodeType.APPLIANCE, demand=preset["btu"], name=preset["name"])
        raise ValidationError(f"알 수 없는 가전 프리셋입니다. (입력값: {preset_name})")

    def update_node(self, node_id: str, name: Optional[str] = None,
                    demand: Optional[float] = None) -> Node:
        node = self.network.update_node(node_id, name=name, demand=demand)
        self.revalidate()
        return node

    def move_node(self, node_id: str, x: float, y: float) -> Node:
        node = self.network.move_node(node_id, x, y)
        self.revalidate()
        return node

    def update_edge(self, edge_id: str, size: Optional[str] = None,
                    length_ft: Optional[float] = None) -> Edge:
        edge = self.network.update_edge(edge_id, size=size, length_ft=length_ft)
        self.revalidate()
        return edge

    def delete_node(self, node_id: str) -> List[Edge]:
        removed = self.network.delete_node(node_id)
        self._after_removal()
        return removed

    def delete_edge(self, edge_id: str) -> Optional[Edge]:
        removed = self.network.delete_edge(edge_id)
        self._after_removal()
        return removed

    def _after_removal(self) -> None:
        self.interaction = forget_missing(self.interaction, self.network)
        if self.edit_target_id is not None and (
                self.network.get_node(self.edit_target_id) is None
                and self.network.get_edge(self.edit_target_id) is None):
            self.edit_target_id = None
        self.revalidate()

    # ══════════════════════════════════════════
    #  설정
    # ══════════════════════════════════════════
    def set_pressure_drop(self, pressure_drop: float) -> None:
        if pressure_drop <= 0:
            raise ValidationError(f"설계 압력 강하는 양수여야 합니다. (입력값: {pressure_drop})")
        self.settings.pressure_drop = float(pressure_drop)
        self.revalidate()

    def set_pipe_size(self, size: str) -> None:
        if size not in PIPE_SPECS:
            raise ValidationError(f"지원하지 않는 배관 구경입니다. (입력값: {size})")
        self.settings.pipe_size = size

    # ══════════════════════════════════════════
    #  프로젝트 전환
    # ══════════════════════════════════════════
    def load_graph(self, network: GasNetwork, project_name: str,
                   project_id: Optional[str] = None) -> None:
        """불러온 그래프로 교체 - 입력 상태는 모드만 유지하고 초기화"""
        self.network = network
        self.project_name = project_name
        self.project_id = project_id
        self.interaction = InteractionState(mode=self.interaction.mode)
        self.edit_target_id = None
        self.revalidate()

    def reset(self) -> None:
        self.load_graph(GasNetwork(), DEFAULT_PROJECT_NAME)

    def snapshot(self) -> dict:
        """외부 협력자(저장/감사/렌더러)용 읽기 전용 사본"""
        data = self.network.copy().to_dict()
        data["projectName"] = self.project_name
        return data
