# ! 가스배관 설계 도구: 배관망 그래프 저장소 (Graph Store)
# * 노드(계량기/분기/매니폴드/가전) + 방향성 배관 구간(from → to)
# * 구조적 무결성만 담당: ID 유일성, 연쇄 삭제, 순환 배관 거부

import uuid
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Tuple

from constants import (
    NodeType, PIPE_SPECS, CANVAS_SIZE,
    DEFAULT_NODE_POSITION, DEFAULT_PIPE_SIZE, DEFAULT_PIPE_LENGTH_FT,
    default_node_name, has_demand,
)


# ══════════════════════════════════════════════
#  PART 1: 예외
# ══════════════════════════════════════════════

class ValidationError(Exception):
    """편집 입력값 검증 실패 시 발생하는 예외"""
    pass


class TopologyError(ValidationError):
    """자기 연결, 순환 배관, 존재하지 않는 끝점 등 구조 오류"""
    pass


def new_id() -> str:
    """충돌 가능성이 낮은 9자리 식별자"""
    return uuid.uuid4().hex[:9]


def clamp_to_canvas(x: float, y: float) -> Tuple[float, float]:
    return (min(max(x, 0.0), CANVAS_SIZE), min(max(y, 0.0), CANVAS_SIZE))


# ══════════════════════════════════════════════
#  PART 2: 데이터 구조
# ══════════════════════════════════════════════

@dataclass
class Node:
    """
    ! 하나의 배관 구성요소

    * type 은 생성 시 고정, 위치/이름/수요는 편집 가능
    * demand 는 APPLIANCE 에서만 의미 있음 (그 외 0)
    """
    id: str
    type: NodeType
    x: float
    y: float
    name: str
    demand: float = 0.0

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_dict(self) -> dict:
        return {
            "id": self.id, "type": self.type.value,
            "x": self.x, "y": self.y,
            "name": self.name, "btu": self.demand,
        }


@dataclass
class Edge:
    """하나의 배관 구간. to_id 가 하류(공급원에서 먼 쪽)"""
    id: str
    from_id: str
    to_id: str
    size: str = DEFAULT_PIPE_SIZE
    length_ft: float = DEFAULT_PIPE_LENGTH_FT

    def to_dict(self) -> dict:
        return {
            "id": self.id, "from": self.from_id, "to": self.to_id,
            "size": self.size, "length": self.length_ft,
        }


# ══════════════════════════════════════════════
#  PART 3: 배관망 (Graph Store)
# ══════════════════════════════════════════════

@dataclass
class GasNetwork:
    """! 전체 배관망: 노드/배관 목록 (삽입 순서 유지)"""
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    # ── 조회 ──
    def get_node(self, node_id: str) -> Optional[Node]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        for e in self.edges:
            if e.id == edge_id:
                return e
        return None

    def require_node(self, node_id: str) -> Node:
        node = self.get_node(node_id)
        if node is None:
            raise ValidationError(f"존재하지 않는 노드입니다. (id: {node_id})")
        return node

    def require_edge(self, edge_id: str) -> Edge:
        edge = self.get_edge(edge_id)
        if edge is None:
            raise ValidationError(f"존재하지 않는 배관입니다. (id: {edge_id})")
        return edge

    def outgoing(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.from_id == node_id]

    def incoming(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.to_id == node_id]

    def reaches(self, start_id: str, goal_id: str) -> bool:
        """start 에서 from → to 방향으로 goal 에 도달 가능한지 (반복 DFS)"""
        stack = [start_id]
        seen = set()
        while stack:
            current = stack.pop()
            if current == goal_id:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(e.to_id for e in self.outgoing(current))
        return False

    def find_cycle(self) -> Optional[List[str]]:
        """
        ! 순환 경로 탐색 - 불러오기 시점 구조 검증용

        * 3색 DFS (white/gray/black), 순환 발견 시 노드 ID 경로 반환
        * 순환 없으면 None
        """
        children: Dict[str, List[str]] = {}
        for e in self.edges:
            children.setdefault(e.from_id, []).append(e.to_id)

        state: Dict[str, int] = {}   # 1 = 방문 중, 2 = 완료
        for root in children:
            if state.get(root):
                continue
            path = [root]
            iters = [iter(children.get(root, []))]
            state[root] = 1
            while iters:
                nxt = next(iters[-1], None)
                if nxt is None:
                    state[path.pop()] = 2
                    iters.pop()
                    continue
                if state.get(nxt) == 1:
                    return path[path.index(nxt):] + [nxt]
                if not state.get(nxt):
                    state[nxt] = 1
                    path.append(nxt)
                    iters.append(iter(children.get(nxt, [])))
        return None

    # ── 노드 편집 ──
    def add_node(
        self,
        node_type: NodeType,
        x: float = DEFAULT_NODE_POSITION[0],
        y: float = DEFAULT_NODE_POSITION[1],
        name: Optional[str] = None,
        demand: float = 0.0,
        node_id: Optional[str] = None,
    ) -> Node:
        node_type = NodeType(node_type)
        if demand < 0:
            raise ValidationError(f"수요(BTU/h)는 0 이상이어야 합니다. (입력값: {demand})")
        node_id = node_id or new_id()
        if self.get_node(node_id) is not None:
            raise ValidationError(f"중복된 노드 ID 입니다. (id: {node_id})")
        x, y = clamp_to_canvas(x, y)
        node = Node(
            id=node_id, type=node_type, x=x, y=y,
            name=name or default_node_name(node_type),
            demand=float(demand) if has_demand(node_type) else 0.0,
        )
        self.nodes.append(node)
        return node

    def move_node(self, node_id: str, x: float, y: float) -> Node:
        node = self.require_node(node_id)
        node.x, node.y = clamp_to_canvas(x, y)
        return node

    def update_node(self, node_id: str, name: Optional[str] = None,
                    demand: Optional[float] = None) -> Node:
        node = self.require_node(node_id)
        if name is not None:
            node.name = name
        if demand is not None:
            if demand < 0:
                raise ValidationError(f"수요(BTU/h)는 0 이상이어야 합니다. (입력값: {demand})")
            node.demand = float(demand) if has_demand(node.type) else 0.0
        return node

    def delete_node(self, node_id: str) -> List[Edge]:
        """
        ! 노드 삭제 + 연결된 모든 배관 연쇄 삭제

        반환 : 함께 삭제된 배관 목록 (노드가 없으면 빈 리스트)
        """
        if self.get_node(node_id) is None:
            return []
        removed = [e for e in self.edges if e.from_id == node_id or e.to_id == node_id]
        self.edges = [e for e in self.edges if e.from_id != node_id and e.to_id != node_id]
        self.nodes = [n for n in self.nodes if n.id != node_id]
        return removed

    # ── 배관 편집 ──
    def add_edge(
        self,
        from_id: str,
        to_id: str,
        size: str = DEFAULT_PIPE_SIZE,
        length_ft: float = DEFAULT_PIPE_LENGTH_FT,
        edge_id: Optional[str] = None,
    ) -> Edge:
        """
        ! 배관 추가 - 트리 구조 유지를 위해 순환을 만드는 연결은 거부

        * 자기 자신 연결 → TopologyError
        * to 에서 from 으로 이미 도달 가능 → 순환 → TopologyError
        """
        if self.get_node(from_id) is None or self.get_node(to_id) is None:
            raise TopologyError(f"배관 끝점 노드가 존재하지 않습니다. ({from_id} → {to_id})")
        if from_id == to_id:
            raise TopologyError(f"노드를 자기 자신과 연결할 수 없습니다. (id: {from_id})")
        if self.reaches(to_id, from_id):
            raise TopologyError(
                f"순환 배관이 생깁니다. 하류 노드에서 상류로 되돌아오는 연결은 허용되지 않습니다. "
                f"({from_id} → {to_id})"
            )
        self._check_edge_values(size, length_ft)
        edge_id = edge_id or new_id()
        if self.get_edge(edge_id) is not None:
            raise ValidationError(f"중복된 배관 ID 입니다. (id: {edge_id})")
        edge = Edge(id=edge_id, from_id=from_id, to_id=to_id,
                    size=size, length_ft=float(length_ft))
        self.edges.append(edge)
        return edge

    def update_edge(self, edge_id: str, size: Optional[str] = None,
                    length_ft: Optional[float] = None) -> Edge:
        edge = self.require_edge(edge_id)
        self._check_edge_values(
            size if size is not None else edge.size,
            length_ft if length_ft is not None else edge.length_ft,
        )
        if size is not None:
            edge.size = size
        if length_ft is not None:
            edge.length_ft = float(length_ft)
        return edge

    def delete_edge(self, edge_id: str) -> Optional[Edge]:
        edge = self.get_edge(edge_id)
        if edge is not None:
            self.edges = [e for e in self.edges if e.id != edge_id]
        return edge

    @staticmethod
    def _check_edge_values(size: str, length_ft: float) -> None:
        if size not in PIPE_SPECS:
            raise ValidationError(f"지원하지 않는 배관 구경입니다. (입력값: {size})")
        if length_ft <= 0:
            raise ValidationError(f"배관 길이는 양수여야 합니다. (입력값: {length_ft} ft)")

    # ── 직렬화 (외부 저장/내보내기 협력자용 평문 구조) ──
    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GasNetwork":
        """
        ! 평문 구조 → 배관망 (있는 그대로 수용)

        * 스키마/순환 검증은 불러오기 협력자(projects.py)의 책임
        * 필드 타입 변환 실패 시 KeyError/ValueError/TypeError 가 그대로 전파됨
        """
        nodes = [
            Node(
                id=str(n["id"]), type=NodeType(n["type"]),
                x=float(n.get("x", 0.0)), y=float(n.get("y", 0.0)),
                name=str(n.get("name", "")),
                demand=float(n.get("btu", 0.0) or 0.0),
            )
            for n in data.get("nodes") or []
        ]
        edges = [
            Edge(
                id=str(e["id"]), from_id=str(e["from"]), to_id=str(e["to"]),
                size=str(e.get("size", DEFAULT_PIPE_SIZE)),
                length_ft=float(e.get("length", DEFAULT_PIPE_LENGTH_FT)),
            )
            for e in data.get("edges") or []
        ]
        return cls(nodes=nodes, edges=edges)

    def copy(self) -> "GasNetwork":
        return GasNetwork(
            nodes=[Node(**asdict(n)) for n in self.nodes],
            edges=[Edge(**asdict(e)) for e in self.edges],
        )
