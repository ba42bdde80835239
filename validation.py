# ! 가스배관 설계 도구: 하류 수요 집계 + 구간별 용량 판정
# * 각 배관 구간의 유량 = 하류 노드 가전 수요 + 하류 노드에서 나가는 모든 배관 유량 (후위 순회 합)
# * 판정: flow ≤ capacity → PASS (등호 포함)
# * 매 그래프 변경 후 전체 재계산 (증분 계산 없음)

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from constants import NodeType, DEFAULT_PRESSURE_DROP
from capacity import pipe_capacity
from gas_network import GasNetwork, Edge, TopologyError


# ══════════════════════════════════════════════
#  PART 1: 하류 수요 집계 (Demand Aggregator)
# ══════════════════════════════════════════════

def edge_flow(network: GasNetwork, edge: Edge,
              memo: Optional[Dict[str, float]] = None,
              _visiting: Optional[set] = None) -> float:
    """
    ! 배관 구간을 통과해야 하는 하류 총 수요

    flow(edge) = demand(edge.to, APPLIANCE 일 때) + Σ flow(edge.to 에서 나가는 배관)

    * edge.to 노드가 없으면 (삭제 도중의 끊어진 배관) 0
    * memo : 한 번의 검증 패스 안에서만 유효한 캐시 (edge.id → flow)
    * 순환이 있으면 무한 재귀 대신 TopologyError
    """
    if memo is not None and edge.id in memo:
        return memo[edge.id]
    if _visiting is None:
        _visiting = set()
    if edge.id in _visiting:
        raise TopologyError(f"순환 배관이 감지되었습니다. (배관 id: {edge.id})")

    target = network.get_node(edge.to_id)
    if target is None:
        return 0.0

    _visiting.add(edge.id)
    total = target.demand if target.type == NodeType.APPLIANCE else 0.0
    for out in network.outgoing(target.id):
        total += edge_flow(network, out, memo, _visiting)
    _visiting.discard(edge.id)

    if memo is not None:
        memo[edge.id] = total
    return total


# ══════════════════════════════════════════════
#  PART 2: 구간별 판정 (Validator)
# ══════════════════════════════════════════════

@dataclass(frozen=True)
class EdgeVerdict:
    """하나의 배관 구간 판정 결과"""
    is_valid: bool
    flow: float
    capacity: int

    @property
    def utilization(self) -> float:
        """용량 대비 유량 비율 (용량 0 이면 유량 유무에 따라 0 또는 inf)"""
        if self.capacity <= 0:
            return 0.0 if self.flow <= 0 else float("inf")
        return self.flow / self.capacity

    def to_dict(self) -> dict:
        return {"isValid": self.is_valid, "flow": self.flow, "capacity": self.capacity}


def verdict(flow: float, capacity: int) -> EdgeVerdict:
    return EdgeVerdict(is_valid=flow <= capacity, flow=flow, capacity=capacity)


def validate_network(network: GasNetwork,
                     pressure_drop: float = DEFAULT_PRESSURE_DROP) -> Dict[str, EdgeVerdict]:
    """
    ! 전체 배관 구간 판정: edge.id → EdgeVerdict

    * 현재 존재하는 모든 배관을 빠짐없이 포함 (삭제된 배관 항목 없음)
    * 같은 그래프 상태에 대해 항상 동일한 결과 (부작용 없음)
    * memo 는 이 호출 안에서만 사용하고 버림
    """
    memo: Dict[str, float] = {}
    results: Dict[str, EdgeVerdict] = {}
    for edge in network.edges:
        flow = edge_flow(network, edge, memo)
        cap = pipe_capacity(edge.size, edge.length_ft, pressure_drop)
        results[edge.id] = verdict(flow, cap)
    return results


# ══════════════════════════════════════════════
#  PART 3: 요약 및 구조 진단
# ══════════════════════════════════════════════

def summarize_validation(verdicts: Dict[str, EdgeVerdict]) -> dict:
    """
    판정 결과 요약 (KPI 표시용)

    반환 dict:
      total, passed, failed   : 구간 수
      failing_ids             : 용량 초과 구간 ID (입력 순서)
      max_utilization         : 최대 이용률 (구간 없으면 0.0)
      worst_edge_id           : 최대 이용률 구간 ID (없으면 None)
    """
    ids = list(verdicts.keys())
    failing = [eid for eid in ids if not verdicts[eid].is_valid]
    if not ids:
        return {"total": 0, "passed": 0, "failed": 0, "failing_ids": [],
                "max_utilization": 0.0, "worst_edge_id": None}

    util = np.array([verdicts[eid].utilization for eid in ids], dtype=float)
    worst = int(np.argmax(util))
    return {
        "total": len(ids),
        "passed": len(ids) - len(failing),
        "failed": len(failing),
        "failing_ids": failing,
        "max_utilization": float(util[worst]),
        "worst_edge_id": ids[worst],
    }


def multi_feed_nodes(network: GasNetwork) -> List[str]:
    """
    유입 배관이 2개 이상인 노드 ID 목록

    * 수요 집계는 노드당 유입 배관 1개(트리)를 가정하므로
      여기 포함된 노드는 상류 유량이 중복 계산됨 → UI 경고 대상
    """
    counts: Dict[str, int] = {}
    for e in network.edges:
        counts[e.to_id] = counts.get(e.to_id, 0) + 1
    return [n.id for n in network.nodes if counts.get(n.id, 0) > 1]


def supply_roots(network: GasNetwork) -> List[str]:
    """유입 배관이 없고 유출 배관이 있는 노드 (공급 시작점)"""
    fed = {e.to_id for e in network.edges}
    feeding = {e.from_id for e in network.edges}
    return [n.id for n in network.nodes if n.id in feeding and n.id not in fed]
