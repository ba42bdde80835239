# ! 가스배관 설계 도구: 프로젝트 저장/불러오기 (.proflex JSON) + 최근 프로젝트 목록
# * 불러오기 실패는 ProjectFormatError 로 명시적으로 보고, 기존 그래프는 건드리지 않음
# * 최근 프로젝트 - 최신순, ID 중복 제거, 최대 15개

import json
import logging
import os
import time
from typing import List, Optional, Tuple

from constants import (
    PIPE_SPECS, RECENTS_KEY, MAX_RECENT_PROJECTS, IMPORTED_PROJECT_NAME,
)
from gas_network import GasNetwork, ValidationError, new_id

logger = logging.getLogger(__name__)


class ProjectFormatError(Exception):
    """프로젝트 파일 형식 오류 (파싱 실패, 구조 불일치, 순환 배관 등)"""
    pass


# ══════════════════════════════════════════════
#  PART 1: 내보내기 / 가져오기
# ══════════════════════════════════════════════

def export_project(name: str, network: GasNetwork) -> str:
    data = network.to_dict()
    data["projectName"] = name
    return json.dumps(data, ensure_ascii=False, indent=2)


def network_from_payload(data) -> GasNetwork:
    """
    ! 역직렬화된 dict → 배관망 (구조 검증 포함)

    검사 항목:
    1. nodes / edges 가 리스트인지
    2. 노드 종류 / 배관 구경이 알려진 값인지, 숫자 필드 변환 가능 여부
    3. 노드·배관 ID 중복
    4. 순환 배관 (수요 집계가 종료되지 않으므로 불러오기 단계에서 거부)

    * 끊어진 배관(없는 노드 참조)은 허용 - 유량 0 으로 처리됨
    """
    if not isinstance(data, dict):
        raise ProjectFormatError("프로젝트 데이터는 객체(JSON object)여야 합니다.")
    for key in ("nodes", "edges"):
        if data.get(key) is not None and not isinstance(data[key], list):
            raise ProjectFormatError(f"'{key}' 항목은 리스트여야 합니다.")

    try:
        network = GasNetwork.from_dict(data)
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise ProjectFormatError(f"노드/배관 항목을 해석할 수 없습니다: {e!r}") from e

    bad_sizes = sorted({e.size for e in network.edges if e.size not in PIPE_SPECS})
    if bad_sizes:
        raise ProjectFormatError(f"지원하지 않는 배관 구경: {', '.join(bad_sizes)}")

    node_ids = [n.id for n in network.nodes]
    edge_ids = [e.id for e in network.edges]
    if len(set(node_ids)) != len(node_ids):
        raise ProjectFormatError("중복된 노드 ID 가 있습니다.")
    if len(set(edge_ids)) != len(edge_ids):
        raise ProjectFormatError("중복된 배관 ID 가 있습니다.")

    cycle = network.find_cycle()
    if cycle:
        raise ProjectFormatError(f"순환 배관이 포함되어 있습니다: {' → '.join(cycle)}")
    return network


def import_project(text: str) -> Tuple[str, GasNetwork]:
    """
    .proflex 텍스트 → (프로젝트 이름, 배관망)

    * projectName 누락 → "Imported Design"
    """
    try:
        data = json.loads(text)
    except (ValueError, TypeError) as e:
        raise ProjectFormatError(f"잘못된 .proflex 파일입니다: {e}") from e
    network = network_from_payload(data)
    name = data.get("projectName") or IMPORTED_PROJECT_NAME
    return str(name), network


# ══════════════════════════════════════════════
#  PART 2: 최근 프로젝트 저장소
# ══════════════════════════════════════════════

class RecentProjectStore:
    """
    ! 로컬 JSON 파일 기반 최근 프로젝트 목록

    파일 구조: {RECENTS_KEY: [{id, name, timestamp, data: {nodes, edges}}, ...]}
    * timestamp: epoch ms
    """

    def __init__(self, path: str, limit: int = MAX_RECENT_PROJECTS):
        self.path = path
        self.limit = limit

    def _read(self) -> List[dict]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                entries = json.load(f).get(RECENTS_KEY, [])
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Ignoring unreadable recents file %s: %s", self.path, e)
            return []
        if not isinstance(entries, list):
            logger.warning("Ignoring malformed recents list in %s", self.path)
            return []
        return [p for p in entries if isinstance(p, dict) and "id" in p]

    def _write(self, entries: List[dict]) -> None:
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({RECENTS_KEY: entries}, f, ensure_ascii=False)

    def list(self) -> List[dict]:
        """최근 프로젝트 요약 (id, name, timestamp) - 최신순"""
        return [
            {"id": p["id"], "name": p.get("name", ""), "timestamp": p.get("timestamp", 0)}
            for p in self._read()
        ]

    def save(self, name: str, network: GasNetwork,
             project_id: Optional[str] = None) -> str:
        """
        ! 저장 - 같은 ID 항목은 교체 후 맨 앞으로 이동

        반환 : 저장된 프로젝트 ID (없으면 새로 발급)
        """
        project_id = project_id or new_id()
        entry = {
            "id": project_id,
            "name": name,
            "timestamp": int(time.time() * 1000),
            "data": network.to_dict(),
        }
        entries = [entry] + [p for p in self._read() if p["id"] != project_id]
        self._write(entries[: self.limit])
        logger.info("Saved project %s (%s)", project_id, name)
        return project_id

    def save_as(self, name: str, network: GasNetwork) -> str:
        """다른 이름으로 저장 - 항상 새 ID"""
        if not name or not name.strip():
            raise ValidationError("프로젝트 이름을 입력하세요.")
        return self.save(name.strip(), network, project_id=None)

    def load(self, project_id: str) -> Optional[Tuple[str, GasNetwork]]:
        for p in self._read():
            if p["id"] == project_id:
                return p.get("name", ""), network_from_payload(p.get("data", {}))
        return None
