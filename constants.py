# ! 가스배관 설계 도구: 전역 상수 및 기본 파라미터 정의
# * 모든 모듈이 이 파일을 참조합니다.

from enum import Enum


# ──────────────────────────────────────────────
# ? 배관 구성요소 종류 (Node Type)
# ──────────────────────────────────────────────
class NodeType(str, Enum):
    METER = "METER"
    JUNCTION = "JUNCTION"
    MANIFOLD = "MANIFOLD"
    APPLIANCE = "APPLIANCE"


# ──────────────────────────────────────────────
# ? 구성요소별 속성 테이블
#   radius          : 캔버스 표시 반경 (논리 단위)
#   default_name    : 생성 시 기본 이름
#   has_demand      : demand(BTU/h) 값이 의미 있는지 여부
#   color           : 표시 색상
# ──────────────────────────────────────────────
NODE_TYPE_SPECS = {
    NodeType.METER:     {"radius": 24, "default_name": "Gas Meter",  "has_demand": False, "color": "#10b981"},
    NodeType.JUNCTION:  {"radius": 12, "default_name": "T-Junction", "has_demand": False, "color": "#6366f1"},
    NodeType.MANIFOLD:  {"radius": 16, "default_name": "Manifold",   "has_demand": False, "color": "#06b6d4"},
    NodeType.APPLIANCE: {"radius": 20, "default_name": "Appliance",  "has_demand": True,  "color": "#f59e0b"},
}


def node_radius(node_type: NodeType) -> int:
    return NODE_TYPE_SPECS[node_type]["radius"]


def default_node_name(node_type: NodeType) -> str:
    return NODE_TYPE_SPECS[node_type]["default_name"]


def has_demand(node_type: NodeType) -> bool:
    return NODE_TYPE_SPECS[node_type]["has_demand"]


# ──────────────────────────────────────────────
# ? CSST 호칭 구경별 용량 계수 테이블
#   key   = 호칭 구경 (inch 표기)
#   coeff = 경험 계수, exp = 지수
#   capacity = 10 ft 기준 공칭 용량 (BTU/h, 툴바 표기용)
#   * 배관 사이징 표를 역 멱법칙(power law)으로 피팅한 값
# ──────────────────────────────────────────────
PIPE_SPECS = {
    '3/8"':   {"coeff": 0.00002158927,       "exp": 2.02558185,     "capacity": 46000},
    '1/2"':   {"coeff": 0.00000410606,       "exp": 2.1590935,      "capacity": 77000},
    '3/4"':   {"coeff": 0.00000123682,       "exp": 2.00156167,     "capacity": 200000},
    '1"':     {"coeff": 0.0000010746,        "exp": 1.77654817,     "capacity": 423000},
    '1-1/4"': {"coeff": 1.1678553403503e-07, "exp": 1.992081557687, "capacity": 662000},
}

# 작은 구경 → 큰 구경 순서 (선폭, 자동 추천 순서에 사용)
PIPE_SIZES = list(PIPE_SPECS.keys())

# 용량 반올림 단위 - 항상 내림 (보수적)
CAPACITY_ROUNDING_UNIT = 1000

# ──────────────────────────────────────────────
# ? 설계 기본값
# ──────────────────────────────────────────────
DEFAULT_PRESSURE_DROP = 0.5        # 설계 허용 압력 강하 (in. w.c.)
DEFAULT_PIPE_SIZE = '1/2"'         # 신규 배관 기본 구경
DEFAULT_PIPE_LENGTH_FT = 10.0      # 신규 배관 기본 길이 (ft)
PRESSURE_DROP_MIN = 0.1
PRESSURE_DROP_MAX = 6.0

# ──────────────────────────────────────────────
# ? 기본 가전 프리셋 (BTU/h)
# ──────────────────────────────────────────────
DEFAULT_APPLIANCES = [
    {"name": "Furnace", "btu": 100000},
    {"name": "Water Heater", "btu": 40000},
    {"name": "Cooktop", "btu": 65000},
    {"name": "Fireplace", "btu": 30000},
    {"name": "Dryer", "btu": 20000},
]

# ──────────────────────────────────────────────
# ? 캔버스 / 입력 처리 파라미터
# ──────────────────────────────────────────────
CANVAS_SIZE = 1000.0               # 논리 캔버스 크기 (0 ~ 1000, 양 축 공통)
DEFAULT_NODE_POSITION = (500.0, 500.0)
DRAG_THRESHOLD_POINTER = 8.0       # 마우스/펜: 드래그 판정 이동량
DRAG_THRESHOLD_TOUCH = 30.0        # 터치: 손떨림 허용 이동량
DOUBLE_TAP_WINDOW_MS = 500         # 더블탭 판정 시간 (ms, 미만)
TOUCH_HIT_PADDING = 45.0           # 노드 반경 바깥 터치 판정 여유

# ──────────────────────────────────────────────
# ? 표시 색상
# ──────────────────────────────────────────────
COLORS = {
    "PIPE": "#64748b",
    "PIPE_SELECTED": "#6366f1",
    "ERROR": "#ef4444",
    "SOURCE_LOCK": "#6366f1",
}

# ──────────────────────────────────────────────
# ? 프로젝트 저장
# ──────────────────────────────────────────────
RECENTS_KEY = "proflex_draw_recents_v2"
MAX_RECENT_PROJECTS = 15
DEFAULT_PROJECT_NAME = "New Project"
IMPORTED_PROJECT_NAME = "Imported Design"
PROJECT_FILE_EXTENSION = ".proflex"

# ──────────────────────────────────────────────
# ? AI 감사 리포트 섹션
# ──────────────────────────────────────────────
AUDIT_SECTION_TITLES = ["Safety & Compliance Audit", "Performance & Optimization"]
AUDIT_BULLETS_PER_SECTION = 5
