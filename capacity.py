# ! 가스배관 설계 도구: 배관 용량 계산 엔진
# * 호칭 구경별 경험 계수(coeff, exp)를 이용한 역 멱법칙 용량식
# * 설계 압력 강하(Δp) 기준, 1000 단위 내림

import math
from typing import Optional

import numpy as np

from constants import (
    PIPE_SPECS, PIPE_SIZES, CAPACITY_ROUNDING_UNIT, DEFAULT_PRESSURE_DROP,
)


# ──────────────────────────────────────────────
# ? 구간 최대 허용 유량 (Capacity)
# ──────────────────────────────────────────────
def pipe_capacity(size: str, length_ft: float,
                  pressure_drop: float = DEFAULT_PRESSURE_DROP) -> int:
    """
    ! 배관 구간이 설계 압력 강하를 넘지 않고 흘릴 수 있는 최대 유량

    flow = floor( ((Δp / L) / coeff) ^ (1/exp) ) × 1000

    size          : 호칭 구경 (PIPE_SPECS 키)
    length_ft     : 구간 길이 (ft)
    pressure_drop : 설계 압력 강하 (프로젝트 공통)
    반환          : 최대 유량 (BTU/h, 1000 단위 내림, 음수 없음)

    * L ≤ 0 또는 Δp ≤ 0 → 0 (사용 불가 구간, 예외 아님)
    """
    spec = PIPE_SPECS[size]
    if length_ft <= 0 or pressure_drop <= 0:
        return 0
    units = ((pressure_drop / length_ft) / spec["coeff"]) ** (1.0 / spec["exp"])
    return int(math.floor(units)) * CAPACITY_ROUNDING_UNIT


# ──────────────────────────────────────────────
# ? 길이별 용량 곡선 (차트용, numpy 벡터화)
# ──────────────────────────────────────────────
def capacity_curve(size: str, lengths_ft,
                   pressure_drop: float = DEFAULT_PRESSURE_DROP) -> np.ndarray:
    """
    여러 길이에 대한 용량을 한 번에 계산합니다.
    lengths_ft : 길이 배열 (ft)
    반환       : 용량 배열 (BTU/h), L ≤ 0 위치는 0
    """
    spec = PIPE_SPECS[size]
    L = np.asarray(lengths_ft, dtype=float)
    if pressure_drop <= 0:
        return np.zeros_like(L)
    positive = L > 0
    safe_L = np.where(positive, L, 1.0)
    units = ((pressure_drop / safe_L) / spec["coeff"]) ** (1.0 / spec["exp"])
    return np.where(positive, np.floor(units) * CAPACITY_ROUNDING_UNIT, 0.0)


# ──────────────────────────────────────────────
# ? 역산: 주어진 유량을 흘릴 수 있는 최대 길이
# ──────────────────────────────────────────────
def max_run_length(size: str, flow: float,
                   pressure_drop: float = DEFAULT_PRESSURE_DROP) -> float:
    """
    L = Δp / ( coeff × (flow/1000)^exp )

    * 반올림 전 연속식 기준이므로 실제 판정(내림 적용)보다 약간 관대함
    * flow ≤ 0 → 무한대
    """
    spec = PIPE_SPECS[size]
    if flow <= 0:
        return math.inf
    if pressure_drop <= 0:
        return 0.0
    return pressure_drop / (spec["coeff"] * (flow / CAPACITY_ROUNDING_UNIT) ** spec["exp"])


# ──────────────────────────────────────────────
# ? 자동 관경 추천
# ──────────────────────────────────────────────
def recommend_pipe_size(flow: float, length_ft: float,
                        pressure_drop: float = DEFAULT_PRESSURE_DROP) -> Optional[str]:
    """
    ! 유량을 감당할 수 있는 가장 작은 구경을 반환

    * 작은 구경부터 순서대로 pipe_capacity ≥ flow 인 첫 구경
    * 어떤 구경으로도 부족하면 None
    """
    for size in PIPE_SIZES:
        if pipe_capacity(size, length_ft, pressure_drop) >= flow:
            return size
    return None
