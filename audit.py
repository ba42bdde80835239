# ! 가스배관 설계 도구: AI 시스템 감사 리포트 (Gemini REST)
# * 그래프 스냅샷을 프롬프트로 전송, 2개 섹션 × 5개 항목 형식 요청
# * 외부 서비스 실패 시 고정 대체 리포트로 복구 (오류를 사용자에게 전파하지 않음)

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from config import GEMINI_API_KEY, GEMINI_MODEL, GEMINI_BASE_URL, AUDIT_TIMEOUT_S
from constants import AUDIT_SECTION_TITLES, AUDIT_BULLETS_PER_SECTION
from gas_network import GasNetwork

logger = logging.getLogger(__name__)

FALLBACK_REPORT = (
    "Safety & Compliance Audit\n"
    "- Audit engine connection lost.\n"
    "- Verify internet access.\n"
    "- Ensure API key is valid.\n"
    "- Check project node structure.\n"
    "- Retry audit in a moment.\n"
    "\n"
    "Performance & Optimization\n"
    "- No metrics available currently.\n"
    "- System data could not be parsed.\n"
    "- Check for floating components.\n"
    "- Ensure meter is connected.\n"
    "- Refresh design and retry."
)


# ──────────────────────────────────────────────
# ? 프롬프트
# ──────────────────────────────────────────────
def build_audit_prompt(network: GasNetwork) -> str:
    data = network.to_dict()
    return (
        "Analyze this gas piping system layout for a professional engineering audit.\n"
        f"Nodes: {json.dumps(data['nodes'], ensure_ascii=False)}\n"
        f"Edges: {json.dumps(data['edges'], ensure_ascii=False)}\n"
        "\n"
        "STRUCTURE YOUR RESPONSE EXACTLY AS FOLLOWS:\n"
        "1. PROVIDE EXACTLY TWO SECTIONS.\n"
        f'2. SECTION 1 TITLE: "{AUDIT_SECTION_TITLES[0]}"\n'
        f'3. SECTION 2 TITLE: "{AUDIT_SECTION_TITLES[1]}"\n'
        f"4. PROVIDE EXACTLY {AUDIT_BULLETS_PER_SECTION} BULLET POINTS PER SECTION.\n"
        "5. KEEP BULLETS CONCISE AND PROFESSIONAL.\n"
        "\n"
        "DO NOT INCLUDE ANY INTRO OR OUTRO TEXT.\n"
    )


# ──────────────────────────────────────────────
# ? Gemini REST 클라이언트
# ──────────────────────────────────────────────
class GeminiClient:
    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = AUDIT_TIMEOUT_S,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout

    def generate(self, prompt: str) -> str:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": 0.2},
        }

        response = requests.post(
            f"{self.base_url}/models/{self.model}:generateContent",
            headers={"x-goog-api-key": self.api_key},
            json=payload,
            timeout=self.timeout,
        )

        response.raise_for_status()

        data = response.json()
        return data["candidates"][0]["content"]["parts"][0]["text"]


def audit_system(network: GasNetwork, client: Optional[GeminiClient] = None) -> str:
    """
    ! 배관망 감사 리포트 텍스트 반환

    * API 키 없음 / 네트워크 오류 / 응답 형식 오류 / 빈 응답 → FALLBACK_REPORT
    """
    if client is None:
        if not GEMINI_API_KEY:
            logger.warning("GEMINI_API_KEY is not set, using fallback audit report")
            return FALLBACK_REPORT
        client = GeminiClient()

    try:
        text = client.generate(build_audit_prompt(network))
    except (requests.RequestException, KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error(f"Gemini audit error: {exc}", exc_info=True)
        return FALLBACK_REPORT

    if not text or not text.strip():
        logger.warning("Gemini audit returned an empty response")
        return FALLBACK_REPORT
    return text


# ──────────────────────────────────────────────
# ? 리포트 파싱 (화면/문서 표시용)
# ──────────────────────────────────────────────
@dataclass
class AuditSection:
    title: str
    bullets: List[str] = field(default_factory=list)


_SECTION_SPLIT = re.compile(
    "(?=" + "|".join(re.escape(t) for t in AUDIT_SECTION_TITLES) + ")"
)
_BULLET_MARKER = re.compile(r"^[-*|0-9.]+\s*")


def parse_audit_report(text: str) -> List[AuditSection]:
    """
    섹션 제목 기준 분할 → 첫 줄 = 제목, 나머지 = 항목 (최대 5개)

    * 항목 앞의 "-", "*", "1." 등 표식 제거
    """
    sections = []
    for chunk in _SECTION_SPLIT.split(text or ""):
        if not chunk.strip():
            continue
        lines = chunk.strip().split("\n")
        bullets = [
            _BULLET_MARKER.sub("", line.strip())
            for line in lines[1:] if line.strip()
        ][:AUDIT_BULLETS_PER_SECTION]
        sections.append(AuditSection(title=lines[0].strip(), bullets=bullets))
    return sections
