# ! 가스배관 설계 도구: 환경 설정 (.env)
# * 비밀값/경로는 환경변수로, 공학 상수는 constants.py 에서 관리

import os

from dotenv import load_dotenv

# 프로젝트 루트의 .env 로드
load_dotenv()

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", os.getenv("API_KEY", ""))
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")
GEMINI_BASE_URL = os.getenv(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
AUDIT_TIMEOUT_S = float(os.getenv("AUDIT_TIMEOUT_S", "60"))

RECENTS_PATH = os.getenv(
    "PROFLEX_RECENTS_PATH",
    os.path.join(os.path.expanduser("~"), ".proflex_draw", "recents.json"),
)
