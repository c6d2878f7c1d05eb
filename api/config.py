import os
from dotenv import load_dotenv

load_dotenv()


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


QLOO_API_KEY = os.getenv("QLOO_API_KEY", "")
QLOO_BASE_URL = os.getenv("QLOO_BASE_URL", "https://hackathon.api.qloo.com/v2/insights")
QLOO_TIMEOUT = _float_from_env("QLOO_TIMEOUT", 10.0)
QLOO_MAX_CONCURRENCY = max(1, _int_from_env("QLOO_MAX_CONCURRENCY", 4))
PEER_SAMPLE_SIZE = max(0, _int_from_env("PEER_SAMPLE_SIZE", 5))
# Pins the shuffle/jitter generator when set (useful for reproducing a response).
_seed = os.getenv("RECOMMENDATION_SEED", "").strip()
RECOMMENDATION_SEED = int(_seed) if _seed.isdigit() else None
