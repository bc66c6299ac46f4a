from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

try:
    from dotenv import load_dotenv  # type: ignore
except Exception:  # pragma: no cover
    load_dotenv = None


@dataclass(frozen=True)
class Settings:
    n_passes: float
    shuffle: bool
    seed: int | None
    backend: str
    log_level: str


def parse_bool(v: Any, default: bool, *, strict: bool = False) -> bool:
    """문자열/숫자를 bool로. 알 수 없는 값은 default, strict면 ValueError."""
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    s = str(v).strip().lower()
    if s in {"1", "true", "t", "yes", "y"}:
        return True
    if s in {"0", "false", "f", "no", "n"}:
        return False
    if strict:
        raise ValueError(f"not a boolean value: {v!r}")
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def get_settings() -> Settings:
    # 로컬 개발에서는 .env가 있으면 읽고, 그 외에는 환경변수만으로 동작
    if load_dotenv is not None:
        load_dotenv(override=False)

    return Settings(
        n_passes=_env_float("TRAINFEED_N_PASSES", 1.0),
        shuffle=parse_bool(os.getenv("TRAINFEED_SHUFFLE"), False),
        seed=_env_int("TRAINFEED_SEED"),
        backend=(os.getenv("TRAINFEED_BACKEND") or "dense").strip().lower(),
        log_level=(os.getenv("TRAINFEED_LOG_LEVEL") or "WARNING").strip().upper(),
    )


def configure_logging(level: str | int | None = None) -> None:
    """trainfeed 로거 레벨 설정. level이 없으면 TRAINFEED_LOG_LEVEL을 따른다."""
    if level is None:
        level = get_settings().log_level

    logger = logging.getLogger("trainfeed")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
