"""
설정 로더

ledger.yaml 로드 및 원장 설정 생성
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths
from core.types import Environment


@dataclass(frozen=True)
class StoreConfig:
    """저장소 설정

    Attributes:
        timeout_sec: 조회 제한 시간 (초)
        busy_timeout_ms: SQLite busy_timeout (쓰기 잠금 대기, timeout_sec 이하)
        db_path: DB 경로 직접 지정 (None 이면 환경별 기본 경로)
    """

    timeout_sec: float = Defaults.STORE_TIMEOUT_SEC
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS
    db_path: Path | None = None


@dataclass(frozen=True)
class LoggingConfig:
    """로깅 레벨 설정"""

    console_level: str = Defaults.LOG_LEVEL
    file_level: str = Defaults.LOG_LEVEL


@dataclass(frozen=True)
class LedgerConfig:
    """원장 설정 (ledger.yaml 에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    environment: Environment = Environment.DEVELOPMENT
    currency_symbol: str = Defaults.CURRENCY_SYMBOL
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigLoadError(f"ledger.yaml의 '{name}' 섹션은 매핑이어야 합니다")
    return value


def _parse_store(data: dict[str, Any]) -> StoreConfig:
    try:
        timeout_sec = float(data.get("timeout_sec", Defaults.STORE_TIMEOUT_SEC))
        busy_timeout_ms = int(data.get("busy_timeout_ms", Defaults.BUSY_TIMEOUT_MS))
    except (TypeError, ValueError) as e:
        raise ConfigLoadError(f"store 설정 값이 잘못되었습니다: {e}") from e

    if timeout_sec <= 0:
        raise ConfigLoadError(f"store.timeout_sec 는 0보다 커야 합니다: {timeout_sec}")
    if not 0 < busy_timeout_ms <= timeout_sec * 1000:
        raise ConfigLoadError(
            f"store.busy_timeout_ms 는 0보다 크고 timeout_sec 이하여야 합니다: "
            f"{busy_timeout_ms}ms (timeout_sec={timeout_sec})"
        )

    db_path = data.get("db_path")
    return StoreConfig(
        timeout_sec=timeout_sec,
        busy_timeout_ms=busy_timeout_ms,
        db_path=Path(db_path) if db_path else None,
    )


def _parse_logging(data: dict[str, Any]) -> LoggingConfig:
    levels = {}
    for key in ("console_level", "file_level"):
        level = str(data.get(key, Defaults.LOG_LEVEL)).upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigLoadError(f"logging.{key} 값이 잘못되었습니다: {level}")
        levels[key] = level
    return LoggingConfig(**levels)


def load_config(path: Path | None = None) -> LedgerConfig:
    """ledger.yaml 파일 로드

    파일이 없으면 기본값으로 동작 (개발 환경).

    Args:
        path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerConfig 인스턴스

    Raises:
        ConfigLoadError: 형식이 잘못되었거나 값이 유효하지 않은 경우
    """
    if path is None:
        path = Paths.CONFIG_FILE

    if not path.exists():
        return LedgerConfig()

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"ledger.yaml 파싱 실패: {e}") from e

    if data is None:
        return LedgerConfig()
    if not isinstance(data, dict):
        raise ConfigLoadError("ledger.yaml 최상위는 매핑이어야 합니다")

    env_str = data.get("environment", Defaults.ENVIRONMENT)
    try:
        environment = Environment(str(env_str).lower())
    except ValueError as e:
        valid = [env.value for env in Environment]
        raise ConfigLoadError(
            f"유효하지 않은 environment입니다: '{env_str}'. 유효한 값: {valid}"
        ) from e

    currency_symbol = str(data.get("currency_symbol", Defaults.CURRENCY_SYMBOL))

    return LedgerConfig(
        environment=environment,
        currency_symbol=currency_symbol,
        store=_parse_store(_section(data, "store")),
        logging=_parse_logging(_section(data, "logging")),
    )
