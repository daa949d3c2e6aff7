"""
core/config/loader.py 테스트

ledger.yaml 로드 및 검증 테스트
"""

from pathlib import Path

import pytest

from core.config.loader import (
    ConfigLoadError,
    LedgerConfig,
    StoreConfig,
    load_config,
)
from core.constants import Defaults
from core.types import Environment


class TestLedgerConfig:
    """LedgerConfig 데이터클래스 테스트"""

    def test_defaults(self) -> None:
        """기본값"""
        config = LedgerConfig()

        assert config.environment == Environment.DEVELOPMENT
        assert config.currency_symbol == Defaults.CURRENCY_SYMBOL
        assert config.store.timeout_sec == Defaults.STORE_TIMEOUT_SEC
        assert config.store.db_path is None

    def test_frozen(self) -> None:
        """불변성 확인"""
        config = LedgerConfig()

        with pytest.raises(AttributeError):
            config.currency_symbol = "$"  # type: ignore[misc]


class TestLoadConfig:
    """load_config 테스트"""

    def test_load_valid_file(self, temp_config_file: Path) -> None:
        """정상 파일 로드"""
        config = load_config(temp_config_file)

        assert config.environment == Environment.PRODUCTION
        assert config.currency_symbol == "$"
        assert config.store.timeout_sec == 2.5
        assert config.store.busy_timeout_ms == 1000
        assert config.logging.console_level == "DEBUG"
        assert config.logging.file_level == "WARNING"

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        """파일이 없으면 기본값"""
        config = load_config(tmp_path / "nope.yaml")

        assert config == LedgerConfig()

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        """빈 파일은 기본값"""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == LedgerConfig()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """YAML 문법 오류"""
        path = tmp_path / "broken.yaml"
        path.write_text("store: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="파싱 실패"):
            load_config(path)

    def test_invalid_environment(self, tmp_path: Path) -> None:
        """잘못된 environment"""
        path = tmp_path / "env.yaml"
        path.write_text("environment: staging\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="environment"):
            load_config(path)

    def test_non_positive_timeout(self, tmp_path: Path) -> None:
        """timeout_sec 는 양수"""
        path = tmp_path / "timeout.yaml"
        path.write_text("store:\n  timeout_sec: 0\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="timeout_sec"):
            load_config(path)

    def test_busy_timeout_longer_than_timeout(self, tmp_path: Path) -> None:
        """busy_timeout_ms 는 timeout_sec 이하"""
        path = tmp_path / "busy.yaml"
        path.write_text("store:\n  timeout_sec: 1\n  busy_timeout_ms: 30000\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="busy_timeout_ms"):
            load_config(path)

    def test_non_positive_busy_timeout(self, tmp_path: Path) -> None:
        path = tmp_path / "busy_zero.yaml"
        path.write_text("store:\n  busy_timeout_ms: 0\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="busy_timeout_ms"):
            load_config(path)

    def test_default_busy_timeout_within_timeout(self) -> None:
        """기본값도 같은 제약을 만족"""
        store = StoreConfig()

        assert 0 < store.busy_timeout_ms <= store.timeout_sec * 1000

    def test_invalid_log_level(self, tmp_path: Path) -> None:
        """잘못된 로그 레벨"""
        path = tmp_path / "log.yaml"
        path.write_text("logging:\n  console_level: loud\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="console_level"):
            load_config(path)

    def test_section_must_be_mapping(self, tmp_path: Path) -> None:
        """섹션은 매핑이어야 함"""
        path = tmp_path / "section.yaml"
        path.write_text("store: 5\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="store"):
            load_config(path)
