"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    ENVIRONMENT: str = "development"
    CURRENCY_SYMBOL: str = "₪"

    # 조회 제한 시간 (초). 초과 시 store_unavailable 로 보고
    STORE_TIMEOUT_SEC: float = 10.0
    # 쓰기 잠금 대기 시간 (밀리초). 쓰기는 취소하지 않고 이 값으로만 제한
    BUSY_TIMEOUT_MS: int = 5000

    LOG_LEVEL: str = "INFO"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    CONFIG_FILE: Path = CONFIG_DIR / "ledger.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "ledger_prod.db"
    DEV_DB: Path = DATA_DIR / "ledger_dev.db"


class TableNames:
    """DB 테이블 이름"""

    CUSTOMER_TRANSACTIONS: str = "customer_transactions"


# 금액 0 (Decimal 비교용)
ZERO: Decimal = Decimal("0")
