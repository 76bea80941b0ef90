"""
수집기 설정 관리 모듈

환경 변수, 설정 파일, CLI 옵션을 통합 관리합니다.
python-dotenv를 통한 .env 파일 지원을 포함합니다.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from notice_aggregator.exceptions import ConfigurationException


BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/127.0.0.0 Safari/537.36"
)


class FetchConfig(BaseModel):
    """HTTP 요청 및 재시도 설정"""

    max_attempts: int = Field(default=3, description="요청당 최대 시도 횟수", ge=1)
    base_delay: float = Field(default=0.3, description="첫 재시도 대기 시간 (초)")
    max_delay: float = Field(default=1.5, description="재시도 대기 시간 상한 (초)")
    attempt_timeout: float = Field(
        default=2.2, description="시도 1회 타임아웃 (초, 요청 타임아웃보다 짧게)"
    )
    request_timeout: float = Field(default=3.0, description="요청 전체 타임아웃 (초)")
    connect_timeout: float = Field(default=4.0, description="연결 타임아웃 (초)")
    user_agent: str = Field(default=BROWSER_USER_AGENT, description="User-Agent 문자열")

    @model_validator(mode="after")
    def validate_timeouts(self) -> "FetchConfig":
        """시도 타임아웃이 재시도 예산을 잡아먹지 않도록 검사"""
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        return self


class WevityConfig(BaseModel):
    """위비티 수집 설정"""

    base_url: str = Field(default="https://www.wevity.com", description="위비티 기본 URL")
    contest_urls: list[str] = Field(
        default_factory=lambda: [
            "https://www.wevity.com/?c=find&s=1&gub=1&cidx=20",
            "https://www.wevity.com/?c=find&s=1&gub=1&cidx=21",
        ],
        description="공모전 카테고리 목록 URL",
    )
    activity_url: str = Field(
        default="https://www.wevity.com/?c=active&s=1", description="대외활동 목록 URL"
    )
    budget_seconds: float = Field(default=9.0, description="카테고리당 시간 예산 (초)")
    max_pages: int = Field(default=3, description="카테고리당 최대 페이지 수", ge=1)
    max_concurrency: int = Field(default=4, description="상세 페이지 동시 요청 수", ge=1)
    page_delay: float = Field(default=0.15, description="페이지 간 딜레이 (초)")
    failure_delay: float = Field(default=0.2, description="목록 실패 후 대기 (초)")
    timeout: float = Field(default=25.0, description="소스 전체 타임아웃 (초)")


class CampuspickConfig(BaseModel):
    """캠퍼스픽 수집 설정"""

    web_base: str = Field(default="https://www.campuspick.com/", description="웹 기본 URL")
    api_base: str = Field(default="https://api2.campuspick.com", description="API 기본 URL")
    activity_api: str = Field(
        default="https://api2.campuspick.com/find/activity/list",
        description="대외활동 목록 API",
    )
    contest_api: str = Field(
        default="https://api2.campuspick.com/find/activity/list",
        description="공모전 목록 API",
    )
    activity_method: Literal["GET", "POST"] = Field(default="POST")
    contest_method: Literal["GET", "POST"] = Field(default="POST")
    activity_body: str = Field(default="target=2&limit={limit}&offset={offset}")
    contest_body: str = Field(default="target=1&limit={limit}&offset={offset}&category=108")
    contest_category: str = Field(default="108", description="공모전 카테고리 코드 (IT/SW/게임)")
    limit: int = Field(default=100, description="페이지당 개수", ge=1)
    pages: int = Field(default=5, description="페이지 수", ge=1)
    delay: float = Field(default=0.3, description="페이지 간 딜레이 (초)")
    budget_seconds: float = Field(default=20.0, description="종류별 시간 예산 (초)")
    max_concurrency: int = Field(default=4, description="상세 동시 요청 수", ge=1)
    timeout: float = Field(default=25.0, description="소스 전체 타임아웃 (초)")
    user_agent: str = Field(default="campuspick-filter/0.6.0 (+contact@example.com)")


class DaconConfig(BaseModel):
    """데이콘 수집 설정"""

    list_url: str = Field(
        default="https://app.dacon.io/api/v1/competition/list", description="대회 목록 API"
    )
    detail_base: str = Field(
        default="https://dacon.io/competitions/official/", description="대회 상세 URL 접두사"
    )
    page_range: int = Field(default=30, description="요청당 항목 수 (range)", ge=1)
    max_offset: int = Field(default=10, description="최대 offset (0부터)", ge=0)
    delay: float = Field(default=0.4, description="페이지 간 딜레이 (초)")
    request_timeout: float = Field(default=10.0, description="요청 타임아웃 (초)")
    max_retries: int = Field(default=2, description="urllib3 재시도 횟수")
    timeout: float = Field(default=25.0, description="소스 전체 타임아웃 (초)")
    user_agent: str = Field(default="dacon-api-filter/2.0 (+you@example.com)")


class OutputConfig(BaseModel):
    """피드 출력 설정"""

    rss_dir: Path = Field(default=Path("etc-rss"), description="RSS 출력 디렉토리")
    wevity_file: Optional[Path] = Field(default=None, description="위비티 RSS 경로")
    campuspick_file: Optional[Path] = Field(default=None, description="캠퍼스픽 RSS 경로")
    dacon_file: Optional[Path] = Field(default=None, description="데이콘 RSS 경로")
    merged_file: Optional[Path] = Field(default=None, description="통합 RSS 경로")
    preview_n: int = Field(default=30, description="콘솔 프리뷰 항목 수", ge=0)

    merged_title: str = Field(default="통합 공모전·대외활동 RSS")
    merged_link: str = Field(default="https://wuisp-rust-dev.github.io/etc-crawler")
    merged_description: str = Field(default="모든 소식 통합")

    def path_for(self, name: str) -> Path:
        """소스 이름(wevity/campuspick/dacon/merged)에 해당하는 출력 경로"""
        defaults = {
            "wevity": "wevity_rss.xml",
            "campuspick": "campus_pick_rss.xml",
            "dacon": "dacon_rss.xml",
            "merged": "merged_rss.xml",
        }
        if name not in defaults:
            raise ConfigurationException(f"Unknown feed name: {name}")
        override = getattr(self, f"{name}_file")
        return override or self.rss_dir / defaults[name]


class SchedulerConfig(BaseModel):
    """스케줄러 설정"""

    enabled: bool = Field(default=False, description="스케줄러 활성화 여부")
    mode: Literal["interval", "cron"] = Field(default="interval", description="실행 모드")
    interval_minutes: int = Field(default=60, description="interval 모드: 실행 간격 (분)")
    cron_expression: str = Field(
        default="0 */6 * * *", description="cron 모드: cron 표현식"
    )

    @model_validator(mode="after")
    def validate_cron_expression(self) -> "SchedulerConfig":
        """cron 표현식 유효성 검사"""
        if self.mode == "cron":
            parts = self.cron_expression.split()
            if len(parts) < 5:
                raise ValueError(
                    f"Invalid cron expression: {self.cron_expression}. "
                    "Expected format: 'minute hour day month weekday'"
                )
        return self


class LoggingConfig(BaseModel):
    """로깅 설정"""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="로그 레벨"
    )
    file: Optional[Path] = Field(
        default=Path("logs/aggregator.log"), description="로그 파일 경로"
    )
    rotation: Literal["size", "time", "none"] = Field(
        default="size", description="로그 회전 방식"
    )
    max_bytes: int = Field(default=10 * 1024 * 1024, description="회전 시 최대 파일 크기")
    backup_count: int = Field(default=5, description="보관할 백업 파일 수")


class MonitoringConfig(BaseModel):
    """
    모니터링 설정

    Prometheus 메트릭 및 구조화된 로깅(ELK 스택)을 위한 설정입니다.
    """

    prometheus_enabled: bool = Field(
        default=False, description="Prometheus 메트릭 서버 활성화"
    )
    prometheus_port: int = Field(
        default=8000, description="Prometheus 메트릭 서버 포트", ge=1024, le=65535
    )
    metrics_namespace: str = Field(
        default="notice_aggregator", description="메트릭 네임스페이스 (접두사)"
    )

    json_logging: bool = Field(
        default=False, description="JSON 형식 로깅 활성화 (ELK 스택 통합용)"
    )
    log_extra_fields: Optional[dict[str, str]] = Field(
        default=None,
        description="로그에 추가할 필드 (예: {'service': 'notice_aggregator'})",
    )


class AggregatorConfig(BaseModel):
    """
    수집기 통합 설정

    모든 설정을 하나의 객체로 관리합니다.
    환경 변수, 설정 파일, CLI 옵션 순서로 우선순위가 적용됩니다.
    """

    # 마감 필터: 오늘 ~ 오늘 + deadline_days
    deadline_days: int = Field(default=20, description="마감까지 남은 일수 상한", ge=0)

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    wevity: WevityConfig = Field(default_factory=WevityConfig)
    campuspick: CampuspickConfig = Field(default_factory=CampuspickConfig)
    dacon: DaconConfig = Field(default_factory=DaconConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    run_id: str = Field(
        default_factory=lambda: datetime.now().strftime("%Y%m%d_%H%M%S"),
        description="실행 식별자",
    )

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "AggregatorConfig":
        """
        환경 변수에서 설정 로드

        Args:
            env_file: .env 파일 경로 (None이면 자동 탐색)

        Returns:
            AggregatorConfig 인스턴스

        Raises:
            ConfigurationException: 숫자 변수에 숫자가 아닌 값이 들어간 경우
        """
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        config = cls()
        rss_dir = Path(os.getenv("RSS_DIR", str(config.output.rss_dir)))

        return cls(
            deadline_days=_env_int("DEADLINE_DAYS", config.deadline_days),
            wevity=config.wevity.model_copy(update={
                "timeout": _env_float("TO_WEVITY", config.wevity.timeout),
                "budget_seconds": _env_float("WEVITY_BUDGET_SECS", config.wevity.budget_seconds),
                "max_pages": _env_int("WEVITY_MAX_PAGES", config.wevity.max_pages),
                "max_concurrency": _env_int("WEVITY_MAX_CONC", config.wevity.max_concurrency),
            }),
            campuspick=config.campuspick.model_copy(update={
                "timeout": _env_float("TO_CAMPUS", config.campuspick.timeout),
            }),
            dacon=config.dacon.model_copy(update={
                "timeout": _env_float("TO_DACON", config.dacon.timeout),
            }),
            output=OutputConfig(
                rss_dir=rss_dir,
                wevity_file=_env_path("RSS_WEVITY"),
                campuspick_file=_env_path("RSS_CAMPUS"),
                dacon_file=_env_path("RSS_DACON"),
                merged_file=_env_path("RSS_MERGED"),
                preview_n=_env_int("PREVIEW_N", config.output.preview_n),
            ),
            logging=LoggingConfig(
                level=os.getenv("AGGREGATOR_LOG_LEVEL", "INFO"),  # type: ignore
            ),
            monitoring=MonitoringConfig(
                json_logging=os.getenv("AGGREGATOR_JSON_LOGS", "false").lower() == "true",
            ),
        )

    @classmethod
    def from_yaml(cls, config_file: Path) -> "AggregatorConfig":
        """
        YAML 설정 파일에서 로드

        Args:
            config_file: 설정 파일 경로

        Returns:
            AggregatorConfig 인스턴스
        """
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def ensure_directories(self) -> None:
        """필요한 디렉토리 생성"""
        self.output.rss_dir.mkdir(parents=True, exist_ok=True)
        if self.logging.file:
            self.logging.file.parent.mkdir(parents=True, exist_ok=True)

    def to_summary(self) -> str:
        """설정 요약 문자열 생성"""
        parts = [
            f"deadline_days={self.deadline_days}",
            f"timeouts=wevity:{self.wevity.timeout:g}s"
            f"/campuspick:{self.campuspick.timeout:g}s"
            f"/dacon:{self.dacon.timeout:g}s",
            f"rss_dir={self.output.rss_dir}",
        ]
        return ", ".join(parts)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationException(f"Invalid integer env value: {name}={raw}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationException(f"Invalid number env value: {name}={raw}")


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    return Path(raw) if raw else None
