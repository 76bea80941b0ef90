"""
크롤링 실행 모델

목록 후보(RawEntry), 상세 페이로드, 추출 결과, 시간 예산, 크롤링 통계를 정의합니다.
모두 한 번의 크롤링 호출 안에서만 사용되며 실행 간에 유지되지 않습니다.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from bs4 import BeautifulSoup
from pydantic import BaseModel, Field


@dataclass
class RawEntry:
    """
    목록 페이지의 후보 항목

    Attributes:
        key: 중복 판단용 식별 키 (상세 URL 또는 고유 ID)
        title: 제목
        detail_ref: 상세 위치 (URL 또는 소스별 ID)
        hints: 목록에서 이미 얻은 값 (start, end, organizer, field, kind, category ...)
    """

    key: str
    title: str
    detail_ref: str
    hints: Dict[str, Any] = field(default_factory=dict)

    def hint(self, name: str) -> Optional[str]:
        """공백이 아닌 문자열 힌트만 반환"""
        value = self.hints.get(name)
        if value is None:
            return None
        text = str(value).strip()
        return text or None


@dataclass
class StructuredPayload:
    """JSON 계열 트리"""

    data: Any


@dataclass
class DocumentPayload:
    """파싱된 HTML 문서와 인라인 스크립트 텍스트"""

    document: BeautifulSoup
    scripts: str = ""

    @classmethod
    def from_html(cls, html: str) -> "DocumentPayload":
        document = BeautifulSoup(html, "html.parser")
        scripts = "\n".join(tag.get_text() for tag in document.find_all("script"))
        return cls(document=document, scripts=scripts)


@dataclass
class TextPayload:
    """보이는 텍스트만 있는 페이로드"""

    text: str


DetailPayload = Union[StructuredPayload, DocumentPayload, TextPayload]


@dataclass(frozen=True)
class ExtractionResult:
    """
    필드 추출 결과

    None은 "어떤 전략으로도 찾지 못함"을 뜻하며 오류가 아닙니다.
    """

    start: Optional[str] = None
    end: Optional[str] = None
    organizer: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None and self.organizer is None

    def or_else(self, other: Optional["ExtractionResult"]) -> "ExtractionResult":
        """
        필드 단위 대체 결합

        자신의 값이 우선이며 비어 있는 필드만 other에서 채웁니다.

        Examples:
            >>> ExtractionResult(end="2025-03-31").or_else(
            ...     ExtractionResult(start="2025-03-01", end="2025-04-01")
            ... )
            ExtractionResult(start='2025-03-01', end='2025-03-31', organizer=None)
        """
        if other is None:
            return self
        return ExtractionResult(
            start=self.start if self.start is not None else other.start,
            end=self.end if self.end is not None else other.end,
            organizer=self.organizer if self.organizer is not None else other.organizer,
        )


@dataclass(frozen=True)
class CrawlBudget:
    """
    한 번의 크롤링 호출에 대한 시간/페이지/동시성 예산

    deadline은 clock 기준 절대 시각입니다. 생성 후 읽기 전용입니다.
    """

    deadline: float
    max_pages: int
    max_concurrency: int
    clock: Callable[[], float] = time.monotonic

    @classmethod
    def start(
        cls,
        seconds: float,
        max_pages: int,
        max_concurrency: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> "CrawlBudget":
        """지금부터 seconds 뒤를 마감으로 하는 예산 생성"""
        return cls(
            deadline=clock() + seconds,
            max_pages=max_pages,
            max_concurrency=max(1, max_concurrency),
            clock=clock,
        )

    def expired(self) -> bool:
        return self.clock() >= self.deadline

    def remaining(self) -> float:
        return max(0.0, self.deadline - self.clock())


class CrawlStatistics(BaseModel):
    """크롤링 통계"""

    # 페이지
    pages_fetched: int = Field(default=0, description="가져온 목록 페이지 수")
    pages_failed: int = Field(default=0, description="실패한 목록 페이지 수")

    # 후보
    entries_seen: int = Field(default=0, description="목록에서 본 후보 수")
    skipped_duplicates: int = Field(default=0, description="중복 스킵 건수")
    filtered_out: int = Field(default=0, description="1차 필터에서 제외된 건수")

    # 상세
    details_fetched: int = Field(default=0, description="상세 처리 성공 건수")
    details_failed: int = Field(default=0, description="상세 처리 실패 건수")
    skipped_by_budget: int = Field(default=0, description="시간 예산 초과로 시작하지 못한 건수")

    # 결과
    dropped_by_window: int = Field(default=0, description="마감 구간 밖이라 제외된 건수")
    kept: int = Field(default=0, description="최종 유지 건수")

    @property
    def success_rate(self) -> float:
        """상세 처리 성공률"""
        total = self.details_fetched + self.details_failed
        if total == 0:
            return 100.0
        return (self.details_fetched / total) * 100
