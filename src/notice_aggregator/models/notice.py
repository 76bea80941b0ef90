"""
공고(Notice) 데이터 모델

모든 소스의 공모전/대외활동 항목을 하나의 스키마로 정규화합니다.
Domain-Driven Design 원칙에 따라 도메인 행동을 포함합니다.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from notice_aggregator.exceptions import InvalidNoticeException
from notice_aggregator.extraction.dates import normalize_date, parse_iso_date


class Source(str, Enum):
    """수집 소스"""
    WEVITY = "Wevity"
    CAMPUSPICK = "Campuspick"
    DACON = "Dacon"


class Kind(str, Enum):
    """공고 종류"""
    CONTEST = "공모전"
    ACTIVITY = "대외활동"


def infer_kind_from_label(label: Optional[str], default: Kind) -> Kind:
    """
    라벨 문자열에서 공고 종류 추론

    Examples:
        >>> infer_kind_from_label("IT 대외활동", Kind.CONTEST)
        <Kind.ACTIVITY: '대외활동'>
        >>> infer_kind_from_label("Competition", Kind.ACTIVITY)
        <Kind.CONTEST: '공모전'>
    """
    text = (label or "").strip().lower()
    if "활동" in text or "activity" in text:
        return Kind.ACTIVITY
    if "공모" in text or "contest" in text or "competition" in text:
        return Kind.CONTEST
    return default


class Notice(BaseModel):
    """
    정규화된 공고

    생성 후 변경할 수 없습니다(frozen).
    제목과 URL은 앞뒤 공백 제거 후 비어 있으면 안 되며,
    날짜는 YYYY-MM-DD로 정규화되고 실제 날짜가 아니면 None이 됩니다.
    """

    model_config = ConfigDict(frozen=True)

    source: Source = Field(..., description="수집 소스")
    kind: Kind = Field(..., description="공모전/대외활동")
    title: str = Field(..., description="제목")
    url: str = Field(..., description="상세 URL")

    start: Optional[str] = Field(default=None, description="시작일 (YYYY-MM-DD)")
    end: Optional[str] = Field(default=None, description="마감일 (YYYY-MM-DD)")
    organizer: Optional[str] = Field(default=None, description="주최/주관")
    field: Optional[str] = Field(default=None, description="분야")

    # === Validators ===

    @field_validator("title", "url", mode="before")
    @classmethod
    def require_text(cls, v, info):
        """제목/URL 공백 제거 및 필수 검사"""
        text = str(v).strip() if v is not None else ""
        if not text:
            raise InvalidNoticeException(
                f"{info.field_name} must not be empty",
                field_name=info.field_name,
                invalid_value=v,
            )
        return text

    @field_validator("start", "end", mode="before")
    @classmethod
    def canonical_date(cls, v):
        """날짜를 YYYY-MM-DD로 정규화 (달력에 없는 날짜는 None)"""
        if v is None:
            return None
        return normalize_date(str(v))

    @field_validator("organizer", "field", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    # === Domain Behaviors ===

    @property
    def start_date(self) -> Optional[date]:
        return parse_iso_date(self.start)

    @property
    def end_date(self) -> Optional[date]:
        return parse_iso_date(self.end)

    @property
    def sort_date(self) -> Optional[date]:
        """정렬 기준 날짜 (시작일 우선, 없으면 마감일)"""
        return self.start_date or self.end_date

    @property
    def kind_label(self) -> str:
        return self.kind.value

    def days_until_end(self, today: Optional[date] = None) -> Optional[int]:
        """
        마감까지 남은 일수

        Returns:
            남은 일수 (지났으면 음수), 마감일이 없으면 None
        """
        end = self.end_date
        if end is None:
            return None
        return (end - (today or date.today())).days

    def is_within_deadline(self, deadline_days: int, today: Optional[date] = None) -> bool:
        """
        마감일이 [오늘, 오늘 + deadline_days] 안에 있는지 확인

        마감일을 알 수 없으면 구간 안이라고 단정할 수 없으므로 False입니다.

        Examples:
            >>> n = Notice(source=Source.DACON, kind=Kind.CONTEST,
            ...            title="t", url="u", end="2025-03-10")
            >>> n.is_within_deadline(20, today=date(2025, 3, 10))
            True
        """
        remaining = self.days_until_end(today)
        if remaining is None:
            return False
        return 0 <= remaining <= deadline_days

    def __str__(self) -> str:
        """콘솔 프리뷰용 한 줄 표시"""
        line = (
            f"[{self.source.value}/{self.kind_label}] {self.title} | "
            f"{self.organizer or '-'} | {self.start or '-'} ~ {self.end or '-'} | {self.url}"
        )
        if self.field:
            line += f" | {self.field}"
        return line
