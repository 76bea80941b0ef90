"""
소스 어댑터 추상 클래스

BudgetedListCrawler가 소스별로 요구하는 인터페이스(SourceAdapter)와
하나의 소스 전체 수집을 나타내는 인터페이스(NoticeSource)를 정의합니다.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from notice_aggregator.extraction.extractor import FieldExtractor
from notice_aggregator.models.crawl import DetailPayload, ExtractionResult, RawEntry
from notice_aggregator.models.notice import Notice
from notice_aggregator.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FeedChannel:
    """RSS 채널 메타데이터"""

    title: str
    link: str
    description: str


class SourceAdapter(ABC):
    """
    목록/상세 어댑터 기본 클래스

    하위 클래스는 list_page, fetch_detail, to_notice를 구현합니다.
    resolve_detail은 기본적으로 상세를 가져와 추출한 뒤
    목록 힌트를 우선하고 비어 있는 필드만 상세 값으로 채웁니다.

    Attributes:
        extractor: 필드 추출기
    """

    def __init__(self, extractor: Optional[FieldExtractor] = None):
        self.extractor = extractor or FieldExtractor()
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    async def list_page(self, page: int) -> Optional[List[RawEntry]]:
        """
        목록 페이지 조회

        Returns:
            후보 목록, 빈 목록이면 더 이상 항목 없음, None이면 페이지 실패

        Raises:
            MalformedPayloadException: 목록 응답 형식이 예상과 다른 경우
        """

    def accepts(self, entry: RawEntry) -> bool:
        """상세 요청 전 1차 필터 (기본: 모두 통과)"""
        return True

    @abstractmethod
    async def fetch_detail(self, entry: RawEntry) -> Optional[DetailPayload]:
        """상세 페이로드 조회 (실패 시 None)"""

    async def resolve_detail(self, entry: RawEntry) -> Optional[ExtractionResult]:
        """
        상세 해석

        Returns:
            추출 결과, 상세를 가져오지 못했으면 None
        """
        payload = await self.fetch_detail(entry)
        if payload is None:
            return None
        end_hint = entry.hint("end")
        return self.hint_result(entry).or_else(self.extractor.extract(payload, end_hint))

    @staticmethod
    def hint_result(entry: RawEntry) -> ExtractionResult:
        """목록 힌트만으로 만든 추출 결과"""
        return ExtractionResult(
            start=entry.hint("start"),
            end=entry.hint("end"),
            organizer=entry.hint("organizer"),
        )

    @abstractmethod
    def to_notice(self, entry: RawEntry, extraction: ExtractionResult) -> Notice:
        """
        Notice 생성

        Raises:
            InvalidNoticeException: 제목/URL이 비어 있는 경우
        """


class NoticeSource(ABC):
    """
    소스 전체 수집 인터페이스

    Attributes:
        name: 소스 이름 (출력 경로/메트릭 라벨)
        channel: 소스별 RSS 채널 메타데이터
        timeout: 소스 전체 타임아웃 (초)
    """

    name: str = ""
    channel: FeedChannel
    timeout: float = 25.0

    @abstractmethod
    async def collect(self) -> List[Notice]:
        """소스의 모든 Notice 수집"""
