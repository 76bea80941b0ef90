"""
공고 통합(Reconciler)

여러 소스의 Notice 목록을 합쳐 중복을 제거하고, 마감 구간으로 거른 뒤
결정적인 순서로 정렬합니다.

1. 평탄화 (도착 순서 유지)
2. 정규화 URL 기준 중복 제거 (같은 소스의 페이지네이션 반복)
3. 소스 간 키(제목|시작|종료) 기준 중복 제거
4. (선택) 마감 구간 필터
5. 정렬 (UPCOMING 또는 RECENT)
"""

from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from notice_aggregator.models.notice import Kind, Notice
from notice_aggregator.utils.logger import get_logger

logger = get_logger(__name__)

# 페이지네이션/추적 용도로만 쓰이는 쿼리 파라미터
STRIPPED_PARAMS = {"gp", "page", "offset", "limit"}
STRIPPED_PREFIXES = ("utm_",)


class SortOrder(str, Enum):
    """정렬 방식"""
    UPCOMING = "upcoming"  # 시작일 오름차순 (날짜 있는 항목 먼저)
    RECENT = "recent"      # 시작/마감일 내림차순 (통합 피드)


def normalize_url(url: str) -> str:
    """
    중복 판단용 URL 정규화

    페이지네이션/추적 파라미터와 fragment를 제거합니다. 나머지 파라미터 순서는 유지합니다.

    Examples:
        >>> normalize_url("https://www.wevity.com/?c=find&ix=1&gp=2#top")
        'https://www.wevity.com/?c=find&ix=1'
    """
    parts = urlsplit(url.strip())
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key.lower() not in STRIPPED_PARAMS
        and not key.lower().startswith(STRIPPED_PREFIXES)
    ]
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), ""))


def cross_source_key(notice: Notice) -> str:
    """
    소스 간 중복 키: 소문자 + 공백 정리한 제목 | 시작 | 종료

    Examples:
        >>> n = Notice(source="Dacon", kind="공모전", title="  AI  Challenge ",
        ...            url="u", start="2025-03-01", end="2025-03-31")
        >>> cross_source_key(n)
        'ai challenge|2025-03-01|2025-03-31'
    """
    title = " ".join(notice.title.lower().split())
    return f"{title}|{notice.start or ''}|{notice.end or ''}"


def _kind_rank(kind: Kind) -> int:
    return 0 if kind == Kind.CONTEST else 1


def sort_upcoming(notices: Iterable[Notice]) -> List[Notice]:
    """
    UPCOMING 정렬

    시작일 있는 항목 먼저, 시작일 오름차순, 마감일 오름차순(미상 먼저), 제목 순.
    """
    return sorted(
        notices,
        key=lambda n: (
            n.start_date is None,
            n.start_date or date.min,
            n.end_date is not None,
            n.end_date or date.min,
            n.title,
        ),
    )


def sort_recent(notices: Iterable[Notice]) -> List[Notice]:
    """
    RECENT 정렬

    시작일(없으면 마감일) 내림차순, 날짜 없는 항목은 마지막,
    같은 날짜에서는 공모전 → 대외활동, 그다음 제목 순.
    """
    # 안정 정렬 2단계: 보조 키 오름차순 후 날짜 내림차순
    by_tiebreak = sorted(notices, key=lambda n: (_kind_rank(n.kind), n.title))
    return sorted(
        by_tiebreak,
        key=lambda n: (n.sort_date is not None, n.sort_date or date.min),
        reverse=True,
    )


class Reconciler:
    """
    공고 통합기

    Attributes:
        order: 정렬 방식
        deadline_days: 지정 시 마감 구간 필터 적용 (None이면 필터 없음)
        today: 기준일 (None이면 오늘)
    """

    def __init__(
        self,
        order: SortOrder = SortOrder.UPCOMING,
        deadline_days: Optional[int] = None,
        today: Optional[date] = None,
    ):
        self.order = order
        self.deadline_days = deadline_days
        self.today = today

    def merge(self, collections: Sequence[Sequence[Notice]]) -> List[Notice]:
        """
        여러 소스의 목록 통합

        Args:
            collections: 소스별 Notice 목록 (빈 목록 허용)

        Returns:
            중복 제거 및 정렬된 Notice 목록
        """
        flattened = [notice for collection in collections for notice in collection]

        seen_urls = set()
        by_url: List[Notice] = []
        for notice in flattened:
            key = normalize_url(notice.url)
            if key not in seen_urls:
                seen_urls.add(key)
                by_url.append(notice)

        seen_keys = set()
        unique: List[Notice] = []
        for notice in by_url:
            key = cross_source_key(notice)
            if key not in seen_keys:
                seen_keys.add(key)
                unique.append(notice)

        if self.deadline_days is not None:
            today = self.today or date.today()
            unique = [n for n in unique if n.is_within_deadline(self.deadline_days, today)]

        logger.debug(
            f"통합: 입력 {len(flattened)}건 → URL 중복 제거 {len(by_url)}건 → "
            f"교차 중복 제거 후 {len(unique)}건"
        )

        if self.order == SortOrder.RECENT:
            return sort_recent(unique)
        return sort_upcoming(unique)
