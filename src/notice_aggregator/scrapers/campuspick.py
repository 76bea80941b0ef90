"""
캠퍼스픽(Campuspick) 어댑터

form-encoded POST 목록 API(offset/limit 페이지네이션)를 사용합니다.
대외활동은 제목 키워드, 공모전은 카테고리 코드(108: IT/SW/게임)로 1차 필터링하고,
목록에 없는 기간/주최는 HTML 상세 페이지 또는 JSON 상세 API에서 보완합니다.
"""

import asyncio
import re
from datetime import date
from typing import Any, Dict, List, Optional

from notice_aggregator.config import CampuspickConfig, FetchConfig
from notice_aggregator.crawler import BudgetedListCrawler, CrawlSettings
from notice_aggregator.exceptions import MalformedPayloadException
from notice_aggregator.extraction.dates import canonicalize_date
from notice_aggregator.extraction.organizer import first_organizer
from notice_aggregator.models.crawl import (
    DetailPayload,
    DocumentPayload,
    ExtractionResult,
    RawEntry,
    StructuredPayload,
)
from notice_aggregator.models.notice import Kind, Notice, Source, infer_kind_from_label
from notice_aggregator.scrapers.base import FeedChannel, NoticeSource, SourceAdapter
from notice_aggregator.utils.fetcher import ResilientFetcher, create_session
from notice_aggregator.utils.logger import get_logger
from notice_aggregator.utils.metrics import AggregatorMetrics
from notice_aggregator.utils.parser import ParserUtils

logger = get_logger(__name__)

ARRAY_KEYS = ("items", "list", "data", "results", "content", "rows", "posts", "payload")
ID_KEYS = ("id", "idx", "activityId", "contestId", "postId", "aid", "cid")
TITLE_KEYS = ("title", "name", "subject")
CATEGORY_KEYS = ("category", "categoryId", "category_idx", "categoryId1", "category1", "categories")

ACTIVITY_KEYWORDS = (
    "IT", "SW", "코딩", "소프트웨어", "컴퓨터", "보안", "정보보호", "KISIA",
    "개인정보", "개발자", "AI", "엔지니어", "부트캠프",
)

JSON_DETAIL_PATHS = (
    "/find/{kind}/view?id={id}",
    "/{kind}/view?id={id}",
    "/find/{kind}/detail?id={id}",
    "/{kind}/detail?id={id}",
)


def matches_category(item: Any, code: str) -> bool:
    """
    카테고리 필드 중 하나가 code와 일치하는지 확인

    정수, 문자열("108", "101,108"), 배열 모두 지원합니다.

    Examples:
        >>> matches_category({"categoryId": 108}, "108")
        True
        >>> matches_category({"categories": "101, 108"}, "108")
        True
    """
    if not isinstance(item, dict):
        return False
    for key in CATEGORY_KEYS:
        value = item.get(key)
        if value is None or isinstance(value, bool):
            continue
        if isinstance(value, int) and str(value) == code:
            return True
        if isinstance(value, str):
            if value.strip() == code:
                return True
            if code in re.split(r"[\s\W_]+", value):
                return True
        if isinstance(value, list):
            if any(str(v).strip() == code for v in value if not isinstance(v, (dict, list))):
                return True
    return False


class CampuspickKindAdapter(SourceAdapter):
    """
    캠퍼스픽 목록 한 종류(activity/contest)에 대한 어댑터

    Attributes:
        kind_path: "activity" 또는 "contest" (상세 URL 경로)
        api: 목록 API URL
        method: GET/POST
        body_template: {limit}, {offset} 치환 템플릿
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        config: CampuspickConfig,
        kind_path: str,
    ):
        super().__init__()
        self.fetcher = fetcher
        self.config = config
        self.kind_path = kind_path
        if kind_path == "activity":
            self.api = config.activity_api
            self.method = config.activity_method
            self.body_template = config.activity_body
        else:
            self.api = config.contest_api
            self.method = config.contest_method
            self.body_template = config.contest_body

    def detail_url(self, item_id: str) -> str:
        return f"{self.config.web_base}{self.kind_path}/view?id={item_id}"

    def _list_request(self, page: int) -> Dict[str, Any]:
        offset = (page - 1) * self.config.limit
        body = (
            self.body_template
            .replace("{limit}", str(self.config.limit))
            .replace("{offset}", str(offset))
        )
        headers = {
            "Accept": "application/json, text/plain, */*",
            "Origin": self.config.web_base,
        }
        if self.method.upper() == "POST":
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            return {"url": self.api, "method": "POST", "data": body, "headers": headers}

        sep = "&" if "?" in self.api else "?"
        return {"url": f"{self.api}{sep}{body}", "method": "GET", "data": None, "headers": headers}

    async def list_page(self, page: int) -> Optional[List[RawEntry]]:
        request = self._list_request(page)
        response = await self.fetcher.fetch(
            request["url"],
            referer=f"{self.config.web_base}{self.kind_path}",
            method=request["method"],
            data=request["data"],
            headers=request["headers"],
        )
        if response is None:
            return None

        items = ParserUtils.find_array(response.json(), ARRAY_KEYS)
        if items is None:
            raise MalformedPayloadException(
                "No item array in listing response",
                url=response.url,
                content_type=response.content_type,
            )
        return self.parse_items(items)

    def parse_items(self, items: List[Any]) -> List[RawEntry]:
        """목록 JSON 항목을 후보로 변환 (ID/제목 없는 항목은 무시)"""
        entries: List[RawEntry] = []
        for item in items:
            item_id = ParserUtils.first_id(item, ID_KEYS)
            title = ParserUtils.first_text(item, TITLE_KEYS)
            if not item_id or not title:
                continue

            start = ParserUtils.first_text(item, ("startDate",))
            end = ParserUtils.first_text(item, ("endDate", "deadline"))
            hints = {
                "start": canonicalize_date(start) if start else None,
                "end": canonicalize_date(end) if end else None,
                "organizer": first_organizer(item),
                "kind": self.kind_path,
                "item": item,
            }
            entries.append(RawEntry(
                key=f"{self.kind_path}:{item_id}",
                title=title,
                detail_ref=item_id,
                hints=hints,
            ))
        return entries

    def accepts(self, entry: RawEntry) -> bool:
        if self.kind_path == "contest":
            return matches_category(entry.hints.get("item"), self.config.contest_category)
        return ParserUtils.contains_any(entry.title, ACTIVITY_KEYWORDS)

    async def fetch_detail(self, entry: RawEntry) -> Optional[DetailPayload]:
        response = await self.fetcher.fetch(
            self.detail_url(entry.detail_ref),
            referer=f"{self.config.web_base}{self.kind_path}",
        )
        if response is None:
            return None
        return DocumentPayload.from_html(response.text)

    async def fetch_json_detail(self, entry: RawEntry) -> Optional[ExtractionResult]:
        """JSON 상세 후보 URL을 순서대로 1회씩 시도"""
        for path in JSON_DETAIL_PATHS:
            url = self.config.api_base + path.format(kind=self.kind_path, id=entry.detail_ref)
            response = await self.fetcher.fetch(
                url,
                headers={"Accept": "application/json"},
                max_attempts=1,
            )
            if response is None or not response.is_json:
                continue
            try:
                data = response.json()
            except MalformedPayloadException as e:
                logger.debug(f"JSON 상세 디코딩 실패: {url} - {e}")
                continue

            result = self.extractor.extract(StructuredPayload(data), entry.hint("end"))
            if not result.is_empty:
                return result
        return None

    async def resolve_detail(self, entry: RawEntry) -> Optional[ExtractionResult]:
        """
        목록 값 우선, 부족한 필드만 상세에서 보완

        목록에 기간/주최가 모두 있으면 상세를 요청하지 않습니다.
        상세를 전혀 얻지 못해도 목록 값으로 결과를 만듭니다.
        """
        hints = self.hint_result(entry)
        if hints.start and hints.end and hints.organizer:
            return hints

        payload = await self.fetch_detail(entry)
        detail = self.extractor.extract(payload, entry.hint("end"))
        if detail.is_empty:
            detail = await self.fetch_json_detail(entry) or detail
        return hints.or_else(detail)

    def to_notice(self, entry: RawEntry, extraction: ExtractionResult) -> Notice:
        url = self.detail_url(entry.detail_ref)
        kind = infer_kind_from_label(entry.hint("kind"), Kind.CONTEST)
        url_lc = url.lower()
        if "/activity/" in url_lc or "activity/view" in url_lc:
            kind = Kind.ACTIVITY
        elif "/contest/" in url_lc or "contest/view" in url_lc:
            kind = Kind.CONTEST

        return Notice(
            source=Source.CAMPUSPICK,
            kind=kind,
            title=entry.title,
            url=url,
            start=extraction.start,
            end=extraction.end,
            organizer=extraction.organizer,
        )


class CampuspickSource(NoticeSource):
    """캠퍼스픽 전체 수집 (대외활동 → 공모전 순서로 결합)"""

    name = "campuspick"
    channel = FeedChannel(
        title="Campuspick RSS",
        link="https://www.campuspick.com",
        description="캠퍼스픽 대외활동",
    )

    def __init__(
        self,
        config: Optional[CampuspickConfig] = None,
        fetch_config: Optional[FetchConfig] = None,
        deadline_days: int = 20,
        metrics: Optional[AggregatorMetrics] = None,
        today: Optional[date] = None,
    ):
        self.config = config or CampuspickConfig()
        self.fetch_config = (fetch_config or FetchConfig()).model_copy(
            update={"user_agent": self.config.user_agent}
        )
        self.deadline_days = deadline_days
        self.metrics = metrics
        self.today = today
        self.timeout = self.config.timeout

    def _settings(self, label: str) -> CrawlSettings:
        return CrawlSettings(
            label=label,
            budget_seconds=self.config.budget_seconds,
            max_pages=self.config.pages,
            max_concurrency=self.config.max_concurrency,
            page_delay=self.config.delay,
            failure_delay=self.config.delay,
            deadline_days=self.deadline_days,
            today=self.today,
        )

    async def _crawl(self, fetcher: ResilientFetcher, kind_path: str) -> List[Notice]:
        adapter = CampuspickKindAdapter(fetcher, self.config, kind_path)
        label = f"campuspick-{kind_path}"
        crawler = BudgetedListCrawler(adapter, self._settings(label), metrics=self.metrics)
        notices = await crawler.crawl()
        stats = crawler.statistics
        logger.info(
            f"[{label}] 후보 {stats.entries_seen}, 필터 제외 {stats.filtered_out}, "
            f"유지 {stats.kept}건"
        )
        return notices

    async def collect(self) -> List[Notice]:
        async with create_session(self.fetch_config) as session:
            fetcher = ResilientFetcher(session, self.fetch_config, metrics=self.metrics)
            activities, contests = await asyncio.gather(
                self._crawl(fetcher, "activity"),
                self._crawl(fetcher, "contest"),
            )
        return activities + contests
