"""
위비티(Wevity) 어댑터

서버 렌더링 HTML 목록(&gp=N 페이지네이션)과 항목별 상세 페이지를 수집합니다.
공모전은 카테고리(cidx=20, 21)별로, 대외활동은 IT 키워드로 걸러 수집합니다.
"""

import asyncio
from datetime import date
from typing import Dict, List, Optional

from bs4 import BeautifulSoup

from notice_aggregator.config import FetchConfig, WevityConfig
from notice_aggregator.crawler import BudgetedListCrawler, CrawlSettings
from notice_aggregator.extraction.dates import parse_period_value
from notice_aggregator.extraction.extractor import FieldExtractor
from notice_aggregator.models.crawl import (
    DetailPayload,
    DocumentPayload,
    ExtractionResult,
    RawEntry,
)
from notice_aggregator.models.notice import Kind, Notice, Source
from notice_aggregator.scrapers.base import FeedChannel, NoticeSource, SourceAdapter
from notice_aggregator.utils.fetcher import ResilientFetcher, create_session
from notice_aggregator.utils.logger import get_logger
from notice_aggregator.utils.metrics import AggregatorMetrics
from notice_aggregator.utils.parser import ParserUtils

logger = get_logger(__name__)

LISTING_SELECTOR = "div.hide-tit > a, div.tit > a"

BROWSER_HEADERS: Dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

ACTIVITY_KEYWORDS = (
    "it", "sw", "코딩", "소프트웨어", "컴퓨터", "보안", "정보보호", "kisia",
    "개인정보", "개발자", "ai", "엔지니어", "부트캠프",
)


def wevity_detail_fields(
    payload: DetailPayload,
    end_hint: Optional[str] = None,
) -> Optional[ExtractionResult]:
    """
    위비티 상세 페이지 전용 추출

    - 기간: input[name="during"]의 value ("2025-03-01 ~ 2025-03-31")
    - 주최: ul.cd-info-list > li 중 span.tit 라벨에 '주최'/'주관'이 있는 항목
    """
    if not isinstance(payload, DocumentPayload):
        return None
    document = payload.document

    start = end = None
    during = document.select_one('input[name="during"]')
    if during is not None and during.get("value"):
        start, end = parse_period_value(during["value"])

    organizer = None
    for li in document.select("ul.cd-info-list > li"):
        label_node = li.select_one("span.tit")
        label = ParserUtils.clean_text(label_node.get_text()) if label_node else ""
        if "주최" in label or "주관" in label:
            full = ParserUtils.clean_text(li.get_text(" "))
            organizer = ParserUtils.clean_text(full.replace(label, "", 1)) or None
            break

    result = ExtractionResult(start=start, end=end, organizer=organizer)
    return None if result.is_empty else result


class WevityListAdapter(SourceAdapter):
    """
    위비티 목록 한 종류(카테고리 또는 대외활동)에 대한 어댑터

    Attributes:
        base_url: 목록 URL (페이지 파라미터 제외)
        kind: 공모전/대외활동
        keywords: 지정 시 제목 키워드 1차 필터
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        base_url: str,
        kind: Kind,
        site_url: str = "https://www.wevity.com",
        keywords: Optional[tuple] = None,
        extractor: Optional[FieldExtractor] = None,
    ):
        super().__init__(extractor or FieldExtractor().with_prefix(wevity_detail_fields))
        self.fetcher = fetcher
        self.base_url = base_url
        self.kind = kind
        self.site_url = site_url
        self.keywords = keywords

    def page_url(self, page: int) -> str:
        return f"{self.base_url}&gp={page}"

    async def list_page(self, page: int) -> Optional[List[RawEntry]]:
        url = self.page_url(page)
        response = await self.fetcher.fetch(url, referer=self.base_url)
        if response is None:
            return None
        return self.parse_listing(response.text, referer=url)

    def parse_listing(self, html: str, referer: str = "") -> List[RawEntry]:
        """목록 HTML에서 후보 추출 (제목/URL이 없는 링크는 무시)"""
        soup = BeautifulSoup(html, "html.parser")
        entries: List[RawEntry] = []

        for link in soup.select(LISTING_SELECTOR):
            title = ParserUtils.clean_text(link.get_text())
            href = (link.get("href") or "").strip()
            if not title or not href:
                continue

            url = ParserUtils.absolute_url(href, self.site_url.rstrip("/") + "/")
            hints = {"referer": referer}

            li = link.find_parent("li")
            sub = li.select_one("div.sub-tit") if li is not None else None
            if sub is not None:
                hints["field"] = ParserUtils.clean_text(sub.get_text())

            entries.append(RawEntry(key=url, title=title, detail_ref=url, hints=hints))

        return entries

    def accepts(self, entry: RawEntry) -> bool:
        if not self.keywords:
            return True
        return ParserUtils.contains_any(entry.title, self.keywords)

    async def fetch_detail(self, entry: RawEntry) -> Optional[DetailPayload]:
        response = await self.fetcher.fetch(entry.detail_ref, referer=entry.hint("referer"))
        if response is None:
            return None
        return DocumentPayload.from_html(response.text)

    def to_notice(self, entry: RawEntry, extraction: ExtractionResult) -> Notice:
        return Notice(
            source=Source.WEVITY,
            kind=self.kind,
            title=entry.title,
            url=entry.detail_ref,
            start=extraction.start,
            end=extraction.end,
            organizer=extraction.organizer,
            field=entry.hint("field"),
        )


class WevitySource(NoticeSource):
    """
    위비티 전체 수집

    공모전과 대외활동을 동시에 수집하고, 공모전 카테고리 간 중복 URL은 제거합니다.
    """

    name = "wevity"
    channel = FeedChannel(
        title="Wevity RSS",
        link="https://www.wevity.com",
        description="위비티 공모전/대외활동",
    )

    def __init__(
        self,
        config: Optional[WevityConfig] = None,
        fetch_config: Optional[FetchConfig] = None,
        deadline_days: int = 20,
        metrics: Optional[AggregatorMetrics] = None,
        today: Optional[date] = None,
    ):
        self.config = config or WevityConfig()
        self.fetch_config = fetch_config or FetchConfig()
        self.deadline_days = deadline_days
        self.metrics = metrics
        self.today = today
        self.timeout = self.config.timeout

    def _settings(self, label: str) -> CrawlSettings:
        return CrawlSettings(
            label=label,
            budget_seconds=self.config.budget_seconds,
            max_pages=self.config.max_pages,
            max_concurrency=self.config.max_concurrency,
            page_delay=self.config.page_delay,
            failure_delay=self.config.failure_delay,
            deadline_days=self.deadline_days,
            today=self.today,
        )

    async def _crawl(self, adapter: WevityListAdapter, label: str) -> List[Notice]:
        crawler = BudgetedListCrawler(adapter, self._settings(label), metrics=self.metrics)
        notices = await crawler.crawl()
        stats = crawler.statistics
        logger.info(
            f"[{label}] 페이지 {stats.pages_fetched}(실패 {stats.pages_failed}), "
            f"상세 {stats.details_fetched}(실패 {stats.details_failed}), "
            f"유지 {stats.kept}건"
        )
        return notices

    async def collect_contests(self, fetcher: ResilientFetcher) -> List[Notice]:
        seen_urls = set()
        contests: List[Notice] = []
        for index, url in enumerate(self.config.contest_urls, start=1):
            adapter = WevityListAdapter(fetcher, url, Kind.CONTEST, site_url=self.config.base_url)
            for notice in await self._crawl(adapter, f"wevity-contest-{index}"):
                if notice.url not in seen_urls:
                    seen_urls.add(notice.url)
                    contests.append(notice)
        return contests

    async def collect_activities(self, fetcher: ResilientFetcher) -> List[Notice]:
        adapter = WevityListAdapter(
            fetcher,
            self.config.activity_url,
            Kind.ACTIVITY,
            site_url=self.config.base_url,
            keywords=ACTIVITY_KEYWORDS,
        )
        return await self._crawl(adapter, "wevity-activity")

    async def collect(self) -> List[Notice]:
        async with create_session(self.fetch_config, headers=BROWSER_HEADERS) as session:
            fetcher = ResilientFetcher(session, self.fetch_config, metrics=self.metrics)
            await fetcher.prewarm(self.config.base_url + "/")

            contests, activities = await asyncio.gather(
                self.collect_contests(fetcher),
                self.collect_activities(fetcher),
            )
        return contests + activities
