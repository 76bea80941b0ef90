"""
시간 예산 기반 목록 크롤러

목록 페이지를 순회하며 후보를 모으고, 상세 처리를 제한된 동시성 풀에서 실행합니다.
모든 작업은 벽시계 마감(CrawlBudget) 안에서만 새로 시작됩니다.

상태 흐름:
    Paginating → FillingWorkerSlots ⇄ AwaitingCompletion → Paginating | Done
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Callable, Deque, List, Optional, Set

from notice_aggregator.exceptions import MalformedPayloadException, NoticeAggregatorException
from notice_aggregator.models.crawl import CrawlBudget, CrawlStatistics, RawEntry
from notice_aggregator.models.notice import Notice
from notice_aggregator.utils.logger import AggregationLogger, get_logger
from notice_aggregator.utils.metrics import AggregatorMetrics

if TYPE_CHECKING:
    from notice_aggregator.scrapers.base import SourceAdapter

logger = get_logger(__name__)


@dataclass
class CrawlSettings:
    """
    크롤링 1회 실행 파라미터

    Attributes:
        label: 로그/메트릭에 표시할 이름
        budget_seconds: 새 작업을 시작할 수 있는 시간 (초)
        max_pages: 최대 페이지 수
        max_concurrency: 동시에 진행할 상세 작업 수
        page_delay: 페이지 간 딜레이 (초)
        failure_delay: 목록 실패 후 대기 (초)
        deadline_days: 마감 구간 (오늘 ~ 오늘 + deadline_days)
        today: 기준일 (None이면 실행 시점의 오늘)
        start_page: 시작 페이지 번호
        clock: 단조 시계 (테스트용)
    """

    label: str
    budget_seconds: float
    max_pages: int
    max_concurrency: int
    page_delay: float = 0.15
    failure_delay: float = 0.2
    deadline_days: int = 20
    today: Optional[date] = None
    start_page: int = 1
    clock: Callable[[], float] = field(default=time.monotonic)


class BudgetedListCrawler:
    """
    목록 → 상세 크롤러

    - 본 적 있는 식별 키는 워커 생성 전에 동기적으로 기록하고 건너뜁니다.
    - 1차 필터(adapter.accepts)를 통과한 후보만 상세 처리합니다.
    - 진행 중 작업은 최대 max_concurrency개이며, 마감이 지나면 새 작업을 시작하지 않습니다.
      이미 시작된 작업은 마감 후에 끝나더라도 결과를 유지합니다.
    - 목록 실패(None)나 형식 오류는 잠시 쉬고 다음 페이지로 넘어갑니다.
    - 빈 목록은 더 이상 항목이 없다는 뜻으로 보고 종료합니다.
    - 끝나면 전체 결과에 마감 구간 필터를 적용합니다.
    """

    def __init__(
        self,
        adapter: "SourceAdapter",
        settings: CrawlSettings,
        metrics: Optional[AggregatorMetrics] = None,
    ):
        self.adapter = adapter
        self.settings = settings
        self.metrics = metrics
        self.statistics = CrawlStatistics()
        self.crawl_logger = AggregationLogger(logger)
        self._in_flight = 0
        self._peak_in_flight = 0

    @property
    def peak_in_flight(self) -> int:
        """관측된 최대 동시 진행 작업 수"""
        return self._peak_in_flight

    async def crawl(self) -> List[Notice]:
        """
        크롤링 실행

        Returns:
            마감 구간 안에 있는 Notice 목록 (발견 순서)
        """
        settings = self.settings
        stats = self.statistics
        budget = CrawlBudget.start(
            settings.budget_seconds,
            settings.max_pages,
            settings.max_concurrency,
            clock=settings.clock,
        )
        seen: Set[str] = set()
        collected: List[Notice] = []

        last_page = settings.start_page + budget.max_pages - 1
        for page in range(settings.start_page, last_page + 1):
            if budget.expired():
                self.crawl_logger.budget_exhausted(settings.label, page)
                break

            entries = await self._list_page(page)
            if entries is None:
                stats.pages_failed += 1
                self._record_page(ok=False)
                await asyncio.sleep(settings.failure_delay)
                continue

            stats.pages_fetched += 1
            self._record_page(ok=True)

            if not entries:
                logger.info(f"[{settings.label}] 페이지 {page}: 더 이상 항목 없음")
                break

            candidates = self._select_candidates(entries, seen)
            page_notices = await self._process_candidates(candidates, budget)
            collected.extend(page_notices)

            self.crawl_logger.page_progress(
                settings.label, page, budget.max_pages, len(candidates)
            )

            if not page_notices and budget.expired():
                self.crawl_logger.budget_exhausted(settings.label, page)
                break

            if page < last_page:
                await asyncio.sleep(settings.page_delay)

        return self._apply_window(collected)

    async def _list_page(self, page: int) -> Optional[List[RawEntry]]:
        try:
            return await self.adapter.list_page(page)
        except MalformedPayloadException as e:
            logger.warning(f"[{self.settings.label}] 페이지 {page} 형식 오류: {e}")
            if self.metrics:
                self.metrics.record_error("malformed_payload")
            return None

    def _select_candidates(self, entries: List[RawEntry], seen: Set[str]) -> List[RawEntry]:
        """중복 제거 + 1차 필터 (워커 생성 전 동기 처리)"""
        stats = self.statistics
        candidates: List[RawEntry] = []
        for entry in entries:
            stats.entries_seen += 1
            if entry.key in seen:
                stats.skipped_duplicates += 1
                continue
            seen.add(entry.key)

            if not self.adapter.accepts(entry):
                stats.filtered_out += 1
                continue
            candidates.append(entry)
        return candidates

    async def _process_candidates(
        self,
        candidates: List[RawEntry],
        budget: CrawlBudget,
    ) -> List[Notice]:
        """
        제한된 동시성 풀에서 상세 처리

        슬롯이 비면 마감 전인 경우에만 새 작업을 시작하고,
        진행 중 작업은 끝까지 기다려 결과를 유지합니다.
        """
        queue: Deque[RawEntry] = deque(candidates)
        pending: Set[asyncio.Task] = set()
        results: List[Notice] = []

        try:
            while queue or pending:
                # FillingWorkerSlots
                while queue and len(pending) < budget.max_concurrency:
                    if budget.expired():
                        self.statistics.skipped_by_budget += len(queue)
                        queue.clear()
                        break
                    entry = queue.popleft()
                    pending.add(asyncio.create_task(self._process_entry(entry)))
                    self._track(len(pending))

                if not pending:
                    break

                # AwaitingCompletion
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                self._track(len(pending))
                for task in done:
                    notice = task.result()
                    if notice is not None:
                        results.append(notice)
        finally:
            for task in pending:
                task.cancel()
            self._track(0)

        return results

    async def _process_entry(self, entry: RawEntry) -> Optional[Notice]:
        """단일 후보 처리 (상세 해석 → Notice 생성)"""
        stats = self.statistics
        try:
            extraction = await self.adapter.resolve_detail(entry)
            if extraction is None:
                stats.details_failed += 1
                return None
            notice = self.adapter.to_notice(entry, extraction)
        except NoticeAggregatorException as e:
            logger.warning(f"[{self.settings.label}] 항목 처리 실패 ({entry.key}): {e}")
            stats.details_failed += 1
            return None
        except Exception as e:
            logger.error(
                f"[{self.settings.label}] 예상치 못한 오류 ({entry.key}): {e}",
                exc_info=True,
            )
            stats.details_failed += 1
            if self.metrics:
                self.metrics.record_error("detail_error")
            return None

        stats.details_fetched += 1
        logger.debug(f"수집: [{entry.key}] {notice.title[:50]}")
        return notice

    def _apply_window(self, notices: List[Notice]) -> List[Notice]:
        """마감 구간 [오늘, 오늘 + deadline_days] 필터 (마감일 없으면 제외)"""
        today = self.settings.today or date.today()
        kept = [
            n for n in notices
            if n.is_within_deadline(self.settings.deadline_days, today)
        ]
        self.statistics.dropped_by_window += len(notices) - len(kept)
        self.statistics.kept = len(kept)
        return kept

    def _track(self, in_flight: int) -> None:
        self._in_flight = in_flight
        self._peak_in_flight = max(self._peak_in_flight, in_flight)
        if self.metrics:
            self.metrics.set_workers(self.settings.label, in_flight)

    def _record_page(self, ok: bool) -> None:
        if self.metrics:
            self.metrics.record_page(self.settings.label, ok=ok)
