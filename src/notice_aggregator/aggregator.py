"""
수집 오케스트레이터

모든 소스를 동시에 실행하고, 결과를 통합하여 RSS 피드로 저장합니다.

1. 소스별 수집 (각 소스는 자체 타임아웃으로 감싸짐)
2. 실패/타임아웃 소스는 빈 목록으로 대체 (실행은 계속)
3. 소스별 피드 저장 (비어 있지 않은 경우)
4. 통합 피드 저장 (RECENT 정렬)
5. 콘솔 프리뷰용 UPCOMING 정렬 목록 생성
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from notice_aggregator.config import AggregatorConfig
from notice_aggregator.exceptions import FeedWriteException
from notice_aggregator.models.notice import Notice
from notice_aggregator.reconciler import Reconciler, SortOrder
from notice_aggregator.scrapers.base import FeedChannel, NoticeSource
from notice_aggregator.scrapers.campuspick import CampuspickSource
from notice_aggregator.scrapers.dacon import DaconSource
from notice_aggregator.scrapers.wevity import WevitySource
from notice_aggregator.storage.rss_writer import RssFeedWriter
from notice_aggregator.utils.logger import AggregationLogger, get_logger, setup_logger
from notice_aggregator.utils.metrics import AggregatorMetrics

logger = get_logger(__name__)


@dataclass
class AggregationResult:
    """
    실행 결과

    Attributes:
        per_source: 소스 이름 → 수집된 Notice 목록 (실패 시 빈 목록)
        merged: 통합 목록 (RECENT 정렬)
        preview: 통합 목록 (UPCOMING 정렬, 콘솔 출력용)
        skipped: 타임아웃/오류로 건너뛴 소스 이름
        feeds: 저장된 피드 경로 목록
    """
    per_source: Dict[str, List[Notice]] = field(default_factory=dict)
    merged: List[Notice] = field(default_factory=list)
    preview: List[Notice] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    feeds: List[str] = field(default_factory=list)

    @property
    def counts(self) -> Dict[str, int]:
        return {name: len(notices) for name, notices in self.per_source.items()}


def build_sources(
    config: AggregatorConfig,
    metrics: Optional[AggregatorMetrics] = None,
    today: Optional[date] = None,
) -> List[NoticeSource]:
    """설정으로부터 기본 소스 3종 생성 (위비티, 캠퍼스픽, 데이콘)"""
    return [
        WevitySource(
            config.wevity,
            fetch_config=config.fetch,
            deadline_days=config.deadline_days,
            metrics=metrics,
            today=today,
        ),
        CampuspickSource(
            config.campuspick,
            fetch_config=config.fetch,
            deadline_days=config.deadline_days,
            metrics=metrics,
            today=today,
        ),
        DaconSource(
            config.dacon,
            deadline_days=config.deadline_days,
            metrics=metrics,
            today=today,
        ),
    ]


class NoticeAggregator:
    """
    공고 수집기 (Orchestrator)

    소스 목록과 피드 저장소를 주입받아 한 번의 수집 실행을 담당합니다.
    소스 실패는 예외로 전파하지 않으며, 모든 소스가 비어도 정상 종료합니다.
    """

    def __init__(
        self,
        config: Optional[AggregatorConfig] = None,
        sources: Optional[Sequence[NoticeSource]] = None,
        writer: Optional[RssFeedWriter] = None,
        metrics: Optional[AggregatorMetrics] = None,
        today: Optional[date] = None,
    ):
        """
        Args:
            config: 수집기 설정 (None이면 기본값)
            sources: 수집 소스 (None이면 build_sources로 생성)
            writer: RSS 저장소 (None이면 RssFeedWriter)
            metrics: 메트릭 (None이면 설정의 네임스페이스로 생성)
            today: 기준일 (None이면 오늘)
        """
        self.config = config or AggregatorConfig()
        self.metrics = metrics or AggregatorMetrics(
            namespace=self.config.monitoring.metrics_namespace
        )
        self.today = today
        self.sources = list(sources) if sources is not None else build_sources(
            self.config, self.metrics, today
        )
        self.writer = writer or RssFeedWriter()
        self.run_logger = AggregationLogger()

    async def _collect_one(self, source: NoticeSource) -> Optional[List[Notice]]:
        """
        소스 하나 수집

        Returns:
            Notice 목록, 타임아웃/오류 시 None
        """
        try:
            with self.metrics.time_request(f"source_{source.name}"):
                notices = await asyncio.wait_for(source.collect(), timeout=source.timeout)
        except asyncio.TimeoutError:
            self.run_logger.source_skipped(source.name, f"timeout after {source.timeout:g}s")
            self.metrics.record_skipped_source(source.name, "timeout")
            return None
        except Exception as e:
            logger.error(f"[{source.name}] 수집 오류: {e}", exc_info=True)
            self.run_logger.source_skipped(source.name, type(e).__name__)
            self.metrics.record_skipped_source(source.name, "error")
            self.metrics.record_error("source_error")
            return None

        self.run_logger.source_done(source.name, len(notices))
        self.metrics.record_notices(source.name, len(notices))
        return notices

    def _write_feed(
        self,
        notices: List[Notice],
        channel: FeedChannel,
        name: str,
        result: AggregationResult,
    ) -> None:
        path = self.config.output.path_for(name)
        try:
            written = self.writer.write(notices, channel, path)
        except FeedWriteException as e:
            logger.error(f"피드 저장 실패: {e.message} ({e.path})")
            self.metrics.record_error("feed_write")
            return
        result.feeds.append(str(written))
        self.run_logger.feed_written(written, len(notices))

    def merged_channel(self) -> FeedChannel:
        output = self.config.output
        return FeedChannel(
            title=output.merged_title,
            link=output.merged_link,
            description=output.merged_description,
        )

    async def run(self) -> AggregationResult:
        """
        수집 실행

        Returns:
            AggregationResult
        """
        self.run_logger.start_run(self.config.run_id, self.config.to_summary())
        self.metrics.start_run(self.config.run_id, self.config.to_summary())

        result = AggregationResult()
        try:
            collected = await asyncio.gather(
                *(self._collect_one(source) for source in self.sources)
            )

            for source, notices in zip(self.sources, collected):
                if notices is None:
                    result.skipped.append(source.name)
                    notices = []
                result.per_source[source.name] = notices

            for source in self.sources:
                notices = result.per_source[source.name]
                if notices:
                    self._write_feed(notices, source.channel, source.name, result)

            collections = list(result.per_source.values())
            result.merged = Reconciler(SortOrder.RECENT, today=self.today).merge(collections)
            result.preview = Reconciler(SortOrder.UPCOMING, today=self.today).merge(collections)

            self._write_feed(result.merged, self.merged_channel(), "merged", result)
        finally:
            self.metrics.end_run(len(result.merged))

        self.run_logger.end_run(result.counts, len(result.merged), result.skipped)
        return result


def configure_logging(config: AggregatorConfig) -> None:
    """설정에 따라 패키지 루트 로거 구성"""
    setup_logger(
        level=config.logging.level,
        log_file=config.logging.file,
        rotation=config.logging.rotation,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
        json_format=config.monitoring.json_logging,
        extra_fields=config.monitoring.log_extra_fields,
    )


async def run_aggregator(config: Optional[AggregatorConfig] = None) -> AggregationResult:
    """
    수집 실행 헬퍼 함수

    로거/메트릭 서버를 설정한 뒤 기본 소스로 한 번 실행합니다.

    Args:
        config: 수집기 설정

    Returns:
        AggregationResult
    """
    config = config or AggregatorConfig()
    config.ensure_directories()
    configure_logging(config)

    metrics = AggregatorMetrics(namespace=config.monitoring.metrics_namespace)
    if config.monitoring.prometheus_enabled:
        metrics.start_server(config.monitoring.prometheus_port)

    aggregator = NoticeAggregator(config, metrics=metrics)
    return await aggregator.run()
