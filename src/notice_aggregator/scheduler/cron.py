"""
스케줄러 모듈

정기적인 수집 실행을 위한 스케줄러를 제공합니다.
interval 모드와 cron 모드를 지원합니다.
"""

import asyncio
import signal
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from notice_aggregator.aggregator import AggregationResult, NoticeAggregator
from notice_aggregator.config import AggregatorConfig, SchedulerConfig
from notice_aggregator.utils.logger import get_logger
from notice_aggregator.utils.metrics import AggregatorMetrics

logger = get_logger(__name__)


class NoticeScheduler:
    """
    수집 스케줄러

    주기적으로 수집을 실행합니다.
    - interval 모드: 일정 간격으로 실행
    - cron 모드: cron 표현식에 따라 실행

    메트릭 객체는 실행 간에 공유되어 카운터가 누적됩니다.
    """

    def __init__(
        self,
        config: Optional[AggregatorConfig] = None,
        scheduler_config: Optional[SchedulerConfig] = None,
        metrics: Optional[AggregatorMetrics] = None,
    ):
        self.config = config or AggregatorConfig()
        self.scheduler_config = scheduler_config or self.config.scheduler
        self.metrics = metrics or AggregatorMetrics(
            namespace=self.config.monitoring.metrics_namespace
        )

        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False
        self._on_run_complete: Optional[Callable[[AggregationResult], None]] = None

    @property
    def running(self) -> bool:
        return self._running

    def on_run_complete(self, callback: Callable[[AggregationResult], None]) -> None:
        """수집 완료 콜백 등록"""
        self._on_run_complete = callback

    async def _run_job(self) -> None:
        """스케줄러에서 실행되는 수집 작업"""
        run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        logger.info(f"=== 스케줄된 수집 시작: {run_id} ===")

        try:
            config = self.config.model_copy(update={"run_id": run_id})
            result = await NoticeAggregator(config, metrics=self.metrics).run()
        except Exception as e:
            logger.error(f"스케줄된 수집 실패: {e}", exc_info=True)
            self.metrics.record_error("scheduled_run")
            return

        logger.info(f"=== 스케줄된 수집 완료: 통합 {len(result.merged)}건 ===")
        if self._on_run_complete:
            self._on_run_complete(result)

    def create_trigger(self):
        """스케줄 트리거 생성"""
        if self.scheduler_config.mode == "interval":
            return IntervalTrigger(minutes=self.scheduler_config.interval_minutes)

        # "분 시 일 월 요일"
        minute, hour, day, month, day_of_week = self.scheduler_config.cron_expression.split()[:5]
        return CronTrigger(
            minute=minute,
            hour=hour,
            day=day,
            month=month,
            day_of_week=day_of_week,
        )

    async def start(self, run_immediately: bool = True) -> None:
        """
        스케줄러 시작

        Args:
            run_immediately: True면 시작 시 즉시 한 번 실행
        """
        if self._running:
            logger.warning("스케줄러가 이미 실행 중입니다")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._run_job,
            trigger=self.create_trigger(),
            id="aggregate_job",
            name="공고 수집",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        self._running = True

        if self.scheduler_config.mode == "interval":
            logger.info(f"스케줄러 시작됨 (간격: {self.scheduler_config.interval_minutes}분)")
        else:
            logger.info(f"스케줄러 시작됨 (cron: {self.scheduler_config.cron_expression})")

        if run_immediately:
            logger.info("초기 수집 실행...")
            await self._run_job()

    def stop(self) -> None:
        """스케줄러 중지"""
        if self._scheduler and self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("스케줄러 중지됨")

    async def run_forever(self, run_immediately: bool = True) -> None:
        """
        스케줄러를 중지될 때까지 실행

        SIGINT/SIGTERM 수신 시 정상 종료합니다.
        """
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.stop)
            except NotImplementedError:
                # Windows 이벤트 루프
                pass

        await self.start(run_immediately=run_immediately)
        logger.info("스케줄러 실행 중... (Ctrl+C로 중지)")

        while self._running:
            await asyncio.sleep(1)


async def run_scheduled(
    config: Optional[AggregatorConfig] = None,
    mode: str = "interval",
    interval_minutes: int = 60,
    cron_expression: str = "0 */6 * * *",
    run_immediately: bool = True,
) -> None:
    """
    스케줄된 수집 실행 헬퍼 함수

    Args:
        config: 수집기 설정
        mode: 실행 모드 ("interval" 또는 "cron")
        interval_minutes: interval 모드 간격 (분)
        cron_expression: cron 표현식
        run_immediately: 시작 시 즉시 실행 여부
    """
    scheduler_config = SchedulerConfig(
        enabled=True,
        mode=mode,
        interval_minutes=interval_minutes,
        cron_expression=cron_expression,
    )
    scheduler = NoticeScheduler(config=config, scheduler_config=scheduler_config)
    await scheduler.run_forever(run_immediately=run_immediately)
