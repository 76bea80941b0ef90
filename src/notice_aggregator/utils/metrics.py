"""
Prometheus 메트릭 모듈

수집 성능 및 상태를 모니터링하기 위한 Prometheus 메트릭을 제공합니다.
인스턴스마다 자체 CollectorRegistry를 가지므로 여러 번 생성해도 충돌하지 않습니다.
"""

import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
)

from notice_aggregator.utils.logger import get_logger

logger = get_logger(__name__)


class AggregatorMetrics:
    """
    수집기 Prometheus 메트릭 관리자

    수집되는 메트릭:
    - 소스별 공고 수
    - 처리/실패 목록 페이지 수
    - 재시도 및 봇 차단 응답 횟수
    - 오류 및 건너뛴 소스 수
    - 요청 지연 시간
    - 현재 실행 상태
    """

    def __init__(
        self,
        namespace: str = "notice_aggregator",
        registry: Optional[CollectorRegistry] = None,
    ):
        """
        Args:
            namespace: 메트릭 네임스페이스 (접두사)
            registry: Prometheus 레지스트리 (None이면 새로 생성)
        """
        self.namespace = namespace
        self.registry = registry or CollectorRegistry()
        self._server_started = False

        # === Counter 메트릭 (누적 값) ===
        self.notices_total = Counter(
            f"{namespace}_notices_total",
            "Total number of notices collected",
            ["source"],
            registry=self.registry,
        )

        self.pages_total = Counter(
            f"{namespace}_pages_total",
            "Total number of listing pages processed",
            ["source", "status"],  # ok, failed
            registry=self.registry,
        )

        self.retries_total = Counter(
            f"{namespace}_fetch_retries_total",
            "Total number of fetch retry attempts",
            ["reason"],  # timeout, network, blocked, status
            registry=self.registry,
        )

        self.blocked_total = Counter(
            f"{namespace}_blocked_responses_total",
            "Total number of anti-bot responses",
            registry=self.registry,
        )

        self.fetch_failures_total = Counter(
            f"{namespace}_fetch_failures_total",
            "Total number of fetches that exhausted all attempts",
            registry=self.registry,
        )

        self.errors_total = Counter(
            f"{namespace}_errors_total",
            "Total number of errors",
            ["type"],  # malformed_payload, detail_error, feed_write
            registry=self.registry,
        )

        self.skipped_sources_total = Counter(
            f"{namespace}_skipped_sources_total",
            "Total number of sources skipped by timeout or failure",
            ["source", "reason"],
            registry=self.registry,
        )

        # === Gauge 메트릭 (현재 값) ===
        self.run_in_progress = Gauge(
            f"{namespace}_run_in_progress",
            "Whether an aggregation run is in progress (1=yes, 0=no)",
            registry=self.registry,
        )

        self.merged_notices = Gauge(
            f"{namespace}_merged_notices",
            "Number of notices in the merged feed of the last run",
            registry=self.registry,
        )

        self.active_workers = Gauge(
            f"{namespace}_active_workers",
            "Number of in-flight detail tasks",
            ["source"],
            registry=self.registry,
        )

        # === Histogram 메트릭 (분포) ===
        self.request_duration = Histogram(
            f"{namespace}_request_duration_seconds",
            "Time spent on HTTP fetches including retries",
            ["request_type"],  # list_page, detail
            buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
            registry=self.registry,
        )

        # === Info 메트릭 (메타데이터) ===
        self.run_info = Info(
            f"{namespace}_run",
            "Aggregation run information",
            registry=self.registry,
        )

    def start_server(self, port: int = 8000) -> bool:
        """
        Prometheus 메트릭 서버 시작

        Returns:
            서버 시작 성공 여부
        """
        if self._server_started:
            return True

        try:
            start_http_server(port, registry=self.registry)
        except OSError as e:
            logger.warning(f"메트릭 서버 시작 실패 (port={port}): {e}")
            return False

        self._server_started = True
        return True

    def start_run(self, run_id: str, config_summary: str = "") -> None:
        """실행 시작 표시"""
        self.run_info.info({"run_id": run_id, "config": config_summary})
        self.run_in_progress.set(1)

    def end_run(self, merged: int) -> None:
        """실행 종료 표시"""
        self.run_in_progress.set(0)
        self.merged_notices.set(merged)

    def record_notices(self, source: str, count: int) -> None:
        if count:
            self.notices_total.labels(source=source).inc(count)

    def record_page(self, source: str, ok: bool = True) -> None:
        self.pages_total.labels(source=source, status="ok" if ok else "failed").inc()

    def record_retry(self, reason: str = "unknown") -> None:
        self.retries_total.labels(reason=reason).inc()

    def record_blocked(self) -> None:
        self.blocked_total.inc()

    def record_fetch_failure(self) -> None:
        self.fetch_failures_total.inc()

    def record_error(self, error_type: str = "unknown") -> None:
        self.errors_total.labels(type=error_type).inc()

    def record_skipped_source(self, source: str, reason: str) -> None:
        self.skipped_sources_total.labels(source=source, reason=reason).inc()

    def set_workers(self, source: str, count: int) -> None:
        self.active_workers.labels(source=source).set(count)

    @contextmanager
    def time_request(self, request_type: str = "detail"):
        """
        요청 시간 측정 컨텍스트 매니저

        Usage:
            with metrics.time_request("list_page"):
                response = await fetcher.fetch(url)
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start
            self.request_duration.labels(request_type=request_type).observe(duration)
