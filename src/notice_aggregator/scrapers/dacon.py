"""
데이콘(DACON) 어댑터

동기 requests 클라이언트로 offset/range JSON API를 조회합니다.
이벤트 루프를 막지 않도록 asyncio.to_thread로 별도 스레드에서 실행되며,
바깥 타임아웃으로 취소되면 중단 플래그를 세워 다음 페이지 요청 전에 멈춥니다.
"""

import asyncio
import json
import threading
from datetime import date
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from notice_aggregator.config import DaconConfig
from notice_aggregator.exceptions import InvalidNoticeException, MalformedPayloadException
from notice_aggregator.models.notice import Kind, Notice, Source
from notice_aggregator.scrapers.base import FeedChannel, NoticeSource
from notice_aggregator.utils.logger import get_logger
from notice_aggregator.utils.metrics import AggregatorMetrics
from notice_aggregator.utils.parser import ParserUtils

logger = get_logger(__name__)

KEYWORDS = (
    "ai", "인공지능", "머신러닝", "딥러닝",
    "개발", "developer", "dev",
    "보안", "security",
    "sw", "소프트웨어", "software",
)

WRAPPER_KEYS = ("list", "data", "content", "items", "results")


def build_session(config: DaconConfig) -> requests.Session:
    """재시도 어댑터가 장착된 requests 세션"""
    session = requests.Session()
    retries = Retry(
        total=config.max_retries,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"User-Agent": config.user_agent})
    return session


def parse_items(body: str) -> List[Dict[str, Any]]:
    """
    응답 본문에서 대회 목록 추출

    배열 그대로, 알려진 래퍼 키(list/data/content/items/results),
    또는 객체 배열인 아무 값 순서로 찾습니다.

    Raises:
        MalformedPayloadException: JSON이 아니거나 지원하지 않는 형태인 경우
    """
    try:
        data = json.loads(body)
    except ValueError as e:
        raise MalformedPayloadException(f"Undecodable JSON body: {e}")

    if isinstance(data, list):
        return [item for item in data if isinstance(item, dict)]

    if isinstance(data, dict):
        for key in WRAPPER_KEYS:
            value = data.get(key)
            if isinstance(value, list):
                return [item for item in value if isinstance(item, dict)]
        for value in data.values():
            if isinstance(value, list) and all(isinstance(item, dict) for item in value):
                return value

    raise MalformedPayloadException(f"Unsupported JSON shape: {body[:200]}")


def passes_keyword_filter(item: Dict[str, Any]) -> bool:
    """이름/키워드(한/영)에 IT 키워드가 있는지 확인"""
    haystack = " ".join(
        str(item.get(key) or "")
        for key in ("name", "name_eng", "keyword", "keyword_eng")
    )
    return ParserUtils.contains_any(haystack, KEYWORDS)


class DaconSource(NoticeSource):
    """
    데이콘 대회 수집

    모든 항목은 공모전(Contest)이며 URL은 대회 ID로 구성합니다.
    """

    name = "dacon"
    channel = FeedChannel(
        title="DACON RSS",
        link="https://www.dacon.io",
        description="데이콘 대회",
    )

    def __init__(
        self,
        config: Optional[DaconConfig] = None,
        deadline_days: int = 20,
        metrics: Optional[AggregatorMetrics] = None,
        today: Optional[date] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or DaconConfig()
        self.deadline_days = deadline_days
        self.metrics = metrics
        self.today = today
        self.timeout = self.config.timeout
        self._session = session

    def to_notice(self, item: Dict[str, Any]) -> Notice:
        """
        대회 항목 → Notice

        Raises:
            InvalidNoticeException: 이름이 비어 있는 경우
        """
        return Notice(
            source=Source.DACON,
            kind=Kind.CONTEST,
            title=str(item.get("name") or ""),
            url=f"{self.config.detail_base}{item.get('cpt_id', 0)}",
            start=str(item.get("period_start") or "")[:10] or None,
            end=str(item.get("period_end") or "")[:10] or None,
        )

    def _fetch_page(self, session: requests.Session, offset: int) -> Optional[List[Dict[str, Any]]]:
        response = session.get(
            self.config.list_url,
            params={"offset": offset, "range": self.config.page_range},
            headers={"Accept": "application/json"},
            timeout=self.config.request_timeout,
        )
        response.raise_for_status()

        content_type = response.headers.get("Content-Type", "")
        if not content_type.lower().startswith("application/json"):
            logger.warning(
                f"[dacon] JSON이 아닌 응답: {content_type} (status={response.status_code}) "
                f"{response.text[:200]}"
            )
            return None
        return parse_items(response.text)

    def collect_blocking(self, stop: Optional[threading.Event] = None) -> List[Notice]:
        """
        동기 수집 (별도 스레드에서 실행)

        Args:
            stop: 설정되면 다음 페이지를 요청하지 않고 종료

        Returns:
            키워드 + 마감 구간 필터를 통과한 Notice 목록
        """
        stop = stop or threading.Event()
        today = self.today or date.today()
        session = self._session or build_session(self.config)
        notices: List[Notice] = []

        try:
            for offset in range(0, self.config.max_offset + 1):
                if stop.is_set():
                    logger.info("[dacon] 중단 요청으로 수집 종료")
                    break

                try:
                    items = self._fetch_page(session, offset)
                except requests.RequestException as e:
                    logger.warning(f"[dacon] offset={offset} 요청 실패: {e}")
                    break
                except MalformedPayloadException as e:
                    logger.warning(f"[dacon] offset={offset} 형식 오류: {e}")
                    if self.metrics:
                        self.metrics.record_error("malformed_payload")
                    break

                if self.metrics:
                    self.metrics.record_page(self.name, ok=items is not None)
                if not items:
                    break

                for item in items:
                    if not passes_keyword_filter(item):
                        continue
                    try:
                        notice = self.to_notice(item)
                    except InvalidNoticeException as e:
                        logger.debug(f"[dacon] 항목 무시: {e}")
                        continue
                    if notice.is_within_deadline(self.deadline_days, today):
                        notices.append(notice)

                if stop.wait(self.config.delay):
                    break
        finally:
            if self._session is None:
                session.close()

        return notices

    async def collect(self) -> List[Notice]:
        stop = threading.Event()
        try:
            return await asyncio.to_thread(self.collect_blocking, stop)
        finally:
            stop.set()
