"""
HTTP 요청 모듈

aiohttp 세션 위에서 단일 요청을 타임아웃, 지수 백오프 재시도, 봇 차단 응답 감지와 함께 수행합니다.
모든 시도가 실패하면 예외 대신 None을 반환하며, 호출자는 이를 "이 항목 건너뜀"으로 취급합니다.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import aiohttp

from notice_aggregator.config import FetchConfig
from notice_aggregator.exceptions import (
    BlockedResponseException,
    FetchException,
    MalformedPayloadException,
)
from notice_aggregator.utils.logger import get_logger
from notice_aggregator.utils.metrics import AggregatorMetrics
from notice_aggregator.utils.retry import RetryError, retry_async

logger = get_logger(__name__)

BOT_MARKERS = (
    "cf-ray",
    "Attention Required",
    "Please wait while your request is being verified",
)


def looks_like_bot(status: int, body: str) -> bool:
    """
    봇 차단/챌린지 페이지 여부

    Examples:
        >>> looks_like_bot(503, "")
        True
        >>> looks_like_bot(200, "<html>정상 페이지</html>")
        False
    """
    if status in (403, 503):
        return True
    return any(marker in body for marker in BOT_MARKERS)


def create_session(
    config: FetchConfig,
    headers: Optional[Mapping[str, str]] = None,
) -> aiohttp.ClientSession:
    """
    공통 타임아웃과 기본 헤더를 가진 세션 생성

    요청 타임아웃(기본 3초)은 시도 타임아웃(2.2초)보다 길게 둡니다.
    """
    timeout = aiohttp.ClientTimeout(
        total=config.request_timeout,
        connect=config.connect_timeout,
    )
    default_headers = {"User-Agent": config.user_agent}
    if headers:
        default_headers.update(headers)
    return aiohttp.ClientSession(timeout=timeout, headers=default_headers)


@dataclass
class FetchResponse:
    """수락된 응답"""

    url: str
    status: int
    content_type: str
    text: str

    @property
    def is_json(self) -> bool:
        return "json" in self.content_type.lower()

    def json(self) -> Any:
        """
        본문을 JSON으로 디코딩

        Raises:
            MalformedPayloadException: JSON Content-Type이 아니거나 디코딩할 수 없는 경우
        """
        if not self.is_json:
            raise MalformedPayloadException(
                "Expected JSON response",
                url=self.url,
                content_type=self.content_type,
            )
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise MalformedPayloadException(
                f"Undecodable JSON body: {e}",
                url=self.url,
                content_type=self.content_type,
            )


class ResilientFetcher:
    """
    재시도/차단 감지 HTTP 요청기

    - 최대 max_attempts회 시도, 300ms → 600ms → 1200ms (상한 1500ms) 백오프
    - 시도마다 asyncio.wait_for로 attempt_timeout 적용
    - 2xx, 비어 있지 않은 본문, 봇 차단 아님 조건을 모두 만족해야 수락
    - 모든 시도 실패 시 None
    """

    RETRY_EXCEPTIONS = (FetchException, aiohttp.ClientError, asyncio.TimeoutError)

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: Optional[FetchConfig] = None,
        metrics: Optional[AggregatorMetrics] = None,
    ):
        self.session = session
        self.config = config or FetchConfig()
        self.metrics = metrics

    async def fetch(
        self,
        url: str,
        referer: Optional[str] = None,
        *,
        method: str = "GET",
        data: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        max_attempts: Optional[int] = None,
    ) -> Optional[FetchResponse]:
        """
        요청 수행

        Args:
            url: 요청 URL
            referer: Referer 헤더 값
            method: HTTP 메서드
            data: 요청 본문 (form-encoded 문자열 등)
            headers: 추가 헤더
            max_attempts: 이 요청만의 시도 횟수 (기본 설정값)

        Returns:
            FetchResponse 또는 None (모든 시도 실패)
        """
        request_headers = dict(headers or {})
        if referer:
            request_headers["Referer"] = referer

        attempts = max_attempts or self.config.max_attempts

        try:
            return await retry_async(
                self._attempt,
                method,
                url,
                request_headers,
                data,
                max_retries=attempts - 1,
                base_delay=self.config.base_delay,
                max_delay=self.config.max_delay,
                exponential_backoff=True,
                jitter=False,
                retry_exceptions=self.RETRY_EXCEPTIONS,
                on_retry=self._on_retry,
                label=url,
            )
        except RetryError as e:
            logger.warning(
                f"요청 포기 ({e.attempts}회 시도): {method} {url} - {e.last_exception!r}"
            )
            if self.metrics:
                self.metrics.record_fetch_failure()
            return None

    async def _attempt(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        data: Optional[str],
    ) -> FetchResponse:
        return await asyncio.wait_for(
            self._request(method, url, headers, data),
            timeout=self.config.attempt_timeout,
        )

    async def _request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        data: Optional[str],
    ) -> FetchResponse:
        async with self.session.request(method, url, headers=headers, data=data) as resp:
            status = resp.status
            content_type = resp.headers.get("Content-Type", "")
            body = await resp.text(errors="replace")

        if looks_like_bot(status, body):
            if self.metrics:
                self.metrics.record_blocked()
            raise BlockedResponseException("Anti-bot response", url=url, status=status)
        if not 200 <= status < 300:
            raise FetchException(f"HTTP {status}", url=url, status=status)
        if not body.strip():
            raise FetchException("Empty body", url=url, status=status)

        return FetchResponse(url=url, status=status, content_type=content_type, text=body)

    def _on_retry(self, attempt: int, error: BaseException) -> None:
        if not self.metrics:
            return
        if isinstance(error, BlockedResponseException):
            reason = "blocked"
        elif isinstance(error, FetchException):
            reason = "status"
        elif isinstance(error, asyncio.TimeoutError):
            reason = "timeout"
        else:
            reason = "network"
        self.metrics.record_retry(reason)

    async def prewarm(self, url: str, timeout: float = 3.0) -> None:
        """
        쿠키 확보용 단일 GET (실패해도 무시)
        """
        async def _get() -> None:
            async with self.session.get(url) as resp:
                await resp.read()

        try:
            await asyncio.wait_for(_get(), timeout=timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"prewarm 실패: {url} - {e!r}")
