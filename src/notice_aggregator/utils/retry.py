"""
재시도 로직 모듈

네트워크 오류, 타임아웃, 봇 차단 응답 등의 일시적 장애에 대한 재시도 로직을 제공합니다.
지수 백오프(exponential backoff)를 지원합니다.
"""

import asyncio
import random
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from notice_aggregator.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RetryError(Exception):
    """재시도 실패 예외"""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_exception: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_exception = last_exception


def backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    exponential_backoff: bool = True,
    jitter: bool = False,
) -> float:
    """
    attempt번째 실패(0부터) 후 대기 시간

    Examples:
        >>> [backoff_delay(i, 0.3, 1.5) for i in range(4)]
        [0.3, 0.6, 1.2, 1.5]
    """
    if exponential_backoff:
        delay = min(base_delay * (2 ** attempt), max_delay)
    else:
        delay = base_delay

    # 지터 (0.5 ~ 1.5 배)
    if jitter:
        delay = delay * (0.5 + random.random())
    return delay


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_backoff: bool = True,
    jitter: bool = True,
    retry_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
    label: str = "",
    **kwargs: Any,
) -> T:
    """
    비동기 함수 재시도 실행

    총 시도 횟수는 max_retries + 1회입니다.

    Args:
        func: 실행할 비동기 함수
        *args: 함수 인자
        max_retries: 최대 재시도 횟수
        base_delay: 기본 대기 시간 (초)
        max_delay: 최대 대기 시간 (초)
        exponential_backoff: 지수 백오프 적용 여부
        jitter: 랜덤 지터 적용 여부
        retry_exceptions: 재시도할 예외 타입들
        on_retry: 재시도 시 콜백 함수 (attempt, exception)
        label: 로그에 표시할 대상 (URL 등)
        **kwargs: 함수 키워드 인자

    Returns:
        함수 실행 결과

    Raises:
        RetryError: 모든 시도 실패 시
    """
    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)

        except retry_exceptions as e:
            if attempt == max_retries:
                raise RetryError(
                    f"최대 재시도 횟수({max_retries})를 초과했습니다: {label or func.__name__}",
                    attempts=attempt + 1,
                    last_exception=e,
                )

            delay = backoff_delay(attempt, base_delay, max_delay, exponential_backoff, jitter)

            logger.debug(
                f"재시도 {attempt + 1}/{max_retries}: {e.__class__.__name__}: {e} "
                f"({delay:.2f}초 후 재시도) {label}"
            )

            if on_retry:
                on_retry(attempt + 1, e)

            await asyncio.sleep(delay)

    raise RetryError("예상치 못한 재시도 루프 종료", attempts=max_retries + 1)
