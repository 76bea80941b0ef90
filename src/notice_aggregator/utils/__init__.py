"""유틸리티 패키지"""

from notice_aggregator.utils.logger import (
    AggregationLogger,
    JsonFormatter,
    get_logger,
    reset_loggers,
    setup_logger,
)
from notice_aggregator.utils.metrics import AggregatorMetrics
from notice_aggregator.utils.parser import ParserUtils
from notice_aggregator.utils.retry import RetryError, backoff_delay, retry_async

__all__ = [
    # retry
    "retry_async",
    "backoff_delay",
    "RetryError",
    # logger
    "setup_logger",
    "get_logger",
    "reset_loggers",
    "AggregationLogger",
    "JsonFormatter",
    # metrics
    "AggregatorMetrics",
    # parser
    "ParserUtils",
]
