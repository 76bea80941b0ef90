"""
필드 추출기

전략 목록을 순서대로 시도하고, 하나라도 필드를 채운 첫 결과를 반환합니다.
뒤쪽(약한) 전략은 앞 전략의 부분 결과를 덮어쓰지 않습니다.
"""

from typing import Iterable, List, Optional

from notice_aggregator.extraction.strategies import DEFAULT_STRATEGIES, Strategy
from notice_aggregator.models.crawl import DetailPayload, ExtractionResult
from notice_aggregator.utils.logger import get_logger


logger = get_logger(__name__)


class FieldExtractor:
    """
    폴백 체인 기반 필드 추출기

    Examples:
        >>> extractor = FieldExtractor()
        >>> extractor.extract(StructuredPayload({"endDate": "2025.3.31"}))
        ExtractionResult(start=None, end='2025-03-31', organizer=None)
    """

    def __init__(self, strategies: Optional[Iterable[Strategy]] = None):
        self.strategies: List[Strategy] = list(
            DEFAULT_STRATEGIES if strategies is None else strategies
        )

    def with_prefix(self, *strategies: Strategy) -> "FieldExtractor":
        """소스 전용 전략을 앞에 붙인 새 추출기"""
        return FieldExtractor([*strategies, *self.strategies])

    def extract(
        self,
        payload: Optional[DetailPayload],
        end_hint: Optional[str] = None,
    ) -> ExtractionResult:
        if payload is None:
            return ExtractionResult()

        for strategy in self.strategies:
            result = strategy(payload, end_hint)
            if result is not None and not result.is_empty:
                logger.debug(f"Extracted by {strategy.__name__}: {result}")
                return result

        return ExtractionResult()
