"""데이터 모델 패키지"""

from notice_aggregator.models.crawl import (
    RawEntry,
    StructuredPayload,
    DocumentPayload,
    TextPayload,
    DetailPayload,
    ExtractionResult,
    CrawlBudget,
    CrawlStatistics,
)
from notice_aggregator.models.notice import (
    Notice,
    Source,
    Kind,
    infer_kind_from_label,
)

__all__ = [
    "RawEntry",
    "StructuredPayload",
    "DocumentPayload",
    "TextPayload",
    "DetailPayload",
    "ExtractionResult",
    "CrawlBudget",
    "CrawlStatistics",
    "Notice",
    "Source",
    "Kind",
    "infer_kind_from_label",
]
