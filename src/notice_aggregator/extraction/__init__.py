"""필드 추출 패키지"""

from notice_aggregator.extraction.dates import (
    canonicalize_date,
    normalize_date,
    parse_date_range,
    parse_iso_date,
    parse_period_value,
)
from notice_aggregator.extraction.extractor import FieldExtractor
from notice_aggregator.extraction.strategies import (
    DEFAULT_STRATEGIES,
    free_text,
    script_block_match,
    structured_lookup,
)

__all__ = [
    "canonicalize_date",
    "normalize_date",
    "parse_date_range",
    "parse_iso_date",
    "parse_period_value",
    "FieldExtractor",
    "DEFAULT_STRATEGIES",
    "free_text",
    "script_block_match",
    "structured_lookup",
]
