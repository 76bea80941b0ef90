"""
공모전·대외활동 수집기 패키지

여러 공고 사이트(위비티, 캠퍼스픽, 데이콘)에서 목록과 상세 정보를 수집하여
마감이 임박한 공고를 RSS 피드로 제공합니다.

주요 기능:
- 시간 예산과 동시성 상한이 있는 목록 → 상세 수집
- 구조화 데이터 / 스크립트 블록 / 본문 텍스트 순서의 필드 추출
- 소스 간 중복 제거 및 결정적 정렬
- 소스별 타임아웃 (실패한 소스는 건너뜀)
- interval/cron 스케줄링 지원
"""

__version__ = "1.0.0"
__author__ = "Your Name"

from notice_aggregator.aggregator import AggregationResult, NoticeAggregator
from notice_aggregator.config import AggregatorConfig
from notice_aggregator.models.notice import Kind, Notice, Source

__all__ = [
    "AggregationResult",
    "AggregatorConfig",
    "Kind",
    "Notice",
    "NoticeAggregator",
    "Source",
]
