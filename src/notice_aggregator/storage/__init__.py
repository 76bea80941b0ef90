"""저장소 패키지"""

from notice_aggregator.storage.rss_writer import RssFeedWriter, to_rfc2822

__all__ = [
    "RssFeedWriter",
    "to_rfc2822",
]
