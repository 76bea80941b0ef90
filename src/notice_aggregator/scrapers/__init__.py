"""소스 어댑터 패키지"""

from notice_aggregator.scrapers.base import FeedChannel, NoticeSource, SourceAdapter
from notice_aggregator.scrapers.campuspick import CampuspickKindAdapter, CampuspickSource
from notice_aggregator.scrapers.dacon import DaconSource
from notice_aggregator.scrapers.wevity import WevityListAdapter, WevitySource

__all__ = [
    "FeedChannel",
    "NoticeSource",
    "SourceAdapter",
    "CampuspickKindAdapter",
    "CampuspickSource",
    "DaconSource",
    "WevityListAdapter",
    "WevitySource",
]
