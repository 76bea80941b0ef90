"""
RSS 피드 저장 모듈

정렬된 Notice 목록을 RSS 2.0 XML 파일로 저장합니다.
항목 순서는 입력 순서를 그대로 따릅니다.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Optional, Sequence, Union

from notice_aggregator.exceptions import FeedWriteException
from notice_aggregator.models.notice import Notice
from notice_aggregator.scrapers.base import FeedChannel
from notice_aggregator.utils.logger import get_logger

logger = get_logger(__name__)


def to_rfc2822(value: Optional[str]) -> Optional[str]:
    """
    YYYY-MM-DD → RFC 2822 (UTC 자정)

    Examples:
        >>> to_rfc2822("2025-03-01")
        'Sat, 01 Mar 2025 00:00:00 +0000'
    """
    if not value:
        return None
    try:
        day = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return None
    return format_datetime(day.replace(tzinfo=timezone.utc))


class RssFeedWriter:
    """
    RSS 2.0 파일 저장소

    Features:
        - 항목당 <item> 하나 (입력 순서 유지)
        - description: 주최/기간/분야 요약
        - pubDate: 시작일 → 마감일 → 현재 시각
        - category: 공고 종류 라벨 + 소스 이름
        - 상위 디렉토리 자동 생성
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def build(self, notices: Sequence[Notice], channel: FeedChannel) -> ET.ElementTree:
        """RSS XML 트리 생성"""
        rss = ET.Element("rss", version="2.0")
        channel_el = ET.SubElement(rss, "channel")
        ET.SubElement(channel_el, "title").text = channel.title
        ET.SubElement(channel_el, "link").text = channel.link
        ET.SubElement(channel_el, "description").text = channel.description

        now = format_datetime(datetime.now(timezone.utc))
        for notice in notices:
            item = ET.SubElement(channel_el, "item")
            ET.SubElement(item, "title").text = notice.title
            ET.SubElement(item, "link").text = notice.url
            ET.SubElement(item, "description").text = self.describe(notice)
            ET.SubElement(item, "pubDate").text = (
                to_rfc2822(notice.start) or to_rfc2822(notice.end) or now
            )
            ET.SubElement(item, "category").text = notice.kind_label
            ET.SubElement(item, "category").text = notice.source.value

        return ET.ElementTree(rss)

    @staticmethod
    def describe(notice: Notice) -> str:
        return (
            f"주최: {notice.organizer or '-'}<br>"
            f"기간: {notice.start or '-'} ~ {notice.end or '-'}<br>"
            f"분야: {notice.field or '-'}"
        )

    def write(
        self,
        notices: Sequence[Notice],
        channel: FeedChannel,
        path: Union[str, Path],
    ) -> Path:
        """
        RSS 파일 저장

        Args:
            notices: 정렬된 Notice 목록
            channel: 채널 메타데이터
            path: 출력 경로

        Returns:
            저장된 파일 경로

        Raises:
            FeedWriteException: 파일을 쓸 수 없는 경우
        """
        path = Path(path)
        tree = self.build(notices, channel)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tree.write(path, encoding=self.encoding, xml_declaration=True)
        except OSError as e:
            raise FeedWriteException(f"Failed to write feed: {e}", path=str(path))

        logger.debug(f"RSS 저장: {path} ({len(notices)}건)")
        return path
