"""
스크레이퍼 단위 테스트

위비티/캠퍼스픽/데이콘 어댑터의 목록 파싱, 1차 필터, 상세 보완을
네트워크 없이 테스트합니다.
"""

import json
import threading
from datetime import date
from typing import Any, Dict, List
from unittest.mock import MagicMock, patch

import pytest
import requests

from notice_aggregator.config import CampuspickConfig, DaconConfig, WevityConfig
from notice_aggregator.exceptions import InvalidNoticeException, MalformedPayloadException
from notice_aggregator.models.crawl import DocumentPayload, ExtractionResult, RawEntry
from notice_aggregator.models.notice import Kind, Source
from notice_aggregator.scrapers.campuspick import CampuspickKindAdapter, matches_category
from notice_aggregator.scrapers.dacon import DaconSource, parse_items, passes_keyword_filter
from notice_aggregator.scrapers.wevity import (
    ACTIVITY_KEYWORDS,
    WevityListAdapter,
    WevitySource,
    wevity_detail_fields,
)
from notice_aggregator.utils.fetcher import ResilientFetcher

from conftest import FakeResponse, FakeSession


WEVITY_LISTING = """
<ul class="list">
  <li>
    <div class="tit"><a href="?c=find&s=1&gub=1&cidx=20&gbn=viewok&ix=101">  AI 아이디어 공모전 </a></div>
    <div class="sub-tit">분야 : IT/SW</div>
  </li>
  <li>
    <div class="hide-tit"><a href="https://www.wevity.com/?c=find&s=1&gub=1&cidx=20&gbn=viewok&ix=102">SW 개발 공모전</a></div>
  </li>
  <li><div class="tit"><a href="">링크 없음</a></div></li>
  <li><div class="tit"><a href="?ix=103">   </a></div></li>
</ul>
"""

WEVITY_DETAIL = """
<html><body>
  <input type="hidden" name="during" value="2025-03-01 ~ 2025-03-20">
  <ul class="cd-info-list">
    <li><span class="tit">분야</span> IT/SW</li>
    <li><span class="tit">주최/주관</span> 한국정보보호산업협회</li>
  </ul>
</body></html>
"""


def wevity_listing(*items: tuple) -> str:
    rows = "".join(
        f'<li><div class="tit"><a href="{href}">{title}</a></div></li>' for href, title in items
    )
    return f'<ul class="list">{rows}</ul>'


class TestWevityDetailFields:
    """위비티 상세 전용 추출 테스트"""

    def test_during_and_organizer(self) -> None:
        result = wevity_detail_fields(DocumentPayload.from_html(WEVITY_DETAIL))
        assert result == ExtractionResult(
            start="2025-03-01", end="2025-03-20", organizer="한국정보보호산업협회"
        )

    def test_page_without_fields(self) -> None:
        assert wevity_detail_fields(DocumentPayload.from_html("<p>본문</p>")) is None


class TestWevityListAdapter:
    """WevityListAdapter 테스트"""

    BASE = "https://www.wevity.com/?c=find&s=1&gub=1&cidx=20"

    def make_adapter(self, session: FakeSession, fetch_config, **kwargs) -> WevityListAdapter:
        fetcher = ResilientFetcher(session, fetch_config)
        return WevityListAdapter(fetcher, self.BASE, Kind.CONTEST, **kwargs)

    def test_page_url(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config)
        assert adapter.page_url(2) == self.BASE + "&gp=2"

    def test_parse_listing(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config)

        entries = adapter.parse_listing(WEVITY_LISTING, referer="https://ref")

        assert [e.title for e in entries] == ["AI 아이디어 공모전", "SW 개발 공모전"]
        first = entries[0]
        assert first.key == "https://www.wevity.com/?c=find&s=1&gub=1&cidx=20&gbn=viewok&ix=101"
        assert first.detail_ref == first.key
        assert first.hint("field") == "분야 : IT/SW"
        assert first.hint("referer") == "https://ref"
        assert entries[1].hint("field") is None

    def test_accepts_without_keywords(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config)
        assert adapter.accepts(RawEntry(key="k", title="요리 대회", detail_ref="r"))

    def test_accepts_with_keywords(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config, keywords=ACTIVITY_KEYWORDS)
        assert adapter.accepts(RawEntry(key="a", title="정보보호 부트캠프 모집", detail_ref="r"))
        assert not adapter.accepts(RawEntry(key="b", title="요리 교실", detail_ref="r"))

    @pytest.mark.asyncio
    async def test_list_page(self, fast_fetch_config) -> None:
        session = FakeSession({self.BASE + "&gp=1": [FakeResponse(WEVITY_LISTING)]})
        adapter = self.make_adapter(session, fast_fetch_config)

        entries = await adapter.list_page(1)

        assert len(entries) == 2
        assert session.calls[0]["headers"]["Referer"] == self.BASE

    @pytest.mark.asyncio
    async def test_list_page_failure(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config)
        assert await adapter.list_page(1) is None

    @pytest.mark.asyncio
    async def test_resolve_detail(self, fast_fetch_config) -> None:
        detail_url = "https://www.wevity.com/?c=find&ix=101"
        session = FakeSession({detail_url: [FakeResponse(WEVITY_DETAIL)]})
        adapter = self.make_adapter(session, fast_fetch_config)
        entry = RawEntry(key=detail_url, title="AI 공모전", detail_ref=detail_url,
                         hints={"referer": self.BASE + "&gp=1", "field": "IT"})

        extraction = await adapter.resolve_detail(entry)
        notice = adapter.to_notice(entry, extraction)

        assert notice.source == Source.WEVITY
        assert notice.kind == Kind.CONTEST
        assert notice.start == "2025-03-01"
        assert notice.end == "2025-03-20"
        assert notice.organizer == "한국정보보호산업협회"
        assert notice.field == "IT"

    @pytest.mark.asyncio
    async def test_failed_detail_drops_item(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config)
        entry = RawEntry(key="u", title="t", detail_ref="https://www.wevity.com/?ix=9")

        assert await adapter.resolve_detail(entry) is None


class TestWevitySource:
    """WevitySource 전체 수집 테스트"""

    @pytest.mark.asyncio
    async def test_collect(self, fast_fetch_config, today: date) -> None:
        c1 = "https://www.wevity.com/?c=find&s=1&gub=1&cidx=20"
        c2 = "https://www.wevity.com/?c=find&s=1&gub=1&cidx=21"
        activity = "https://www.wevity.com/?c=active&s=1"
        session = FakeSession({
            c1 + "&gp=1": [FakeResponse(wevity_listing(("?c=find&ix=1", "공모전 X")))],
            c2 + "&gp=1": [FakeResponse(wevity_listing(
                ("?c=find&ix=1", "공모전 X"),
                ("?c=find&ix=2", "공모전 Y"),
            ))],
            activity + "&gp=1": [FakeResponse(wevity_listing(
                ("?c=active&ix=3", "AI 부트캠프"),
                ("?c=active&ix=4", "요리 교실"),
            ))],
            "https://www.wevity.com/?c=find&ix=1": [FakeResponse(WEVITY_DETAIL)],
            "https://www.wevity.com/?c=find&ix=2": [FakeResponse(WEVITY_DETAIL)],
            "https://www.wevity.com/?c=active&ix=3": [FakeResponse(WEVITY_DETAIL)],
        })
        config = WevityConfig(
            contest_urls=[c1, c2],
            activity_url=activity,
            max_pages=1,
            page_delay=0.0,
            failure_delay=0.0,
        )
        source = WevitySource(config, fast_fetch_config, deadline_days=20, today=today)

        with patch("notice_aggregator.scrapers.wevity.create_session", return_value=session):
            notices = await source.collect()

        contests = [n for n in notices if n.kind == Kind.CONTEST]
        activities = [n for n in notices if n.kind == Kind.ACTIVITY]
        assert sorted(n.title for n in contests) == ["공모전 X", "공모전 Y"]
        assert [n.title for n in activities] == ["AI 부트캠프"]
        assert notices[-1].title == "AI 부트캠프"
        assert "https://www.wevity.com/?c=active&ix=4" not in session.urls()
        assert session.urls()[0] == "https://www.wevity.com/"


CAMPUS_ITEMS: List[Dict[str, Any]] = [
    {
        "id": 11,
        "title": "IT 서포터즈 모집",
        "startDate": "2025.03.01",
        "endDate": "2025-03-20 23:59:59",
        "company": "A사",
    },
    {"title": "ID 없음"},
    {"id": 12, "title": ""},
]

CAMPUS_DETAIL = """
<div id="container">
  <div class="section">
    <p>모집 기간 2025.03.01 ~ 2025.03.25</p>
    <p>주최: B재단</p>
  </div>
</div>
"""


class TestMatchesCategory:
    """matches_category 테스트"""

    @pytest.mark.parametrize("item", [
        {"categoryId": 108},
        {"category": "108"},
        {"categories": "101, 108"},
        {"category1": ["101", 108]},
    ])
    def test_matches(self, item) -> None:
        assert matches_category(item, "108")

    @pytest.mark.parametrize("item", [
        {"categoryId": 101},
        {"categories": "1080"},
        {"category": True},
        {},
        "108",
    ])
    def test_no_match(self, item) -> None:
        assert not matches_category(item, "108")


class TestCampuspickKindAdapter:
    """CampuspickKindAdapter 테스트"""

    def make_adapter(
        self,
        session: FakeSession,
        fetch_config,
        kind_path: str = "activity",
        **config_overrides,
    ) -> CampuspickKindAdapter:
        config = CampuspickConfig(**config_overrides)
        return CampuspickKindAdapter(ResilientFetcher(session, fetch_config), config, kind_path)

    def test_post_request(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config, "contest")

        request = adapter._list_request(2)

        assert request["method"] == "POST"
        assert request["url"] == "https://api2.campuspick.com/find/activity/list"
        assert request["data"] == "target=1&limit=100&offset=100&category=108"
        assert request["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert request["headers"]["Origin"] == "https://www.campuspick.com/"

    def test_get_request(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config, activity_method="GET", limit=20)

        request = adapter._list_request(1)

        assert request["method"] == "GET"
        assert request["data"] is None
        assert request["url"] == (
            "https://api2.campuspick.com/find/activity/list?target=2&limit=20&offset=0"
        )

    def test_parse_items(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config)

        entries = adapter.parse_items(CAMPUS_ITEMS)

        assert len(entries) == 1
        entry = entries[0]
        assert entry.key == "activity:11"
        assert entry.detail_ref == "11"
        assert entry.hint("start") == "2025-03-01"
        assert entry.hint("end") == "2025-03-20"
        assert entry.hint("organizer") == "A사"

    def test_accepts_activity_by_keyword(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config)
        assert adapter.accepts(RawEntry(key="1", title="소프트웨어 서포터즈", detail_ref="1"))
        assert not adapter.accepts(RawEntry(key="2", title="봉사 동아리", detail_ref="2"))

    def test_accepts_contest_by_category(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config, "contest")
        it = RawEntry(key="1", title="디자인 공모전", detail_ref="1", hints={"item": {"categoryId": 108}})
        other = RawEntry(key="2", title="AI 공모전", detail_ref="2", hints={"item": {"categoryId": 101}})
        assert adapter.accepts(it)
        assert not adapter.accepts(other)

    @pytest.mark.asyncio
    async def test_list_page_wrapped_array(self, fast_fetch_config) -> None:
        body = json.dumps({"result": {"items": CAMPUS_ITEMS}})
        session = FakeSession({
            "https://api2.campuspick.com/find/activity/list": [
                FakeResponse(body, content_type="application/json")
            ]
        })
        adapter = self.make_adapter(session, fast_fetch_config)

        entries = await adapter.list_page(1)

        assert [e.key for e in entries] == ["activity:11"]
        assert session.calls[0]["method"] == "POST"
        assert session.calls[0]["data"] == "target=2&limit=100&offset=0"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        FakeResponse("<html>점검 중</html>"),
        FakeResponse('{"ok": true}', content_type="application/json"),
    ])
    async def test_list_page_malformed(self, fast_fetch_config, response) -> None:
        session = FakeSession({"https://api2.campuspick.com/find/activity/list": [response]})
        adapter = self.make_adapter(session, fast_fetch_config)

        with pytest.raises(MalformedPayloadException):
            await adapter.list_page(1)

    @pytest.mark.asyncio
    async def test_complete_hints_skip_detail(self, fast_fetch_config) -> None:
        session = FakeSession()
        adapter = self.make_adapter(session, fast_fetch_config)
        entry = adapter.parse_items(CAMPUS_ITEMS)[0]

        result = await adapter.resolve_detail(entry)

        assert result == ExtractionResult(start="2025-03-01", end="2025-03-20", organizer="A사")
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_html_detail_fills_missing_fields(self, fast_fetch_config) -> None:
        session = FakeSession({
            "https://www.campuspick.com/activity/view?id=11": [FakeResponse(CAMPUS_DETAIL)]
        })
        adapter = self.make_adapter(session, fast_fetch_config)
        item = {"id": 11, "title": "IT 서포터즈", "startDate": "2025-03-01", "endDate": "2025-03-20"}
        entry = adapter.parse_items([item])[0]

        result = await adapter.resolve_detail(entry)

        # 목록 값이 우선하고 비어 있는 주최만 상세에서 채움
        assert result == ExtractionResult(start="2025-03-01", end="2025-03-20", organizer="B재단")

    @pytest.mark.asyncio
    async def test_json_detail_fallback(self, fast_fetch_config) -> None:
        session = FakeSession({
            "https://api2.campuspick.com/find/activity/view?id=11": [
                FakeResponse(json.dumps({"data": {"company": "C협회"}}),
                             content_type="application/json")
            ]
        })
        adapter = self.make_adapter(session, fast_fetch_config)
        entry = adapter.parse_items([{"id": 11, "title": "IT 서포터즈", "endDate": "2025-03-20"}])[0]

        result = await adapter.resolve_detail(entry)

        assert result == ExtractionResult(start=None, end="2025-03-20", organizer="C협회")
        assert session.urls().count("https://api2.campuspick.com/find/activity/view?id=11") == 1

    @pytest.mark.asyncio
    async def test_all_details_fail_keeps_hints(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config)
        entry = adapter.parse_items([{"id": 11, "title": "IT 서포터즈", "endDate": "2025-03-20"}])[0]

        result = await adapter.resolve_detail(entry)

        assert result == ExtractionResult(end="2025-03-20")

    def test_to_notice(self, fast_fetch_config) -> None:
        adapter = self.make_adapter(FakeSession(), fast_fetch_config, "contest")
        entry = RawEntry(key="contest:7", title="SW 공모전", detail_ref="7", hints={"kind": "contest"})

        notice = adapter.to_notice(entry, ExtractionResult(end="2025-03-15"))

        assert notice.source == Source.CAMPUSPICK
        assert notice.kind == Kind.CONTEST
        assert notice.url == "https://www.campuspick.com/contest/view?id=7"
        assert notice.end == "2025-03-15"


DACON_ITEMS: List[Dict[str, Any]] = [
    {
        "cpt_id": 236001,
        "name": "AI 경진대회",
        "period_start": "2025-03-01 10:00:00",
        "period_end": "2025-03-20 10:00:00",
    },
    {
        "cpt_id": 236002,
        "name": "요리 대회",
        "period_start": "2025-03-01 10:00:00",
        "period_end": "2025-03-20 10:00:00",
    },
    {
        "cpt_id": 236003,
        "name": "딥러닝 챌린지",
        "period_start": "2025-01-01 10:00:00",
        "period_end": "2025-06-30 10:00:00",
    },
]


def dacon_response(body: Any, content_type: str = "application/json; charset=utf-8") -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.headers = {"Content-Type": content_type}
    response.text = body if isinstance(body, str) else json.dumps(body)
    return response


class TestDaconParsing:
    """데이콘 응답 파싱 테스트"""

    def test_plain_array(self) -> None:
        assert parse_items(json.dumps(DACON_ITEMS)) == DACON_ITEMS

    def test_wrapper_key(self) -> None:
        assert parse_items(json.dumps({"data": DACON_ITEMS})) == DACON_ITEMS

    def test_any_object_array(self) -> None:
        assert parse_items(json.dumps({"total": 3, "competitions": DACON_ITEMS})) == DACON_ITEMS

    def test_non_dict_items_dropped(self) -> None:
        assert parse_items(json.dumps([1, {"name": "a"}])) == [{"name": "a"}]

    @pytest.mark.parametrize("body", ["<html>", '{"total": 3}', '"text"'])
    def test_malformed(self, body: str) -> None:
        with pytest.raises(MalformedPayloadException):
            parse_items(body)

    @pytest.mark.parametrize("item,expected", [
        ({"name": "AI 경진대회"}, True),
        ({"name": "요리", "keyword_eng": "Security"}, True),
        ({"name": "요리", "keyword": "소프트웨어"}, True),
        ({"name": "요리"}, False),
        ({}, False),
    ])
    def test_keyword_filter(self, item, expected: bool) -> None:
        assert passes_keyword_filter(item) is expected


class TestDaconSource:
    """DaconSource 테스트"""

    def make_source(self, session: MagicMock, today: date, **overrides) -> DaconSource:
        config = DaconConfig(delay=0.0, **overrides)
        return DaconSource(config, deadline_days=20, today=today, session=session)

    def test_to_notice(self, today: date) -> None:
        source = self.make_source(MagicMock(), today)

        notice = source.to_notice(DACON_ITEMS[0])

        assert notice.source == Source.DACON
        assert notice.kind == Kind.CONTEST
        assert notice.url == "https://dacon.io/competitions/official/236001"
        assert notice.start == "2025-03-01"
        assert notice.end == "2025-03-20"

    def test_to_notice_without_name(self, today: date) -> None:
        with pytest.raises(InvalidNoticeException):
            self.make_source(MagicMock(), today).to_notice({"cpt_id": 1})

    def test_collect_blocking(self, today: date, metrics) -> None:
        session = MagicMock()
        session.get.side_effect = [dacon_response(DACON_ITEMS), dacon_response([])]
        source = self.make_source(session, today)
        source.metrics = metrics

        notices = source.collect_blocking()

        # 키워드 필터와 마감 구간 필터를 모두 통과한 항목만
        assert [n.title for n in notices] == ["AI 경진대회"]
        assert session.get.call_count == 2
        first_call = session.get.call_args_list[0]
        assert first_call.kwargs["params"] == {"offset": 0, "range": 30}
        session.close.assert_not_called()
        assert metrics.registry.get_sample_value(
            "test_pages_total", {"source": "dacon", "status": "ok"}
        ) == 2

    def test_max_offset(self, today: date) -> None:
        session = MagicMock()
        session.get.return_value = dacon_response(DACON_ITEMS)
        source = self.make_source(session, today, max_offset=2)

        notices = source.collect_blocking()

        assert session.get.call_count == 3
        assert len(notices) == 3

    def test_request_failure_keeps_partial(self, today: date) -> None:
        session = MagicMock()
        session.get.side_effect = [
            dacon_response(DACON_ITEMS),
            requests.ConnectionError("reset"),
        ]

        notices = self.make_source(session, today).collect_blocking()

        assert [n.title for n in notices] == ["AI 경진대회"]
        assert session.get.call_count == 2

    def test_non_json_response_stops(self, today: date, metrics) -> None:
        session = MagicMock()
        session.get.return_value = dacon_response("<html>차단</html>", content_type="text/html")
        source = self.make_source(session, today)
        source.metrics = metrics

        assert source.collect_blocking() == []
        assert session.get.call_count == 1
        assert metrics.registry.get_sample_value(
            "test_pages_total", {"source": "dacon", "status": "failed"}
        ) == 1

    def test_malformed_json_stops(self, today: date, metrics) -> None:
        session = MagicMock()
        session.get.return_value = dacon_response('{"total": 0}')
        source = self.make_source(session, today)
        source.metrics = metrics

        assert source.collect_blocking() == []
        assert metrics.registry.get_sample_value(
            "test_errors_total", {"type": "malformed_payload"}
        ) == 1

    def test_stop_flag(self, today: date) -> None:
        session = MagicMock()
        stop = threading.Event()
        stop.set()

        assert self.make_source(session, today).collect_blocking(stop) == []
        session.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_collect_runs_in_thread(self, today: date) -> None:
        session = MagicMock()
        session.get.side_effect = [dacon_response({"data": DACON_ITEMS}), dacon_response([])]

        notices = await self.make_source(session, today).collect()

        assert [n.title for n in notices] == ["AI 경진대회"]
