"""
pytest 설정 및 공통 픽스처

테스트에서 사용되는 공통 설정과 목 객체를 정의합니다.
실제 네트워크 접속 없이 aiohttp 세션을 흉내 내는 FakeSession을 제공합니다.
"""

from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pytest
from prometheus_client import CollectorRegistry

from notice_aggregator.config import AggregatorConfig, FetchConfig, OutputConfig
from notice_aggregator.models.notice import Kind, Notice, Source
from notice_aggregator.utils.metrics import AggregatorMetrics


TODAY = date(2025, 3, 10)


# === aiohttp 세션 목 ===

class FakeResponse:
    """aiohttp 응답 목 (async context manager)"""

    def __init__(
        self,
        body: str = "",
        status: int = 200,
        content_type: str = "text/html; charset=utf-8",
    ):
        self.body = body
        self.status = status
        self.headers = {"Content-Type": content_type}

    async def text(self, errors: str = "strict") -> str:
        return self.body

    async def read(self) -> bytes:
        return self.body.encode("utf-8")

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None


class _RaisingContext:
    def __init__(self, error: BaseException):
        self.error = error

    async def __aenter__(self):
        raise self.error

    async def __aexit__(self, *exc_info) -> None:
        return None


ResponseSpec = Union[FakeResponse, BaseException]


class FakeSession:
    """
    aiohttp.ClientSession 목

    URL마다 응답 목록을 등록하면 호출 순서대로 돌려줍니다.
    마지막 응답은 이후 호출에서도 반복됩니다. 등록되지 않은 URL은 404입니다.
    """

    def __init__(self, routes: Optional[Dict[str, List[ResponseSpec]]] = None):
        self.routes: Dict[str, List[ResponseSpec]] = {
            url: list(responses) for url, responses in (routes or {}).items()
        }
        self.calls: List[Dict[str, Any]] = []

    def add(self, url: str, *responses: ResponseSpec) -> None:
        self.routes.setdefault(url, []).extend(responses)

    def request(self, method: str, url: str, headers=None, data=None):
        self.calls.append({"method": method, "url": url, "headers": dict(headers or {}), "data": data})
        queue = self.routes.get(url)
        if not queue:
            return FakeResponse("not found", status=404)
        spec = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(spec, BaseException):
            return _RaisingContext(spec)
        return spec

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    def urls(self) -> List[str]:
        return [call["url"] for call in self.calls]

    async def close(self) -> None:
        self.closed = True

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


# === 설정 픽스처 ===

@pytest.fixture
def today() -> date:
    """고정 기준일"""
    return TODAY


@pytest.fixture
def fast_fetch_config() -> FetchConfig:
    """재시도 대기가 짧은 요청 설정"""
    return FetchConfig(
        max_attempts=3,
        base_delay=0.001,
        max_delay=0.002,
        attempt_timeout=1.0,
    )


@pytest.fixture
def test_config(tmp_path: Path) -> AggregatorConfig:
    """임시 디렉토리에 출력하는 수집기 설정"""
    return AggregatorConfig(
        deadline_days=20,
        output=OutputConfig(rss_dir=tmp_path / "rss"),
    )


@pytest.fixture
def metrics() -> AggregatorMetrics:
    """테스트 전용 레지스트리를 가진 메트릭"""
    return AggregatorMetrics(namespace="test", registry=CollectorRegistry())


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


# === 모델 픽스처 ===

def _make_notice(
    title: str = "AI 해커톤",
    source: Source = Source.DACON,
    kind: Kind = Kind.CONTEST,
    url: Optional[str] = None,
    start: Optional[str] = "2025-03-01",
    end: Optional[str] = "2025-03-20",
    organizer: Optional[str] = None,
    field: Optional[str] = None,
) -> Notice:
    """테스트용 Notice 생성"""
    return Notice(
        source=source,
        kind=kind,
        title=title,
        url=url or f"https://example.com/{abs(hash(title)) % 100000}",
        start=start,
        end=end,
        organizer=organizer,
        field=field,
    )


@pytest.fixture
def sample_notice() -> Notice:
    """샘플 공고"""
    return _make_notice(
        title="AI 해커톤",
        url="https://dacon.io/competitions/official/236000",
        organizer="데이콘",
        field="IT/SW",
    )


@pytest.fixture
def sample_notices() -> List[Notice]:
    """여러 소스의 샘플 공고"""
    return [
        _make_notice("보안 캠프", Source.WEVITY, Kind.ACTIVITY,
                    url="https://www.wevity.com/?c=active&ix=1", start="2025-03-05", end="2025-03-25"),
        _make_notice("SW 공모전", Source.CAMPUSPICK, Kind.CONTEST,
                    url="https://www.campuspick.com/contest/view?id=7", start="2025-03-05", end="2025-03-15"),
        _make_notice("데이터 경진대회", Source.DACON, Kind.CONTEST,
                    url="https://dacon.io/competitions/official/236001", start=None, end="2025-03-28"),
    ]


@pytest.fixture
def notice_factory():
    """Notice 생성 함수"""
    return _make_notice


@pytest.fixture
def response_factory():
    """FakeResponse 생성 함수"""
    return FakeResponse
