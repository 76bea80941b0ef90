"""
필드 추출 전략

각 전략은 (payload, end_hint) -> Optional[ExtractionResult] 형태의 순수 함수입니다.
처리할 수 없는 페이로드이거나 아무 필드도 찾지 못하면 None을 반환합니다.
"""

import re
from typing import Any, Callable, List, Optional

from bs4 import BeautifulSoup, NavigableString

from notice_aggregator.extraction.dates import canonicalize_date, parse_date_range
from notice_aggregator.extraction.organizer import (
    first_organizer,
    join_organizers,
    organizer_from_text,
)
from notice_aggregator.models.crawl import (
    DetailPayload,
    DocumentPayload,
    ExtractionResult,
    StructuredPayload,
    TextPayload,
)


Strategy = Callable[[DetailPayload, Optional[str]], Optional[ExtractionResult]]

START_KEYS = ("startDate", "start_date", "period_start", "beginDate")
END_KEYS = ("endDate", "end_date", "deadline", "period_end", "dueDate")

SECTION_KEYWORDS = ("접수 기간", "모집 기간", "활동 기간", "교육 기간", "신청 기간", "운영 기간")

_SCRIPT_DATE = r"""["']?{key}["']?\s*:\s*["'](\d{{4}}[-./]\d{{1,2}}[-./]\d{{1,2}})"""
_SCRIPT_START = re.compile(_SCRIPT_DATE.format(key="startDate"))
_SCRIPT_END = re.compile(_SCRIPT_DATE.format(key="endDate"))
_SCRIPT_COMPANY = re.compile(r"""["']?company\d*["']?\s*:\s*["']([^"']+)["']""")


def _result_or_none(
    start: Optional[str],
    end: Optional[str],
    organizer: Optional[str],
) -> Optional[ExtractionResult]:
    result = ExtractionResult(start=start, end=end, organizer=organizer)
    return None if result.is_empty else result


def _probe(node: Any, keys) -> Optional[str]:
    if not isinstance(node, dict):
        return None
    for key in keys:
        value = node.get(key)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def structured_lookup(
    payload: DetailPayload,
    end_hint: Optional[str] = None,
) -> Optional[ExtractionResult]:
    """
    JSON 트리에서 알려진 키 변형을 탐색

    루트를 먼저 보고, 없으면 한 단계 아래 data.* 를 봅니다.
    필드마다 처음 발견한 값을 사용합니다.
    """
    if not isinstance(payload, StructuredPayload) or not isinstance(payload.data, dict):
        return None

    root = payload.data
    nested = root.get("data") if isinstance(root.get("data"), dict) else None

    start = _probe(root, START_KEYS) or _probe(nested, START_KEYS)
    end = _probe(root, END_KEYS) or _probe(nested, END_KEYS)
    organizer = first_organizer(root) or first_organizer(nested)

    return _result_or_none(
        canonicalize_date(start) if start else None,
        canonicalize_date(end) if end else None,
        organizer,
    )


def script_block_match(
    payload: DetailPayload,
    end_hint: Optional[str] = None,
) -> Optional[ExtractionResult]:
    """
    인라인 스크립트의 startDate: "...", endDate: "...", companyN: "..." 패턴 탐색

    주최 값은 등장 순서대로 중복 제거 후 " / "로 결합합니다.
    """
    if not isinstance(payload, DocumentPayload) or not payload.scripts:
        return None

    scripts = payload.scripts
    start = _SCRIPT_START.search(scripts)
    end = _SCRIPT_END.search(scripts)
    organizer = join_organizers(_SCRIPT_COMPANY.findall(scripts))

    return _result_or_none(
        canonicalize_date(start.group(1)) if start else None,
        canonicalize_date(end.group(1)) if end else None,
        organizer,
    )


def _clean_lines(text: str) -> str:
    lines = []
    for line in text.replace("\u00a0", " ").splitlines():
        collapsed = " ".join(line.split())
        if collapsed:
            lines.append(collapsed)
    return "\n".join(lines)


def _has_section_keyword(text: str) -> bool:
    compact = text.replace(" ", "")
    return any(kw in text or kw.replace(" ", "") in compact for kw in SECTION_KEYWORDS)


def section_text(document: BeautifulSoup) -> str:
    """
    기간 관련 섹션의 텍스트만 모으고, 없으면 문서 전체 텍스트 반환

    줄 단위는 유지하고 줄 안의 공백만 정리합니다.
    """
    chunks: List[str] = []
    for section in document.select("#container .section, .section"):
        if not _has_section_keyword(section.get_text(" ")):
            continue
        for node in section.find_all(["p", "li", "dd", "div"]):
            chunks.append(node.get_text(" "))

    text = _clean_lines("\n".join(chunks))
    if not text:
        visible = (
            s for s in document.find_all(string=True)
            if type(s) is NavigableString
            and (s.parent is None or s.parent.name not in ("script", "style"))
        )
        text = _clean_lines("\n".join(visible))
    return text


def free_text(
    payload: DetailPayload,
    end_hint: Optional[str] = None,
) -> Optional[ExtractionResult]:
    """자유 텍스트에서 기간 패턴과 '주최/주관' 라벨을 탐색"""
    if isinstance(payload, DocumentPayload):
        text = section_text(payload.document)
    elif isinstance(payload, TextPayload):
        text = _clean_lines(payload.text)
    else:
        return None

    dates = parse_date_range(text, end_hint)
    start, end = dates if dates else (None, None)
    return _result_or_none(start, end, organizer_from_text(text))


DEFAULT_STRATEGIES: List[Strategy] = [structured_lookup, script_block_match, free_text]
