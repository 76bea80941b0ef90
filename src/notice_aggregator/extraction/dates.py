"""
날짜 정규화 및 기간 파싱

모든 날짜 문자열은 canonicalize_date()를 거쳐 YYYY-MM-DD 형태로 통일됩니다.
자유 텍스트의 기간 표기(숫자 범위, 한국어 월/일 범위, 단일 마감일)는
parse_date_range()가 순서대로 시도합니다.
"""

import re
from datetime import date, datetime
from typing import Optional, Tuple


DateRange = Tuple[Optional[str], Optional[str]]

_YMD_PREFIX = re.compile(r"^\s*(\d{4})\s*[-./년]\s*(\d{1,2})\s*[-./월]\s*(\d{1,2})")

_NUMERIC_RANGE = re.compile(
    r"(20\d{2}[-./]\d{1,2}[-./]\d{1,2})\s*[~\-–]\s*(20\d{2}[-./]\d{1,2}[-./]\d{1,2})"
)

_KOREAN_RANGE = re.compile(
    r"(?:(?P<y1>20\d{2})\s*년\s*)?(?P<m1>\d{1,2})\s*월\s*(?P<d1>\d{1,2})\s*일"
    r"(?:\s*\([^)]*\))?\s*[~\-–]\s*"
    r"(?:(?P<y2>20\d{2})\s*년\s*)?(?P<m2>\d{1,2})\s*월\s*(?P<d2>\d{1,2})\s*일"
)

# 단일 날짜는 마감 표지가 붙은 경우에만 종료일로 인정
_KOREAN_DEADLINE = re.compile(
    r"(?:(?P<y>20\d{2})\s*년\s*)?(?P<m>\d{1,2})\s*월\s*(?P<d>\d{1,2})\s*일"
    r"(?:\s*\([^)]*\))?\s*(?:접수마감|마감|까지)"
)


def canonicalize_date(value: str) -> str:
    """
    날짜 문자열을 YYYY-MM-DD로 정규화

    연-월-일 접두가 인식되면 월/일을 0으로 채워 반환합니다.
    그렇지 않으면 숫자와 구분자만 남기고 구분자를 '-'로 통일한 뒤
    앞 10자로 자릅니다. 10자보다 짧으면 그대로 반환합니다
    (호출자는 파싱 불가로 취급해야 함).

    Args:
        value: 원본 날짜 문자열

    Returns:
        정규화된 문자열

    Examples:
        >>> canonicalize_date("2025.3.1")
        '2025-03-01'
        >>> canonicalize_date("2025-03-01 10:00:00")
        '2025-03-01'
    """
    text = (value or "").strip()
    match = _YMD_PREFIX.match(text)
    if match:
        year, month, day = match.groups()
        return f"{int(year):04d}-{int(month):02d}-{int(day):02d}"

    kept = "".join(ch for ch in text if ch.isdigit() or ch in "-./")
    kept = kept.replace(".", "-").replace("/", "-")
    if len(kept) >= 10:
        return kept[:10]
    return kept


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """YYYY-MM-DD 문자열을 date로 변환 (실패 시 None)"""
    if not value or len(value) < 10:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def normalize_date(value: Optional[str]) -> Optional[str]:
    """
    정규화 후 실제 달력 날짜인 경우에만 문자열 반환

    Examples:
        >>> normalize_date("2025/02/30") is None
        True
    """
    if value is None:
        return None
    canonical = canonicalize_date(str(value))
    if parse_iso_date(canonical) is None:
        return None
    return canonical


def parse_period_value(value: str) -> DateRange:
    """'2025-03-01 ~ 2025-03-31' 형태의 기간 값을 (시작, 종료)로 분리"""
    parts = value.split("~")
    start = normalize_date(parts[0]) if parts and parts[0].strip() else None
    end = normalize_date(parts[1]) if len(parts) > 1 and parts[1].strip() else None
    return start, end


def _hint_year(end_hint: Optional[str], today: Optional[date]) -> int:
    if end_hint and len(end_hint) >= 4 and end_hint[:4].isdigit():
        return int(end_hint[:4])
    return (today or date.today()).year


def _ymd(year: int, month: str, day: str) -> str:
    return f"{year:04d}-{int(month):02d}-{int(day):02d}"


def parse_date_range(
    text: str,
    end_hint: Optional[str] = None,
    today: Optional[date] = None,
) -> Optional[DateRange]:
    """
    자유 텍스트에서 기간 추출

    다음 순서로 시도하며 처음 일치한 결과를 반환합니다.

    1. 숫자 범위: 2025.03.01 ~ 2025.03.31
    2. 한국어 월/일 범위: (2025년) 3월 10일(월) ~ (2025년) 4월 2일(수)
       - 종료 연도: 명시값 > end_hint 연도 > 올해
       - 시작 연도: 명시값 > 종료 연도, 단 양쪽 모두 연도가 없고
         시작 월이 종료 월보다 크면 종료 연도 - 1
    3. 단일 날짜 + 마감 표지(마감/까지/접수마감): 종료일만 반환

    Args:
        text: 검색 대상 텍스트
        end_hint: 연도 추론에 사용할 종료일 힌트 (YYYY-MM-DD)
        today: 기준일 (테스트용, 기본 오늘)

    Returns:
        (시작, 종료) 튜플 또는 None (일치 없음)
    """
    if not text:
        return None

    match = _NUMERIC_RANGE.search(text)
    if match:
        return canonicalize_date(match.group(1)), canonicalize_date(match.group(2))

    match = _KOREAN_RANGE.search(text)
    if match:
        y1, y2 = match.group("y1"), match.group("y2")
        end_year = int(y2) if y2 else _hint_year(end_hint, today)
        start_year = int(y1) if y1 else end_year
        if not y1 and not y2 and int(match.group("m1")) > int(match.group("m2")):
            start_year = end_year - 1
        return (
            _ymd(start_year, match.group("m1"), match.group("d1")),
            _ymd(end_year, match.group("m2"), match.group("d2")),
        )

    match = _KOREAN_DEADLINE.search(text)
    if match:
        year = int(match.group("y")) if match.group("y") else _hint_year(end_hint, today)
        return None, _ymd(year, match.group("m"), match.group("d"))

    return None
