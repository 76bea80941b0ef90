"""
dates.py 단위 테스트

날짜 정규화와 자유 텍스트 기간 파싱을 테스트합니다.
"""

from datetime import date

import pytest

from notice_aggregator.extraction.dates import (
    canonicalize_date,
    normalize_date,
    parse_date_range,
    parse_iso_date,
    parse_period_value,
)


class TestCanonicalizeDate:
    """canonicalize_date 테스트"""

    @pytest.mark.parametrize("raw,expected", [
        ("2025.3.1", "2025-03-01"),
        ("2025/03/01", "2025-03-01"),
        ("2025-03-01T09:00:00", "2025-03-01"),
        ("2025년 3월 1일", "2025-03-01"),
        ("  2025. 03. 01.  ", "2025-03-01"),
    ])
    def test_ymd_prefix(self, raw: str, expected: str) -> None:
        """연-월-일 접두 인식"""
        assert canonicalize_date(raw) == expected

    def test_fallback_keeps_digits_and_separators(self) -> None:
        """접두 인식 실패 시 숫자/구분자만 남기고 10자로 자름"""
        assert canonicalize_date("마감 2025.03.01") == "2025-03-01"
        assert canonicalize_date("Date: 2025/03/01 10:00") == "2025-03-01"

    def test_short_value_returned_as_is(self) -> None:
        """10자 미만은 그대로 (파싱 불가)"""
        assert canonicalize_date("3/1") == "3-1"
        assert parse_iso_date(canonicalize_date("3/1")) is None

    def test_empty(self) -> None:
        assert canonicalize_date("") == ""


class TestNormalizeDate:
    """normalize_date 테스트"""

    def test_valid(self) -> None:
        assert normalize_date("2025.03.31") == "2025-03-31"

    def test_impossible_calendar_date(self) -> None:
        """달력에 없는 날짜는 None"""
        assert normalize_date("2025-02-30") is None

    def test_none(self) -> None:
        assert normalize_date(None) is None

    def test_garbage(self) -> None:
        assert normalize_date("상시모집") is None


class TestParsePeriodValue:
    """parse_period_value 테스트"""

    def test_full_range(self) -> None:
        assert parse_period_value("2025-03-01 ~ 2025-03-31") == ("2025-03-01", "2025-03-31")

    def test_open_start(self) -> None:
        assert parse_period_value(" ~ 2025.3.31") == (None, "2025-03-31")

    def test_single_value(self) -> None:
        assert parse_period_value("2025-03-01") == ("2025-03-01", None)


class TestParseDateRange:
    """parse_date_range 테스트"""

    def test_numeric_range(self) -> None:
        text = "접수기간: 2025.03.01 ~ 2025.03.31 (자정까지)"
        assert parse_date_range(text) == ("2025-03-01", "2025-03-31")

    def test_numeric_range_with_dash(self) -> None:
        assert parse_date_range("2025-3-1 - 2025-3-9") == ("2025-03-01", "2025-03-09")

    def test_korean_range_with_weekdays(self) -> None:
        """요일 괄호가 있어도 인식, 연도는 end_hint에서"""
        text = "모집 기간 3월 10일(월) ~ 4월 2일(수)"
        assert parse_date_range(text, end_hint="2025-04-02") == ("2025-03-10", "2025-04-02")

    def test_korean_range_year_rollover(self) -> None:
        """시작 월이 종료 월보다 크면 시작 연도는 전년도"""
        text = "12월 20일 ~ 1월 5일"
        assert parse_date_range(text, end_hint="2026-01-05") == ("2025-12-20", "2026-01-05")

    def test_korean_range_explicit_years(self) -> None:
        text = "2024년 12월 20일 ~ 2025년 1월 5일"
        assert parse_date_range(text) == ("2024-12-20", "2025-01-05")

    def test_korean_range_explicit_end_year_only(self) -> None:
        """종료 연도만 명시되면 시작 연도도 같은 해"""
        text = "3월 1일 ~ 2025년 3월 9일"
        assert parse_date_range(text, today=date(2030, 1, 1)) == ("2025-03-01", "2025-03-09")

    def test_korean_range_uses_today_without_hint(self) -> None:
        text = "3월 1일 ~ 3월 9일"
        assert parse_date_range(text, today=date(2027, 6, 1)) == ("2027-03-01", "2027-03-09")

    def test_korean_deadline(self) -> None:
        """마감 표지가 붙은 단일 날짜 → 종료일만"""
        assert parse_date_range("3월 31일(월) 마감", today=date(2025, 1, 1)) == (None, "2025-03-31")
        assert parse_date_range("2025년 4월 2일까지 접수") == (None, "2025-04-02")

    def test_single_date_without_marker_is_ignored(self) -> None:
        """마감 표지 없는 단일 날짜는 무시"""
        assert parse_date_range("발표일 3월 31일") is None

    def test_numeric_range_wins_over_korean(self) -> None:
        text = "3월 1일 ~ 3월 9일\n2025.04.01 ~ 2025.04.30"
        assert parse_date_range(text) == ("2025-04-01", "2025-04-30")

    def test_no_match(self) -> None:
        assert parse_date_range("상시 모집") is None
        assert parse_date_range("") is None
