"""
ParserUtils 테스트

파싱 유틸리티의 기능을 검증합니다.
네트워크 없이 순수 Python으로 테스트 가능합니다.
"""

import pytest

from notice_aggregator.utils.parser import ParserUtils


class TestCleanText:
    """clean_text 메서드 테스트"""

    def test_clean_simple_spaces(self):
        """단순 공백 정리"""
        result = ParserUtils.clean_text("  hello   world  ")
        assert result == "hello world"

    def test_clean_newlines(self):
        """줄바꿈 정리"""
        result = ParserUtils.clean_text("line1\n\n  line2")
        assert result == "line1 line2"

    def test_clean_nbsp(self):
        """NBSP 정리"""
        result = ParserUtils.clean_text("주최\u00a0:\u00a0\u00a0데이콘")
        assert result == "주최 : 데이콘"

    def test_clean_empty_string(self):
        assert ParserUtils.clean_text("") == ""

    def test_clean_none_like(self):
        assert ParserUtils.clean_text(None) == ""


class TestContainsAny:
    """contains_any 메서드 테스트"""

    def test_case_insensitive(self):
        assert ParserUtils.contains_any("[AI] 해커톤 참가자 모집", ["ai", "sw"])
        assert ParserUtils.contains_any("Security Camp", ["SECURITY"])

    def test_korean_keyword(self):
        assert ParserUtils.contains_any("정보보호 캠프", ["보안", "정보보호"])

    def test_no_match(self):
        assert not ParserUtils.contains_any("요리 경연대회", ["ai", "sw"])

    @pytest.mark.parametrize("text", ["", None, "   "])
    def test_empty_text(self, text):
        assert not ParserUtils.contains_any(text, ["ai"])


class TestAbsoluteUrl:
    """absolute_url 메서드 테스트"""

    def test_query_only(self):
        """쿼리만 있는 상대 경로"""
        result = ParserUtils.absolute_url("?c=find&ix=1", "https://www.wevity.com/")
        assert result == "https://www.wevity.com/?c=find&ix=1"

    def test_relative_path(self):
        """상대 경로"""
        result = ParserUtils.absolute_url("/detail?id=1", "https://example.com/list")
        assert result == "https://example.com/detail?id=1"

    def test_absolute_url(self):
        """절대 URL은 그대로"""
        result = ParserUtils.absolute_url("https://other.com/page", "https://example.com")
        assert result == "https://other.com/page"

    def test_http_absolute(self):
        result = ParserUtils.absolute_url("http://other.com/page", "https://example.com")
        assert result == "http://other.com/page"

    def test_empty_url(self):
        assert ParserUtils.absolute_url("", "https://example.com") == ""


class TestFirstText:
    """first_text 메서드 테스트"""

    def test_first_non_blank(self):
        item = {"title": "  ", "name": " 공모전 ", "subject": "다른 값"}
        assert ParserUtils.first_text(item, ("title", "name", "subject")) == "공모전"

    def test_non_string_ignored(self):
        assert ParserUtils.first_text({"title": 3}, ("title",)) is None

    def test_non_dict(self):
        assert ParserUtils.first_text(["title"], ("title",)) is None


class TestFirstId:
    """first_id 메서드 테스트"""

    @pytest.mark.parametrize("item,expected", [
        ({"id": 42}, "42"),
        ({"id": " 42 "}, "42"),
        ({"id": "", "idx": 7}, "7"),
        ({"id": True, "aid": "a1"}, "a1"),
        ({"name": "x"}, None),
        (None, None),
    ])
    def test_ids(self, item, expected):
        assert ParserUtils.first_id(item, ("id", "idx", "aid")) == expected


class TestFindArray:
    """find_array 메서드 테스트"""

    KEYS = ("items", "list", "data")

    def test_root_array(self):
        assert ParserUtils.find_array([1, 2], self.KEYS) == [1, 2]

    def test_known_key(self):
        assert ParserUtils.find_array({"total": 1, "items": [{"id": 1}]}, self.KEYS) == [{"id": 1}]

    def test_known_key_preferred_over_other_lists(self):
        data = {"tags": ["a"], "list": [{"id": 1}]}
        assert ParserUtils.find_array(data, self.KEYS) == [{"id": 1}]

    def test_nested(self):
        data = {"result": {"page": {"data": [{"id": 1}]}}}
        assert ParserUtils.find_array(data, self.KEYS) == [{"id": 1}]

    def test_not_found(self):
        assert ParserUtils.find_array({"ok": True, "count": 0}, self.KEYS) is None
        assert ParserUtils.find_array("text", self.KEYS) is None
