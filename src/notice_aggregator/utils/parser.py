"""
파싱 유틸리티

텍스트 정리, 키워드 매칭, URL 결합, JSON 트리 탐색 등 소스 어댑터가 공통으로 쓰는
순수 함수를 제공합니다. 네트워크 없이 독립적으로 테스트 가능합니다.
"""

import re
from typing import Any, Iterable, List, Optional, Sequence
from urllib.parse import urljoin


class ParserUtils:
    """
    파싱 유틸리티 클래스

    모든 메서드는 정적 메서드로 구현되어 상태를 갖지 않습니다.

    Examples:
        >>> ParserUtils.clean_text("  hello\\u00a0  world  ")
        'hello world'

        >>> ParserUtils.contains_any("[AI] 해커톤 참가자 모집", ["ai", "sw"])
        True
    """

    @staticmethod
    def clean_text(text: Optional[str]) -> str:
        """
        텍스트 정리 (공백, 줄바꿈 정규화)

        NBSP를 포함한 연속 공백/줄바꿈을 단일 공백으로 변환하고 앞뒤 공백을 제거합니다.
        """
        if not text:
            return ""
        text = text.replace("\u00a0", " ")
        return re.sub(r"\s+", " ", text).strip()

    @staticmethod
    def normalize_keyword_text(text: Optional[str]) -> str:
        """키워드 비교용: 소문자 + 공백 정리"""
        return ParserUtils.clean_text(text).lower()

    @staticmethod
    def contains_any(text: Optional[str], keywords: Iterable[str]) -> bool:
        """
        키워드 포함 여부 (대소문자/공백 무시)

        Args:
            text: 검사 대상
            keywords: 키워드 목록

        Returns:
            하나라도 포함되면 True
        """
        haystack = ParserUtils.normalize_keyword_text(text)
        if not haystack:
            return False
        return any(ParserUtils.normalize_keyword_text(kw) in haystack for kw in keywords)

    @staticmethod
    def absolute_url(url: str, base_url: str) -> str:
        """
        URL 정규화

        상대 경로를 절대 경로로 변환합니다.

        Examples:
            >>> ParserUtils.absolute_url("?c=find&ix=1", "https://www.wevity.com/")
            'https://www.wevity.com/?c=find&ix=1'
        """
        if not url:
            return ""
        if url.startswith(("http://", "https://")):
            return url
        return urljoin(base_url, url)

    @staticmethod
    def first_text(node: Any, keys: Sequence[str]) -> Optional[str]:
        """JSON 객체에서 처음으로 비어 있지 않은 문자열 값"""
        if not isinstance(node, dict):
            return None
        for key in keys:
            value = node.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    @staticmethod
    def first_id(node: Any, keys: Sequence[str]) -> Optional[str]:
        """JSON 객체에서 문자열 또는 정수 ID"""
        if not isinstance(node, dict):
            return None
        for key in keys:
            value = node.get(key)
            if isinstance(value, bool):
                continue
            if isinstance(value, int):
                return str(value)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    @staticmethod
    def find_array(node: Any, keys: Sequence[str]) -> Optional[List[Any]]:
        """
        JSON 트리에서 항목 배열 찾기

        루트가 배열이면 그대로, 아니면 알려진 키를 먼저 보고
        그래도 없으면 값들을 재귀적으로 탐색합니다.
        """
        if isinstance(node, list):
            return node
        if not isinstance(node, dict):
            return None
        for key in keys:
            value = node.get(key)
            if isinstance(value, list):
                return value
        for value in node.values():
            found = ParserUtils.find_array(value, keys)
            if found is not None:
                return found
        return None
