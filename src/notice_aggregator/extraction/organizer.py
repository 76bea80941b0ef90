"""주최/주관 추출 유틸리티"""

import re
from typing import Any, Iterable, List, Optional


ORGANIZER_SEPARATOR = " / "

ORGANIZER_KEYS = (
    "company", "company_name", "company1", "company2", "company3",
    "org", "organization", "host", "hostName", "organizer",
    "sponsor", "hostOrg", "host_org",
)

_LABELED = re.compile(r"(?:주최|주관)\s*[:：]?\s*([^\n]+)")
_DELIMITERS = re.compile(r"[/|·,]")


def join_organizers(values: Iterable[str]) -> Optional[str]:
    """
    공백 제거 후 중복 없이 처음 나온 순서대로 결합

    Examples:
        >>> join_organizers(["A재단", " B기관 ", "A재단"])
        'A재단 / B기관'
    """
    parts: List[str] = []
    for value in values:
        text = value.strip()
        if text and text not in parts:
            parts.append(text)
    return ORGANIZER_SEPARATOR.join(parts) if parts else None


def first_organizer(node: Any) -> Optional[str]:
    """
    JSON 객체에서 알려진 주최 키를 순서대로 탐색

    값이 문자열이면 그대로, 문자열 배열이면 결합해서 반환합니다.
    """
    if not isinstance(node, dict):
        return None
    for key in ORGANIZER_KEYS:
        value = node.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, list):
            joined = join_organizers(v for v in value if isinstance(v, str))
            if joined:
                return joined
    return None


def organizer_from_text(text: str) -> Optional[str]:
    """
    '주최: A / B' 형태의 라벨 문구에서 주최 추출

    라벨 뒤 줄 끝까지를 /, |, ·, 쉼표로 나눠 결합합니다.
    """
    if not text:
        return None
    match = _LABELED.search(text)
    if not match:
        return None
    return join_organizers(_DELIMITERS.split(match.group(1)))
