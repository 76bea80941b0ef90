"""
도메인 예외 정의

공고 수집/정규화 과정에서 발생하는 예외를 정의합니다.
모든 예외는 NoticeAggregatorException을 상속하며 details 딕셔너리로 부가 정보를 전달합니다.
"""

from typing import Optional, Any


class NoticeAggregatorException(Exception):
    """
    기본 예외 클래스

    모든 notice_aggregator 예외의 기본 클래스입니다.
    상세 정보를 담을 수 있는 details 딕셔너리를 제공합니다.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class InvalidNoticeException(NoticeAggregatorException):
    """
    유효하지 않은 공고 데이터 예외

    제목/URL 누락 등 Notice 불변식을 위반할 때 발생합니다.

    Attributes:
        field_name: 오류가 발생한 필드명
        invalid_value: 유효하지 않은 값

    Examples:
        >>> raise InvalidNoticeException(
        ...     "title must not be empty",
        ...     field_name="title",
        ...     invalid_value="   "
        ... )
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        invalid_value: Any = None,
    ):
        details = {}
        if field_name:
            details["field_name"] = field_name
        if invalid_value is not None:
            details["invalid_value"] = str(invalid_value)

        super().__init__(message, details)
        self.field_name = field_name
        self.invalid_value = invalid_value


class FetchException(NoticeAggregatorException):
    """
    HTTP 요청 실패

    비정상 상태 코드, 빈 본문 등 한 번의 요청 시도가 실패했을 때 발생합니다.
    ResilientFetcher 내부에서 재시도 대상으로 사용됩니다.

    Attributes:
        url: 요청 URL
        status: HTTP 상태 코드 (응답이 있었던 경우)
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status: Optional[int] = None,
    ):
        details: dict = {}
        if url:
            details["url"] = url
        if status is not None:
            details["status"] = status

        super().__init__(message, details)
        self.url = url
        self.status = status


class BlockedResponseException(FetchException):
    """
    봇 차단 응답

    403/503 응답이나 챌린지 페이지 마커가 포함된 본문을 받았을 때 발생합니다.
    네트워크 오류와 동일하게 재시도됩니다.

    Examples:
        >>> raise BlockedResponseException(
        ...     "Challenge page detected",
        ...     url="https://www.wevity.com/?c=find&gp=1",
        ...     status=503
        ... )
    """
    pass


class MalformedPayloadException(NoticeAggregatorException):
    """
    응답 형식 오류

    JSON을 기대한 응답이 다른 Content-Type이거나 디코딩할 수 없을 때 발생합니다.
    해당 페이지/요청만 포기하고 크롤링은 계속됩니다.

    Attributes:
        url: 요청 URL
        content_type: 응답 Content-Type
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        content_type: Optional[str] = None,
    ):
        details = {}
        if url:
            details["url"] = url
        if content_type:
            details["content_type"] = content_type

        super().__init__(message, details)
        self.url = url
        self.content_type = content_type


class ConfigurationException(NoticeAggregatorException):
    """
    설정 오류

    잘못된 설정 값이나 필수 설정 누락 시 발생합니다.

    Examples:
        >>> raise ConfigurationException("Invalid env value: TO_WEVITY=abc")
    """
    pass


class FeedWriteException(NoticeAggregatorException):
    """
    피드 저장 실패

    RSS 파일을 쓰지 못했을 때 발생합니다. 다른 피드 저장에는 영향을 주지 않습니다.

    Attributes:
        path: 출력 파일 경로
    """

    def __init__(self, message: str, path: Optional[str] = None):
        details = {"path": path} if path else {}
        super().__init__(message, details)
        self.path = path
