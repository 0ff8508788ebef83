"""Search 모듈 예외 정의

BadRequest: 잘못된 요청 (400)
VectorProviderError: 복구 가능한 벡터 제공자 실패 (키워드 검색 폴백)
그 외 예외는 잡지 않고 전파 (500)
"""


class SearchError(Exception):
    """검색 모듈 기본 예외"""


class SearchBadRequestError(SearchError, ValueError):
    """검색 요청 검증 실패"""


class VectorProviderError(SearchError):
    """벡터 제공자 설정/연결/일시 장애

    오케스트레이터가 semantic 모드에서만 잡아서 키워드 검색으로 폴백한다.
    이 계층에서는 재시도하지 않는다.
    """

    def __init__(self, reason: str, provider: str = "none", retryable: bool = True):
        super().__init__(reason)
        self.reason = reason
        self.provider = provider
        # 자격 증명 누락 같은 설정 오류는 재시도해도 의미 없음
        self.retryable = retryable

    @property
    def reason_code(self) -> str:
        """통계 집계용 고정 사유 코드 (제공자:원인 예외 클래스)"""
        cause = self.__cause__ if self.__cause__ is not None else self
        return f"{self.provider}:{type(cause).__name__}"

    def __repr__(self) -> str:
        return f"VectorProviderError(reason={self.reason!r}, provider={self.provider!r})"
