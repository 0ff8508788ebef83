"""Search 질의 처리 서비스

원시 요청 파라미터(q, mode, limit, types)를 명시적으로 파싱하고 검증하여
SearchQuery로 만든다. 알 수 없는 문자열을 열거형으로 암묵 변환하지 않는다.
"""

from typing import Iterable, Optional, Tuple, Union

import structlog

from .errors import SearchBadRequestError
from .schema import EntityType, SearchMode, SearchQuery

logger = structlog.get_logger(__name__)

MIN_LIMIT = 1
MAX_LIMIT = 100
DEFAULT_LIMIT = 20

_ENTITY_TYPES_BY_VALUE = {entity_type.value: entity_type for entity_type in EntityType}
_SEARCH_MODES_BY_VALUE = {mode.value: mode for mode in SearchMode}


def parse_search_mode(raw: Union[str, SearchMode, None]) -> Optional[SearchMode]:
    """검색 모드 파싱

    Returns:
        유효한 모드 또는 None (거부)
    """
    if isinstance(raw, SearchMode):
        return raw
    if raw is None:
        return None
    return _SEARCH_MODES_BY_VALUE.get(raw.strip().lower())


def parse_entity_types(
    raw: Union[str, Iterable[Union[str, EntityType]], None]
) -> Optional[Tuple[EntityType, ...]]:
    """유형 필터 파싱

    쉼표 구분 문자열 또는 문자열 목록을 받는다. 알 수 없는 토큰은 버리고,
    남는 것이 없으면 None(제한 없음)을 반환한다. 결과 순서는 입력 순서, 중복 제거.
    """
    if raw is None:
        return None

    tokens = raw.split(",") if isinstance(raw, str) else list(raw)

    parsed = []
    dropped = []
    for token in tokens:
        if isinstance(token, EntityType):
            entity_type = token
        else:
            entity_type = _ENTITY_TYPES_BY_VALUE.get(str(token).strip())
        if entity_type is None:
            dropped.append(token)
        elif entity_type not in parsed:
            parsed.append(entity_type)

    if dropped:
        logger.debug("알 수 없는 유형 토큰 제거", dropped=dropped)

    return tuple(parsed) or None


def clamp_limit(raw: Union[int, str, None], default: int = DEFAULT_LIMIT) -> int:
    """결과 개수를 [1, 100] 범위로 보정 (범위 밖 값은 거부하지 않고 보정)"""
    if raw is None or raw == "":
        value = default
    else:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            logger.debug("정수가 아닌 limit, 기본값 사용", limit=raw, default=default)
            value = default

    return min(max(MIN_LIMIT, value), MAX_LIMIT)


class SearchQueryProcessor:
    """검색 질의 처리 전용 서비스"""

    def __init__(self, default_limit: int = DEFAULT_LIMIT):
        self.default_limit = clamp_limit(default_limit)

    def search_query_process(
        self,
        text: Optional[str],
        mode: Union[str, SearchMode, None] = None,
        limit: Union[int, str, None] = None,
        types: Union[str, Iterable[Union[str, EntityType]], None] = None
    ) -> SearchQuery:
        """원시 파라미터를 검증된 SearchQuery로 변환

        Args:
            text: 검색어
            mode: keyword | semantic (미지정/알 수 없으면 keyword)
            limit: 결과 개수 (범위 밖이면 보정)
            types: 유형 필터

        Returns:
            SearchQuery

        Raises:
            SearchBadRequestError: 공백 제거 후 검색어가 비어 있는 경우
        """
        query_text = self.search_query_normalize(text)
        if not query_text:
            raise SearchBadRequestError("missing query")

        parsed_mode = parse_search_mode(mode)
        if parsed_mode is None:
            if mode:
                logger.warning("알 수 없는 검색 모드, keyword로 처리", mode=str(mode))
            parsed_mode = SearchMode.KEYWORD

        return SearchQuery(
            text=query_text,
            mode=parsed_mode,
            limit=clamp_limit(limit, self.default_limit),
            types=parse_entity_types(types),
        )

    def search_query_normalize(self, text: Optional[str]) -> str:
        """검색어 앞뒤 공백 제거"""
        return (text or "").strip()
