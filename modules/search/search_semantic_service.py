"""Search 시맨틱 검색 서비스

질의 임베딩 → 벡터 인덱스 초과 조회 → 메타데이터 디코딩 → 유형 필터 → 점수 변환
"""

from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

import structlog
from pydantic import ValidationError

from .errors import VectorProviderError
from .provider_registry import NO_PROVIDER, ProviderState
from .schema import ALL_ENTITY_TYPES, EntityType, SemanticSearchResult, VectorMatch, VectorMatchMetadata
from .search_embedding_service import QueryEmbeddingProvider
from .search_vector_service import VectorIndex

logger = structlog.get_logger(__name__)

NO_PROVIDER_REASON = "no provider configured"

T = TypeVar("T")


def to_unified_score(similarity: float) -> int:
    """유사도(0~1)를 0~100 정수 점수로 변환"""
    return int(min(100, max(0, round(similarity * 100))))


class SemanticSearchEngine:
    """시맨틱 검색 전용 서비스"""

    def __init__(
        self,
        provider_state: ProviderState,
        embedding_provider: Optional[QueryEmbeddingProvider] = None,
        vector_index: Optional[VectorIndex] = None,
        overfetch_factor: int = 2,
        retry_attempts: int = 0
    ):
        """SemanticSearchEngine 초기화

        Args:
            provider_state: 시작 시 결정된 벡터 제공자 상태
            embedding_provider: 질의 임베딩 생성기
            vector_index: 벡터 인덱스
            overfetch_factor: 유형 필터 손실 보정용 초과 조회 배수
            retry_attempts: VectorProviderError 시 추가 시도 횟수
        """
        self.provider_state = provider_state
        self.embedding_provider = embedding_provider
        self.vector_index = vector_index
        self.overfetch_factor = max(1, overfetch_factor)
        self.retry_attempts = max(0, retry_attempts)

    # === 메인 검색 함수 ===

    async def search(
        self,
        text: str,
        limit: int,
        types: Optional[Tuple[EntityType, ...]] = None
    ) -> List[SemanticSearchResult]:
        """벡터 유사도 검색

        Args:
            text: 검색어
            limit: 최종 결과 개수
            types: 유형 필터 (None이면 전체)

        Returns:
            유사도순 결과 (limit 이하)

        Raises:
            VectorProviderError: 제공자 미설정 또는 임베딩/벡터 조회 실패
        """
        if (
            not self.provider_state.is_configured
            or self.embedding_provider is None
            or self.vector_index is None
        ):
            raise VectorProviderError(NO_PROVIDER_REASON, provider=NO_PROVIDER, retryable=False)

        embedding = await self._with_retry(
            "embedding", lambda: self.embedding_provider.embed(text)
        )
        candidates = await self._with_retry(
            "vector_query",
            lambda: self.vector_index.top_k(embedding, limit * self.overfetch_factor)
        )

        allowed_types = set(types or ALL_ENTITY_TYPES)
        results: List[SemanticSearchResult] = []
        for candidate in candidates:
            result = self._decode(candidate)
            if result is None or result.type not in allowed_types:
                continue
            results.append(result)
            if len(results) >= limit:
                break

        logger.info(
            "시맨틱 검색 완료",
            provider=self.provider_state.name,
            candidate_count=len(candidates),
            result_count=len(results)
        )

        return results

    # === 내부 헬퍼 함수 ===

    def _decode(self, match: VectorMatch) -> Optional[SemanticSearchResult]:
        """메타데이터를 결과로 변환 (디코딩 실패 시 해당 매치만 버림)"""
        try:
            metadata = VectorMatchMetadata.model_validate(match.metadata)
        except ValidationError as e:
            logger.warning(
                "벡터 메타데이터 디코딩 실패, 매치 제외",
                match_id=match.id,
                error_count=e.error_count()
            )
            return None

        similarity = min(1.0, max(0.0, match.score))
        return SemanticSearchResult(
            id=metadata.id,
            type=metadata.type,
            title=metadata.title,
            description=metadata.description,
            slug=metadata.slug,
            url=metadata.url,
            score=to_unified_score(match.score),
            semantic_score=similarity,
        )

    async def _with_retry(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        """VectorProviderError에 한해 설정된 횟수만큼 재시도"""
        attempt = 0
        while True:
            try:
                return await call()
            except VectorProviderError as e:
                if not e.retryable or attempt >= self.retry_attempts:
                    raise
                attempt += 1
                logger.info("시맨틱 검색 재시도", operation=operation, attempt=attempt, reason=e.reason)
