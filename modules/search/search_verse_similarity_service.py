"""구절 유사도 검색 서비스

저장된 구절 임베딩과 질의 임베딩의 코사인 유사도로 상위 k개 구절을 찾는다.
"""

import math
from typing import Callable, List, Optional, Sequence

import structlog

from .errors import SearchBadRequestError
from .repository import VerseEmbeddingRepository
from .schema import VerseSimilarityResponse, VerseSimilarityResult
from .search_embedding_service import QueryEmbeddingProvider

logger = structlog.get_logger(__name__)

MIN_QUERY_LENGTH = 3
MAX_QUERY_LENGTH = 300
DEFAULT_K = 10
MAX_K = 20
MAX_CANDIDATES = 5000


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """코사인 유사도 (영벡터면 0)"""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def parse_k(raw: Optional[str]) -> int:
    """k 파라미터 검증 (기본 10, 양의 정수, 최대 20으로 보정)"""
    if raw is None or raw == "":
        return DEFAULT_K
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise SearchBadRequestError("k must be a positive integer")
    if value <= 0:
        raise SearchBadRequestError("k must be a positive integer")
    return min(value, MAX_K)


def validate_query(raw: Optional[str]) -> str:
    query = (raw or "").strip()
    if len(query) < MIN_QUERY_LENGTH or len(query) > MAX_QUERY_LENGTH:
        raise SearchBadRequestError(
            f"q must be between {MIN_QUERY_LENGTH} and {MAX_QUERY_LENGTH} characters"
        )
    return query


class VerseSimilaritySearchService:
    """구절 유사도 검색 전용 서비스"""

    def __init__(
        self,
        repository: VerseEmbeddingRepository,
        embedding_provider_factory: Callable[[str], QueryEmbeddingProvider],
        max_candidates: int = MAX_CANDIDATES
    ):
        """VerseSimilaritySearchService 초기화

        Args:
            repository: 구절 임베딩 저장소
            embedding_provider_factory: 모델 이름으로 질의 임베딩 생성기를 만드는 함수
            max_candidates: 비교할 최대 후보 수
        """
        self.repository = repository
        self.embedding_provider_factory = embedding_provider_factory
        self.max_candidates = max_candidates

    async def search(self, query: str, k: int, model: str) -> VerseSimilarityResponse:
        """구절 유사도 검색

        Args:
            query: 검증된 질의
            k: 결과 개수
            model: 저장된 임베딩 모델 이름 (질의 임베딩도 같은 모델 사용)

        Returns:
            점수 내림차순, 동점 시 구절 ID 오름차순 결과

        Raises:
            VectorProviderError: 질의 임베딩 생성 실패
        """
        candidates = await self.repository.search_repo_find_verse_embeddings(
            model=model, limit=self.max_candidates
        )
        if not candidates:
            logger.info("구절 임베딩 후보 없음", model=model)
            return VerseSimilarityResponse(query=query, model=model, k=k, results=[])

        query_vector = await self.embedding_provider_factory(model).embed(query)

        scored: List[VerseSimilarityResult] = []
        for candidate in candidates:
            scored.append(VerseSimilarityResult(
                verse_id=candidate["verse_id"],
                book_id=candidate["book_id"],
                chapter=candidate["chapter"],
                verse_number=candidate["verse_number"],
                text=candidate["text"],
                score=cosine_similarity(query_vector, candidate["vector"]),
            ))

        scored.sort(key=lambda r: (-r.score, r.verse_id))
        results = scored[:k]

        logger.info(
            "구절 유사도 검색 완료",
            model=model,
            candidate_count=len(candidates),
            result_count=len(results)
        )

        return VerseSimilarityResponse(query=query, model=model, k=k, results=results)
