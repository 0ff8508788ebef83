"""Search 임베딩 생성 서비스

OpenAI API를 사용하여 검색 질의를 벡터 임베딩으로 변환
질의 임베딩 캐시 및 타임아웃 처리 포함
"""

import asyncio
from typing import Any, Dict, List, Optional

import openai
import structlog

from infra.vector_store import get_openai_client

from .cache_manager import EmbeddingCache
from .errors import VectorProviderError

logger = structlog.get_logger(__name__)

MISSING_API_KEY_REASON = "OPENAI_API_KEY not configured for query embedding generation"


def normalize_query_text(text: str) -> str:
    """공백 정규화 (연속 공백/줄바꿈을 한 칸으로)"""
    return " ".join(text.split())


class QueryEmbeddingProvider:
    """질의 임베딩 생성 전용 서비스"""

    def __init__(
        self,
        provider_id: str,
        model: str = "text-embedding-3-small",
        client: Optional[openai.AsyncOpenAI] = None,
        cache: Optional[EmbeddingCache] = None,
        timeout_seconds: float = 5.0
    ):
        """QueryEmbeddingProvider 초기화

        Args:
            provider_id: 캐시 키에 쓰이는 벡터 제공자 ID
            model: OpenAI 임베딩 모델
            client: OpenAI 클라이언트 (없으면 infra에서 조회, 키 없으면 None)
            cache: 질의 임베딩 캐시 (없으면 캐시 미사용)
            timeout_seconds: API 호출 타임아웃
        """
        self.provider_id = provider_id
        self.model = model
        self._client = client
        self.cache = cache
        self.timeout_seconds = timeout_seconds

        # 통계
        self._api_calls = 0
        self._api_errors = 0
        self._cache_hits = 0

    @property
    def client(self) -> Optional[openai.AsyncOpenAI]:
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    # === 메인 처리 함수 ===

    async def embed(self, text: str) -> List[float]:
        """텍스트를 임베딩으로 변환

        Args:
            text: 검색 질의

        Returns:
            임베딩 벡터

        Raises:
            VectorProviderError: 자격 증명 누락, 업스트림 오류, 타임아웃
        """
        client = self.client
        if client is None:
            raise VectorProviderError(
                MISSING_API_KEY_REASON, provider=self.provider_id, retryable=False
            )

        normalized_text = normalize_query_text(text)

        cached_embedding = await self._cache_get(normalized_text)
        if cached_embedding:
            self._cache_hits += 1
            logger.debug("임베딩 캐시에서 반환", text_preview=normalized_text[:50])
            return cached_embedding

        embedding = await self._create_embedding(client, normalized_text)
        await self._cache_set(normalized_text, embedding)

        logger.info(
            "임베딩 생성 완료",
            model=self.model,
            text_length=len(normalized_text),
            embedding_dimension=len(embedding)
        )

        return embedding

    # === 내부 헬퍼 함수 ===

    async def _create_embedding(self, client: openai.AsyncOpenAI, text: str) -> List[float]:
        """OpenAI 임베딩 API 단일 호출"""
        self._api_calls += 1
        try:
            response = await asyncio.wait_for(
                client.embeddings.create(model=self.model, input=text),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            self._api_errors += 1
            logger.warning("OpenAI 임베딩 타임아웃", timeout=self.timeout_seconds)
            raise VectorProviderError(
                f"embedding request timed out after {self.timeout_seconds}s",
                provider=self.provider_id
            ) from e
        except openai.OpenAIError as e:
            self._api_errors += 1
            logger.warning("OpenAI 임베딩 API 오류", error_type=type(e).__name__, error=str(e))
            raise VectorProviderError(
                f"embedding provider error: {e}", provider=self.provider_id
            ) from e

        if not response.data or not response.data[0].embedding:
            self._api_errors += 1
            raise VectorProviderError(
                "embedding provider returned no embedding", provider=self.provider_id
            )

        return list(response.data[0].embedding)

    async def _cache_get(self, text: str) -> Optional[List[float]]:
        """캐시 조회 (캐시 장애는 요청을 실패시키지 않음)"""
        if self.cache is None:
            return None
        try:
            return await self.cache.cache_embedding_get(text, self.provider_id)
        except Exception as e:
            logger.warning("임베딩 캐시 조회 실패", error=str(e))
            return None

    async def _cache_set(self, text: str, embedding: List[float]) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.cache_embedding_set(text, self.provider_id, embedding)
        except Exception as e:
            logger.warning("임베딩 캐시 저장 실패", error=str(e))

    def get_stats(self) -> Dict[str, Any]:
        """서비스 통계 반환"""
        return {
            "model": self.model,
            "api_calls": self._api_calls,
            "api_errors": self._api_errors,
            "cache_hits": self._cache_hits,
        }
