"""Search 모듈 전용 캐시 관리자

질의 임베딩 캐시의 키 생성, TTL 정책을 관리
중앙 캐시 서비스(infra/cache.py)를 사용하되, search 전용 로직은 여기서 처리
"""

import hashlib
import time
from typing import Any, Dict, List, Optional, Protocol

import structlog

from infra.cache import CacheService, get_cache_service
from infra.config import get_settings

logger = structlog.get_logger(__name__)


class SearchCacheKeys:
    """Search 모듈 전용 캐시 키 정의"""

    EMBEDDING = "search:embedding:{provider}:{text_hash}"


class EmbeddingCache(Protocol):
    """질의 임베딩 캐시 인터페이스 (테스트에서 가짜 구현으로 대체)"""

    async def cache_embedding_get(self, text: str, provider_id: str) -> Optional[List[float]]:
        ...

    async def cache_embedding_set(self, text: str, provider_id: str, embedding: List[float]) -> bool:
        ...


class SearchCacheManager:
    """Search 모듈 전용 캐시 관리자 (Redis 기반 EmbeddingCache)"""

    def __init__(self, cache: Optional[CacheService] = None, ttl_seconds: Optional[int] = None):
        """SearchCacheManager 초기화

        Args:
            cache: 중앙 캐시 서비스 (없으면 첫 사용 시 싱글톤 조회)
            ttl_seconds: 임베딩 캐시 TTL
        """
        self.cache: Optional[CacheService] = cache
        self.keys = SearchCacheKeys()
        self.ttl = ttl_seconds or get_settings().search_embedding_cache_ttl

        # 캐시 통계
        self._stats = {
            "hits": 0,
            "misses": 0,
            "errors": 0
        }

    async def _ensure_initialized(self) -> None:
        """서비스 초기화 확인"""
        if self.cache is None:
            self.cache = await get_cache_service()
            logger.info("SearchCacheManager 초기화 완료")

    # === 임베딩 캐시 ===

    async def cache_embedding_get(self, text: str, provider_id: str) -> Optional[List[float]]:
        """임베딩 캐시 조회

        Args:
            text: 정규화된 질의 텍스트
            provider_id: 벡터 제공자 ID

        Returns:
            캐시된 임베딩 또는 None
        """
        await self._ensure_initialized()

        key = self._embedding_key(text, provider_id)
        cached_data = await self.cache.cache_get(key)

        if isinstance(cached_data, dict):
            embedding = cached_data.get("embedding")
            cached_at = cached_data.get("cached_at", 0)
            # Redis TTL과 별개로 저장 시각으로 한 번 더 만료 확인
            if isinstance(embedding, list) and time.time() - cached_at < self.ttl:
                self._stats["hits"] += 1
                logger.debug("임베딩 캐시 히트", provider=provider_id, text_preview=text[:30])
                return embedding

        self._stats["misses"] += 1
        return None

    async def cache_embedding_set(
        self,
        text: str,
        provider_id: str,
        embedding: List[float]
    ) -> bool:
        """임베딩 캐시 저장

        Args:
            text: 정규화된 질의 텍스트
            provider_id: 벡터 제공자 ID
            embedding: 저장할 임베딩

        Returns:
            저장 성공 여부
        """
        await self._ensure_initialized()

        cache_data = {
            "embedding": embedding,
            "text_preview": text[:100],
            "cached_at": time.time(),
        }

        stored = await self.cache.cache_set(
            self._embedding_key(text, provider_id), cache_data, ttl=self.ttl
        )
        if not stored:
            self._stats["errors"] += 1
        return stored

    # === 통계 ===

    def get_cache_stats(self) -> Dict[str, Any]:
        """캐시 통계 조회"""
        total = self._stats["hits"] + self._stats["misses"]
        hit_rate = self._stats["hits"] / total if total > 0 else 0

        return {
            "hits": self._stats["hits"],
            "misses": self._stats["misses"],
            "errors": self._stats["errors"],
            "hit_rate": hit_rate,
            "ttl_seconds": self.ttl,
        }

    # === 내부 헬퍼 함수 ===

    def _embedding_key(self, text: str, provider_id: str) -> str:
        return self.keys.EMBEDDING.format(
            provider=provider_id,
            text_hash=self._generate_text_hash(text)
        )

    def _generate_text_hash(self, text: str) -> str:
        """텍스트 해시 생성 (임베딩용)"""
        normalized = text.lower().strip()
        return hashlib.sha256(normalized.encode()).hexdigest()[:32]
