"""벡터 제공자 레지스트리와 임베딩 캐시 관리자 테스트"""

import time

import pytest

from infra.config import Settings
from modules.search.cache_manager import SearchCacheManager
from modules.search.provider_registry import ProviderState, resolve_provider


class TestResolveProvider:

    @pytest.mark.parametrize("value, expected", [
        ("qdrant", "qdrant"),
        ("Pinecone", "pinecone"),
        ("none", None),
        ("", None),
        ("milvus", None),
    ])
    def test_resolution(self, value, expected):
        state = resolve_provider(Settings(vector_provider=value))

        assert state.provider_id == expected
        assert state.is_configured is (expected is not None)

    def test_deterministic(self):
        settings = Settings(vector_provider="qdrant")
        assert resolve_provider(settings) == resolve_provider(settings)

    def test_unconfigured_name(self):
        assert ProviderState.unconfigured().name == "none"


class InMemoryCacheService:
    """CacheService 대역"""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def cache_set(self, key, value, ttl=None):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def cache_get(self, key):
        return self.store.get(key)


class TestSearchCacheManager:

    async def test_round_trip_keyed_by_provider(self):
        service = InMemoryCacheService()
        manager = SearchCacheManager(cache=service, ttl_seconds=60)

        await manager.cache_embedding_set("Faith", "qdrant", [0.1, 0.2])

        assert await manager.cache_embedding_get("faith", "qdrant") == [0.1, 0.2]
        assert await manager.cache_embedding_get("faith", "pinecone") is None
        assert list(service.ttls.values()) == [60]
        assert manager.get_cache_stats()["hits"] == 1

    async def test_stale_entry_is_a_miss(self):
        service = InMemoryCacheService()
        manager = SearchCacheManager(cache=service, ttl_seconds=60)
        await manager.cache_embedding_set("faith", "qdrant", [0.1])
        for value in service.store.values():
            value["cached_at"] = time.time() - 120

        assert await manager.cache_embedding_get("faith", "qdrant") is None
