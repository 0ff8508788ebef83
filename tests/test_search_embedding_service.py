"""질의 임베딩 생성 테스트"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from modules.search import search_embedding_service
from modules.search.errors import VectorProviderError
from modules.search.search_embedding_service import QueryEmbeddingProvider, normalize_query_text

from tests.fakes import FakeEmbeddingCache


def make_client(create: AsyncMock) -> SimpleNamespace:
    return SimpleNamespace(embeddings=SimpleNamespace(create=create))


def embedding_response(vector):
    return SimpleNamespace(data=[SimpleNamespace(embedding=vector)])


class TestQueryEmbeddingProvider:
    """OpenAI 호출, 캐시, 오류 변환"""

    async def test_missing_api_key(self, monkeypatch):
        """Given API 키 없음 When embed Then 재시도 불가 설정 오류"""
        monkeypatch.setattr(search_embedding_service, "get_openai_client", lambda: None)
        provider = QueryEmbeddingProvider(provider_id="qdrant")

        with pytest.raises(VectorProviderError) as exc_info:
            await provider.embed("faith")

        assert "OPENAI_API_KEY not configured" in exc_info.value.reason
        assert exc_info.value.retryable is False

    async def test_single_call_with_normalized_text(self):
        create = AsyncMock(return_value=embedding_response([0.1, 0.2]))
        provider = QueryEmbeddingProvider(provider_id="qdrant", client=make_client(create))

        embedding = await provider.embed("  faith \n in  God ")

        assert embedding == [0.1, 0.2]
        create.assert_awaited_once_with(model="text-embedding-3-small", input="faith in God")

    async def test_cache_hit_skips_api(self):
        cache = FakeEmbeddingCache()
        create = AsyncMock(return_value=embedding_response([0.3, 0.4]))
        provider = QueryEmbeddingProvider(provider_id="pinecone", client=make_client(create), cache=cache)

        first = await provider.embed("Faith")
        second = await provider.embed("faith ")

        assert first == second == [0.3, 0.4]
        assert create.await_count == 1

    async def test_cache_is_keyed_by_provider(self):
        cache = FakeEmbeddingCache()
        create = AsyncMock(return_value=embedding_response([0.5]))

        await QueryEmbeddingProvider(provider_id="qdrant", client=make_client(create), cache=cache).embed("faith")
        await QueryEmbeddingProvider(provider_id="pinecone", client=make_client(create), cache=cache).embed("faith")

        assert create.await_count == 2

    async def test_cache_failure_does_not_fail_request(self):
        broken_cache = SimpleNamespace(
            cache_embedding_get=AsyncMock(side_effect=ConnectionError("redis down")),
            cache_embedding_set=AsyncMock(side_effect=ConnectionError("redis down")),
        )
        create = AsyncMock(return_value=embedding_response([0.7]))
        provider = QueryEmbeddingProvider(provider_id="qdrant", client=make_client(create), cache=broken_cache)

        assert await provider.embed("faith") == [0.7]

    async def test_upstream_error_maps_to_provider_error(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        create = AsyncMock(side_effect=openai.APIConnectionError(request=request))
        provider = QueryEmbeddingProvider(provider_id="qdrant", client=make_client(create))

        with pytest.raises(VectorProviderError) as exc_info:
            await provider.embed("faith")

        assert exc_info.value.provider == "qdrant"
        assert exc_info.value.retryable is True

    async def test_timeout_maps_to_provider_error(self):
        async def slow_create(**kwargs):
            await asyncio.sleep(1)

        provider = QueryEmbeddingProvider(
            provider_id="qdrant", client=make_client(slow_create), timeout_seconds=0.01
        )

        with pytest.raises(VectorProviderError) as exc_info:
            await provider.embed("faith")

        assert "timed out" in exc_info.value.reason

    async def test_unexpected_error_is_not_converted(self):
        create = AsyncMock(side_effect=KeyError("boom"))
        provider = QueryEmbeddingProvider(provider_id="qdrant", client=make_client(create))

        with pytest.raises(KeyError):
            await provider.embed("faith")


def test_normalize_query_text():
    assert normalize_query_text("  a\n\tb  c ") == "a b c"
