"""Search 벡터 검색 서비스

벡터 인덱스(Qdrant/Pinecone) 상위 k개 유사도 조회
동기 SDK 호출은 워커 스레드에서 실행하고 타임아웃으로 제한한다.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Tuple, Type

from pinecone.exceptions import PineconeException
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
import structlog

from infra.config import Settings
from infra.vector_store import get_pinecone_index, get_qdrant_client

from .errors import VectorProviderError
from .provider_registry import ProviderState
from .schema import VectorMatch

logger = structlog.get_logger(__name__)


class VectorIndex(ABC):
    """벡터 인덱스 인터페이스"""

    provider_id: str = "none"
    # VectorProviderError로 변환할 SDK 전송/서비스 오류. 그 외 예외는 그대로 전파
    sdk_errors: Tuple[Type[BaseException], ...] = (OSError,)

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds

    async def top_k(self, vector: List[float], k: int) -> List[VectorMatch]:
        """임베딩과 가장 유사한 k개 매치 조회 (점수 내림차순)

        Raises:
            VectorProviderError: 설정 누락, SDK 전송/서비스 오류, 타임아웃
        """
        try:
            matches = await asyncio.wait_for(
                asyncio.to_thread(self._query, vector, k),
                timeout=self.timeout_seconds
            )
        except VectorProviderError:
            raise
        except asyncio.TimeoutError as e:
            logger.warning("벡터 조회 타임아웃", provider=self.provider_id, timeout=self.timeout_seconds)
            raise VectorProviderError(
                f"vector query timed out after {self.timeout_seconds}s",
                provider=self.provider_id
            ) from e
        except self.sdk_errors as e:
            logger.warning(
                "벡터 조회 실패",
                provider=self.provider_id,
                error_type=type(e).__name__,
                error=str(e)
            )
            raise VectorProviderError(
                f"vector query failed: {e}", provider=self.provider_id
            ) from e

        logger.debug("벡터 조회 완료", provider=self.provider_id, k=k, match_count=len(matches))
        return matches

    @abstractmethod
    def _query(self, vector: List[float], k: int) -> List[VectorMatch]:
        """SDK 동기 호출"""


class QdrantVectorIndex(VectorIndex):
    """Qdrant 컬렉션 기반 벡터 인덱스"""

    provider_id = "qdrant"
    sdk_errors = (ResponseHandlingException, UnexpectedResponse, OSError)

    def __init__(
        self,
        collection_name: str,
        client_factory: Callable[[], Any] = get_qdrant_client,
        timeout_seconds: float = 5.0
    ):
        super().__init__(timeout_seconds)
        self.collection_name = collection_name
        self._client_factory = client_factory

    def _query(self, vector: List[float], k: int) -> List[VectorMatch]:
        client = self._client_factory()
        response = client.query_points(
            collection_name=self.collection_name,
            query=vector,
            limit=k,
            with_payload=True,
        )
        return [
            VectorMatch(id=str(point.id), score=point.score or 0.0, metadata=point.payload or {})
            for point in response.points
        ]


class PineconeVectorIndex(VectorIndex):
    """Pinecone 인덱스 기반 벡터 인덱스"""

    provider_id = "pinecone"
    sdk_errors = (PineconeException, OSError)

    def __init__(
        self,
        namespace: Optional[str] = None,
        index_factory: Callable[[], Any] = get_pinecone_index,
        timeout_seconds: float = 5.0
    ):
        super().__init__(timeout_seconds)
        self.namespace = namespace
        self._index_factory = index_factory

    def _query(self, vector: List[float], k: int) -> List[VectorMatch]:
        try:
            index = self._index_factory()
        except ValueError as e:
            # API 키 누락
            raise VectorProviderError(str(e), provider=self.provider_id, retryable=False) from e

        response = index.query(
            vector=vector,
            top_k=k,
            namespace=self.namespace or "",
            include_metadata=True,
            include_values=False,
        )
        return [
            VectorMatch(id=str(match.id), score=match.score or 0.0, metadata=match.metadata or {})
            for match in response.matches
        ]


def create_vector_index(state: ProviderState, settings: Settings) -> Optional[VectorIndex]:
    """제공자 상태에 맞는 벡터 인덱스 생성 (Unconfigured면 None)"""
    if state.provider_id == "qdrant":
        return QdrantVectorIndex(
            collection_name=settings.qdrant_collection_name,
            timeout_seconds=settings.search_vector_timeout_seconds,
        )
    if state.provider_id == "pinecone":
        return PineconeVectorIndex(
            namespace=settings.pinecone_namespace,
            timeout_seconds=settings.search_vector_timeout_seconds,
        )
    return None
