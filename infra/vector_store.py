"""
TheLordWill Search 벡터 저장소 및 임베딩 API 연결 관리

OpenAI, Qdrant, Pinecone 클라이언트의 지연 생성 및 해제
infra 아키텍쳐 지침: 연결, 초기화, 설정만 담당
"""

from typing import Any, Optional

import openai
import structlog
from qdrant_client import QdrantClient

from .config import get_settings

logger = structlog.get_logger(__name__)

# 전역 클라이언트 인스턴스들
_openai_client: Optional[openai.AsyncOpenAI] = None
_qdrant_client: Optional[QdrantClient] = None
_pinecone_index: Optional[Any] = None


def get_openai_client() -> Optional[openai.AsyncOpenAI]:
    """OpenAI 클라이언트를 반환합니다. API 키가 없으면 None."""
    global _openai_client

    if _openai_client is None:
        settings = get_settings()
        if not settings.openai_api_key:
            logger.debug("OpenAI API 키가 설정되지 않음")
            return None

        logger.info("OpenAI API 클라이언트를 초기화합니다", model=settings.openai_model)
        # 재시도/타임아웃은 검색 계층에서 직접 제어
        _openai_client = openai.AsyncOpenAI(
            api_key=settings.openai_api_key,
            max_retries=0,
        )

    return _openai_client


def get_qdrant_client() -> QdrantClient:
    """Qdrant 클라이언트를 반환합니다."""
    global _qdrant_client

    if _qdrant_client is None:
        settings = get_settings()
        logger.info("Qdrant 연결을 시작합니다", url=settings.qdrant_url)

        _qdrant_client = QdrantClient(
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
            timeout=int(settings.search_vector_timeout_seconds) or 1,
            prefer_grpc=False,  # HTTP API 사용
        )

    return _qdrant_client


def get_pinecone_index() -> Any:
    """Pinecone 인덱스 핸들을 반환합니다.

    Raises:
        ValueError: PINECONE_API_KEY가 설정되지 않은 경우
    """
    global _pinecone_index

    if _pinecone_index is None:
        settings = get_settings()
        if not settings.pinecone_api_key:
            raise ValueError("PINECONE_API_KEY not configured")

        from pinecone import Pinecone

        logger.info("Pinecone 인덱스 연결", index=settings.pinecone_index)
        client = Pinecone(api_key=settings.pinecone_api_key)
        _pinecone_index = client.Index(settings.pinecone_index)

    return _pinecone_index


async def disconnect_vector_clients() -> None:
    """종료 시 모든 연결 해제"""
    global _openai_client, _qdrant_client, _pinecone_index

    if _openai_client:
        await _openai_client.close()
        _openai_client = None
        logger.info("OpenAI 클라이언트가 해제되었습니다")

    if _qdrant_client:
        _qdrant_client.close()
        _qdrant_client = None
        logger.info("Qdrant 연결이 해제되었습니다")

    _pinecone_index = None
