"""API 게이트웨이

FastAPI를 사용한 REST API 엔드포인트 정의
검색, 구절 유사도 검색, 헬스체크, 통계 엔드포인트를 통합 관리
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from infra.cache import cleanup_cache_service, get_cache_service
from infra.config import get_settings
from infra.database import connect_to_mongodb, disconnect_from_mongodb
from infra.logging import setup_logging
from infra.vector_store import disconnect_vector_clients
from modules.search import (
    SearchBadRequestError,
    SearchOrchestrator,
    VectorProviderError,
    build_search_orchestrator,
    resolve_provider,
)
from modules.search.cache_manager import SearchCacheManager
from modules.search.repository import VerseEmbeddingRepository
from modules.search.search_embedding_service import QueryEmbeddingProvider
from modules.search.search_verse_similarity_service import (
    VerseSimilaritySearchService,
    parse_k,
    validate_query,
)

logger = structlog.get_logger(__name__)

settings = get_settings()

MISSING_QUERY_MESSAGE = "Query parameter 'q' is required"


def build_verse_similarity_service() -> VerseSimilaritySearchService:
    """구절 유사도 검색 서비스 구성"""
    cache = SearchCacheManager(ttl_seconds=settings.search_embedding_cache_ttl)

    def embedding_provider_factory(model: str) -> QueryEmbeddingProvider:
        return QueryEmbeddingProvider(
            provider_id=f"verses:{model}",
            model=model,
            cache=cache,
            timeout_seconds=settings.search_embedding_timeout_seconds,
        )

    return VerseSimilaritySearchService(VerseEmbeddingRepository(), embedding_provider_factory)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 수명 주기 관리"""
    # 시작 시
    setup_logging(settings)
    await connect_to_mongodb()
    await get_cache_service()

    # 벡터 제공자는 시작 시 한 번만 결정
    provider_state = resolve_provider(settings)
    app.state.search_orchestrator = build_search_orchestrator(settings, provider_state)
    app.state.verse_similarity_service = build_verse_similarity_service()

    logger.info("API Gateway 시작", provider=provider_state.name, environment=settings.app_environment)
    yield

    # 종료 시
    await disconnect_vector_clients()
    await cleanup_cache_service()
    await disconnect_from_mongodb()
    logger.info("API Gateway 종료")


# FastAPI 앱 생성
app = FastAPI(
    title="TheLordWill Search API",
    description="성경 콘텐츠 통합 검색 서비스",
    version=settings.app_version,
    lifespan=lifespan
)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# === 의존성 ===

def get_search_orchestrator(request: Request) -> SearchOrchestrator:
    return request.app.state.search_orchestrator


def get_verse_similarity_service(request: Request) -> VerseSimilaritySearchService:
    return request.app.state.verse_similarity_service


# === 루트 엔드포인트 ===

@app.get("/")
async def root():
    """API 루트 정보"""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "active",
        "endpoints": {
            "search": "/search",
            "verse_similarity": "/api/semantic-search/verses",
            "health": "/api/v1/search/health",
            "stats": "/api/v1/search/stats"
        }
    }


# === Search 모듈 엔드포인트 ===

@app.get("/search", summary="통합 검색")
@app.get("/api/search", summary="통합 검색", include_in_schema=False)
async def search_endpoint(
    q: Optional[str] = None,
    mode: Optional[str] = None,
    limit: Optional[str] = None,
    types: Optional[str] = None,
    orchestrator: SearchOrchestrator = Depends(get_search_orchestrator)
):
    """통합 검색 엔드포인트

    Args:
        q: 검색어 (필수)
        mode: keyword | semantic (기본 keyword)
        limit: 결과 개수 (기본 20, 1~100으로 보정)
        types: 쉼표로 구분한 유형 필터

    Returns:
        검색 결과 응답 (폴백 시 mode=keyword, fallbackReason 포함)
    """
    try:
        response = await orchestrator.execute(q, mode=mode, limit=limit, types=types)
    except SearchBadRequestError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": MISSING_QUERY_MESSAGE, "results": []}
        )
    except Exception as e:
        logger.error("검색 처리 실패", error_type=type(e).__name__, error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Search failed", "message": str(e), "results": []}
        )

    return response.to_payload()


@app.get("/api/semantic-search/verses", summary="구절 유사도 검색")
async def verse_similarity_endpoint(
    q: Optional[str] = None,
    k: Optional[str] = None,
    model: Optional[str] = None,
    service: VerseSimilaritySearchService = Depends(get_verse_similarity_service)
):
    """저장된 구절 임베딩과의 코사인 유사도 상위 k개 구절

    Returns:
        {query, model, k, results}
    """
    try:
        query = validate_query(q)
        top_k = parse_k(k)
    except SearchBadRequestError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})

    embedding_model = (model or "").strip() or settings.openai_model

    try:
        response = await service.search(query, top_k, embedding_model)
    except VectorProviderError as e:
        logger.warning("구절 검색 임베딩 실패", reason=e.reason)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "embedding_provider_error"}
        )
    except Exception as e:
        logger.error("구절 검색 실패", error_type=type(e).__name__, error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"}
        )

    return response.model_dump(mode="json", by_alias=True)


@app.get("/api/v1/search/health", summary="서비스 헬스체크")
async def search_health_check(orchestrator: SearchOrchestrator = Depends(get_search_orchestrator)):
    """검색 서비스 헬스체크

    Returns:
        헬스 상태 정보 (degraded면 503)
    """
    health_status = await orchestrator.search_orchestrator_health_check()

    if health_status.status == "healthy":
        status_code = status.HTTP_200_OK
    else:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(status_code=status_code, content=health_status.model_dump(mode="json"))


@app.get("/api/v1/search/stats", summary="검색 통계 조회")
async def get_search_stats(orchestrator: SearchOrchestrator = Depends(get_search_orchestrator)):
    """프로세스 내 검색 통계 (모드별 요청 수, 폴백, 지연 시간)"""
    return {
        "status": "success",
        "metrics": orchestrator.search_orchestrator_get_performance_metrics()
    }


# === 공통 엔드포인트 ===

@app.get("/health", summary="전체 서비스 헬스체크")
async def general_health_check(request: Request):
    """API 서비스 생존 확인"""
    orchestrator = getattr(request.app.state, "search_orchestrator", None)
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "provider": orchestrator.provider_state.name if orchestrator else "none"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main.api_gateway:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=not settings.is_production,
        log_level=settings.app_log_level.lower()
    )
