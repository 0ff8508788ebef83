"""Search 오케스트레이터

검색 요청 하나의 흐름을 조율하는 핵심 컴포넌트
- 질의 파싱 → 모드별 엔진 호출 → (semantic 실패 시) 키워드 폴백 → 유형별 그룹화
- 폴백 판단은 이 계층에서만 한다
"""

import time
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Union
from uuid import uuid4

import structlog

from infra.cache import get_cache_service
from infra.config import Settings
from infra.database import get_database_manager

from .cache_manager import SearchCacheManager
from .errors import VectorProviderError
from .provider_registry import ProviderState
from .repository import build_content_repositories
from .schema import EntityType, HealthStatus, SearchMode, SearchQuery, SearchResponse, SearchResult
from .search_embedding_service import QueryEmbeddingProvider
from .search_keyword_service import KeywordSearchEngine
from .search_performance_monitor import SearchPerformanceMonitor
from .search_query_processor import SearchQueryProcessor
from .search_result_aggregator import ResultAggregator
from .search_semantic_service import SemanticSearchEngine
from .search_vector_service import create_vector_index

logger = structlog.get_logger(__name__)

HealthProbe = Callable[[], Awaitable[bool]]


class SearchOrchestrator:
    """검색 프로세스 오케스트레이터

    협력 객체는 모두 생성 시 주입받으며 요청 간 가변 상태를 공유하지 않는다.
    (성능 모니터 카운터 제외)
    """

    def __init__(
        self,
        provider_state: ProviderState,
        keyword_engine: KeywordSearchEngine,
        semantic_engine: SemanticSearchEngine,
        query_processor: Optional[SearchQueryProcessor] = None,
        aggregator: Optional[ResultAggregator] = None,
        performance_monitor: Optional[SearchPerformanceMonitor] = None,
        health_probes: Optional[Dict[str, HealthProbe]] = None
    ):
        self.provider_state = provider_state
        self.keyword_engine = keyword_engine
        self.semantic_engine = semantic_engine
        self.query_processor = query_processor or SearchQueryProcessor()
        self.aggregator = aggregator or ResultAggregator()
        self.performance_monitor = performance_monitor or SearchPerformanceMonitor()
        self.health_probes = health_probes or {}

    # === 메인 오케스트레이션 함수 ===

    async def execute(
        self,
        text: Optional[str],
        mode: Union[str, SearchMode, None] = None,
        limit: Union[int, str, None] = None,
        types: Union[str, Iterable[Union[str, EntityType]], None] = None
    ) -> SearchResponse:
        """검색 프로세스 전체 조율

        Args:
            text: 검색어
            mode: keyword | semantic
            limit: 결과 개수 (1~100으로 보정)
            types: 유형 필터

        Returns:
            검색 응답 (폴백 시 mode=keyword, fallback_reason 포함)

        Raises:
            SearchBadRequestError: 검색어 누락
            그 외 예외는 그대로 전파
        """
        query = self.query_processor.search_query_process(text, mode, limit, types)
        return await self.search_orchestrator_process(query)

    async def search_orchestrator_process(self, query: SearchQuery) -> SearchResponse:
        """검증된 질의로 검색 실행"""
        start_time = time.perf_counter()
        query_id = str(uuid4())

        logger.info(
            "검색 프로세스 시작",
            query_id=query_id,
            query_text=query.text[:50],
            mode=query.mode.value,
            limit=query.limit,
            types=[t.value for t in query.types] if query.types else None
        )

        served_mode = query.mode
        fallback_reason: Optional[str] = None
        fallback_code: Optional[str] = None

        try:
            if query.mode == SearchMode.SEMANTIC:
                try:
                    results: List[SearchResult] = await self._timed(
                        "semantic_search",
                        self.semantic_engine.search(query.text, query.limit, query.types)
                    )
                except VectorProviderError as e:
                    served_mode = SearchMode.KEYWORD
                    fallback_reason = str(e)
                    fallback_code = e.reason_code
                    logger.warning(
                        "시맨틱 검색 실패, 키워드 검색으로 폴백",
                        query_id=query_id,
                        provider=e.provider,
                        reason=fallback_reason
                    )
                    results = await self._keyword_search(query)
            else:
                results = await self._keyword_search(query)
        except Exception as e:
            self.performance_monitor.search_monitor_record_error()
            logger.error(
                "검색 프로세스 실패",
                query_id=query_id,
                error_type=type(e).__name__,
                error=str(e)
            )
            raise

        response = SearchResponse(
            query=query.text,
            mode=served_mode,
            fallback_reason=fallback_reason,
            total_results=len(results),
            results=results,
            grouped=self.aggregator.group_by_type(results),
        )

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self.performance_monitor.search_monitor_record_search(
            requested_mode=query.mode.value,
            served_mode=served_mode.value,
            duration_ms=elapsed_ms,
            fallback_code=fallback_code
        )

        logger.info(
            "검색 프로세스 완료",
            query_id=query_id,
            mode=served_mode.value,
            result_count=len(results),
            search_time_ms=round(elapsed_ms, 2)
        )

        return response

    # === 헬스체크 ===

    async def search_orchestrator_health_check(self) -> HealthStatus:
        """의존성 헬스체크

        probe 실패는 예외 대신 False로 기록한다. 벡터 제공자 미설정은
        키워드 검색으로 서비스 가능하므로 degraded 판단에 포함하지 않는다.
        """
        checks: Dict[str, bool] = {}
        for name, probe in self.health_probes.items():
            try:
                checks[name] = bool(await probe())
            except Exception as e:
                logger.warning("헬스체크 실패", check=name, error=str(e))
                checks[name] = False

        status = "healthy" if all(checks.values()) else "degraded"
        checks["vector_provider"] = self.provider_state.is_configured

        return HealthStatus(
            status=status,
            provider=self.provider_state.name,
            checks=checks,
        )

    def search_orchestrator_get_performance_metrics(self) -> Dict[str, object]:
        """성능 메트릭 요약 조회"""
        return self.performance_monitor.search_monitor_get_metrics_summary()

    # === 내부 조율 함수 ===

    async def _keyword_search(self, query: SearchQuery) -> List[SearchResult]:
        return await self._timed(
            "keyword_search",
            self.keyword_engine.search(query.text, query.limit, query.types)
        )

    async def _timed(self, operation: str, awaitable: Awaitable):
        start_time = time.perf_counter()
        try:
            return await awaitable
        finally:
            self.performance_monitor.search_monitor_record_operation(
                operation, (time.perf_counter() - start_time) * 1000
            )


async def _database_probe() -> bool:
    return await get_database_manager().ping()


async def _cache_probe() -> bool:
    cache = await get_cache_service()
    health = await cache.health_check()
    return health.get("status") == "healthy"


def build_search_orchestrator(settings: Settings, provider_state: ProviderState) -> SearchOrchestrator:
    """운영 환경 협력 객체로 오케스트레이터 구성

    Args:
        settings: 애플리케이션 설정
        provider_state: 시작 시 한 번 결정된 벡터 제공자 상태
    """
    keyword_engine = KeywordSearchEngine(
        build_content_repositories(description_max_length=settings.search_description_max_length)
    )

    embedding_provider = None
    if provider_state.is_configured:
        embedding_provider = QueryEmbeddingProvider(
            provider_id=provider_state.name,
            model=settings.openai_model,
            cache=SearchCacheManager(ttl_seconds=settings.search_embedding_cache_ttl),
            timeout_seconds=settings.search_embedding_timeout_seconds,
        )

    semantic_engine = SemanticSearchEngine(
        provider_state=provider_state,
        embedding_provider=embedding_provider,
        vector_index=create_vector_index(provider_state, settings),
        overfetch_factor=settings.search_overfetch_factor,
        retry_attempts=settings.search_semantic_retry_attempts,
    )

    logger.info("SearchOrchestrator 구성 완료", provider=provider_state.name)

    return SearchOrchestrator(
        provider_state=provider_state,
        keyword_engine=keyword_engine,
        semantic_engine=semantic_engine,
        query_processor=SearchQueryProcessor(default_limit=settings.search_default_limit),
        health_probes={"database": _database_probe, "cache": _cache_probe},
    )
