"""Search 모듈 공개 인터페이스

성경 콘텐츠(상황, 기도 제목, 장소, 직업, 구절, 이름)에 대한 통합 검색을 제공합니다.

주요 기능:
- 키워드 검색: 게시된 콘텐츠만 대상, 저장소별 점수를 0~100으로 통일
- 시맨틱 검색: OpenAI 임베딩 + 벡터 인덱스(Qdrant/Pinecone)
- 벡터 제공자 장애/미설정 시 키워드 검색으로 결정적 폴백
- 결과 유형별 그룹화
- 구절 임베딩 유사도 검색

사용 예시:
    from modules.search import build_search_orchestrator, resolve_provider
    from infra.config import get_settings

    settings = get_settings()
    orchestrator = build_search_orchestrator(settings, resolve_provider(settings))

    response = await orchestrator.execute("faith", mode="semantic", limit=10)
"""

__version__ = "1.0.0"

from .errors import SearchBadRequestError, SearchError, VectorProviderError
from .orchestrator import SearchOrchestrator, build_search_orchestrator
from .provider_registry import ProviderState, resolve_provider
from .schema import (
    EntityType,
    HealthStatus,
    SearchMode,
    SearchQuery,
    SearchResponse,
    SearchResult,
    SemanticSearchResult,
    VerseSimilarityResponse,
)

__all__ = [
    # 열거형
    "EntityType",
    "SearchMode",
    # 데이터 모델
    "SearchQuery",
    "SearchResponse",
    "SearchResult",
    "SemanticSearchResult",
    "VerseSimilarityResponse",
    "HealthStatus",
    # 예외
    "SearchError",
    "SearchBadRequestError",
    "VectorProviderError",
    # 오케스트레이터
    "SearchOrchestrator",
    "build_search_orchestrator",
    "ProviderState",
    "resolve_provider",
    "__version__",
]
