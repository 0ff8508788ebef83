"""Search 모듈 데이터 스키마 정의

Pydantic v2를 사용한 데이터 계약 정의
모든 검색 관련 요청/응답 모델 포함
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, field_validator


class EntityType(str, Enum):
    """검색 가능한 콘텐츠 유형 (필터 및 그룹 키)"""
    SITUATION = "situation"
    PRAYER_POINT = "prayerPoint"
    PLACE = "place"
    PROFESSION = "profession"
    VERSE = "verse"
    NAME = "name"


# 기본 검색 순서 (필터 미지정 시 전체 유형)
ALL_ENTITY_TYPES: Tuple[EntityType, ...] = tuple(EntityType)


class SearchMode(str, Enum):
    """검색 모드 정의

    KEYWORD: 콘텐츠 저장소 키워드 검색 (기본값)
    SEMANTIC: 임베딩 기반 벡터 유사도 검색
    """
    KEYWORD = "keyword"
    SEMANTIC = "semantic"


class SearchResult(BaseModel):
    """개별 검색 결과 (0~100 통합 점수)"""
    id: str = Field(..., description="콘텐츠 ID")
    type: EntityType = Field(..., description="콘텐츠 유형")
    title: str = Field(..., description="제목")
    description: str = Field(default="", description="설명")
    slug: str = Field(..., description="슬러그")
    url: str = Field(..., description="페이지 경로")
    score: int = Field(..., ge=0, le=100, description="통합 관련성 점수")


class SemanticSearchResult(SearchResult):
    """시맨틱 검색 결과 - 원본 유사도를 진단용으로 보존"""
    model_config = ConfigDict(populate_by_name=True)

    semantic_score: float = Field(
        ..., ge=0.0, le=1.0, alias="semanticScore", description="원본 유사도 점수"
    )


class ContentMatch(BaseModel):
    """콘텐츠 저장소의 키워드 매치 (저장소 고유 점수)"""
    id: str
    type: EntityType
    title: str
    description: str = ""
    slug: str
    url: str
    raw_score: float = Field(..., description="저장소 고유 범위의 원점수")


class VectorMatch(BaseModel):
    """벡터 인덱스 조회 결과 (메타데이터는 검증 전 상태)"""
    id: str = Field(..., description="벡터 포인트 ID")
    score: float = Field(..., description="유사도 점수")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="검증 전 메타데이터")


class VectorMatchMetadata(BaseModel):
    """벡터 메타데이터 디코딩 스키마

    인덱싱 배치가 저장한 메타데이터를 SearchResult 형태로 강제 변환한다.
    디코딩에 실패한 매치는 개별적으로 버려진다.
    """
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    type: EntityType
    title: str = Field(..., min_length=1)
    description: str = ""
    slug: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """숫자 ID는 문자열로 변환"""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        return v

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v: Any) -> Any:
        """설명 누락은 빈 문자열로 처리"""
        return "" if v is None else v


class SearchQuery(BaseModel):
    """검증된 검색 요청"""
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="검색 질의 텍스트")
    mode: SearchMode = Field(default=SearchMode.KEYWORD, description="요청 검색 모드")
    limit: int = Field(default=20, ge=1, le=100, description="결과 개수 제한")
    types: Optional[Tuple[EntityType, ...]] = Field(
        default=None, description="유형 필터 (None이면 전체)"
    )

    @property
    def effective_types(self) -> Tuple[EntityType, ...]:
        """실제 검색할 유형 목록"""
        return self.types or ALL_ENTITY_TYPES


class SearchResponse(BaseModel):
    """검색 응답 데이터"""
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., description="검색 질의")
    mode: SearchMode = Field(..., description="실제 사용된 검색 모드")
    fallback_reason: Optional[str] = Field(
        default=None, alias="fallbackReason", description="키워드 검색 폴백 사유"
    )
    total_results: int = Field(..., ge=0, alias="totalResults", description="결과 개수")
    results: List[SerializeAsAny[SearchResult]] = Field(default_factory=list)
    grouped: Dict[EntityType, List[SerializeAsAny[SearchResult]]] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """HTTP 응답 본문으로 직렬화 (폴백 사유가 없으면 생략)"""
        payload = self.model_dump(mode="json", by_alias=True)
        if payload.get("fallbackReason") is None:
            payload.pop("fallbackReason", None)
        return payload


class VerseSimilarityResult(BaseModel):
    """구절 유사도 검색 결과"""
    model_config = ConfigDict(populate_by_name=True)

    verse_id: int = Field(..., alias="verseId")
    book_id: int = Field(..., alias="bookId")
    chapter: int
    verse_number: int = Field(..., alias="verseNumber")
    text: str
    score: float


class VerseSimilarityResponse(BaseModel):
    """구절 유사도 검색 응답"""
    query: str
    model: str
    k: int
    results: List[VerseSimilarityResult] = Field(default_factory=list)


class HealthStatus(BaseModel):
    """헬스체크 상태"""
    service: str = Field(default="search", description="서비스 이름")
    status: str = Field(..., description="상태 (healthy/degraded)")
    timestamp: datetime = Field(default_factory=datetime.now, description="체크 시간")
    provider: str = Field(default="none", description="벡터 제공자")
    checks: Dict[str, bool] = Field(default_factory=dict, description="의존성 상태")
