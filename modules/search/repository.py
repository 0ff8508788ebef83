"""Search 모듈 리포지토리 계층

MongoDB 콘텐츠 컬렉션에 대한 읽기 전용 접근을 담당
- 유형별 콘텐츠 저장소: 게시된 문서만 대상으로 키워드 매치 + 저장소 고유 원점수
- 구절 임베딩 저장소: 저장된 구절 벡터 후보 조회
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase

from infra.database import get_database

from .schema import ContentMatch, EntityType

logger = structlog.get_logger(__name__)

# 제목 매치 품질 가산점
MATCH_BONUS_EXACT = 50
MATCH_BONUS_PREFIX = 30
MATCH_BONUS_WORD = 20
MATCH_BONUS_CONTAINS = 10
MAX_MATCH_BONUS = MATCH_BONUS_EXACT

PUBLISHED_STATUS = "published"

# 구절 번역본 우선순위
VERSE_TEXT_PRIORITY = ("text_kjv", "text_web", "text_asv", "text_rv", "text_bl")


@dataclass(frozen=True)
class ContentSource:
    """콘텐츠 유형별 컬렉션 매핑"""
    entity_type: EntityType
    collection: str
    title_field: str
    description_field: str
    search_fields: Tuple[str, ...]
    base_score: float
    sort: Tuple[Tuple[str, int], ...]
    url_template: str
    # status 필드로 게시 여부를 관리하는 유형인지
    publishable: bool = True


CONTENT_SOURCES: Dict[EntityType, ContentSource] = {
    EntityType.SITUATION: ContentSource(
        entity_type=EntityType.SITUATION,
        collection="situations",
        title_field="title",
        description_field="meta_description",
        search_fields=("title", "meta_description", "content", "category"),
        base_score=60,
        sort=(("updated_at", -1),),
        url_template="/bible-verses-for/{slug}",
    ),
    EntityType.PRAYER_POINT: ContentSource(
        entity_type=EntityType.PRAYER_POINT,
        collection="prayer_points",
        title_field="title",
        description_field="description",
        search_fields=("title", "description", "content", "category"),
        base_score=55,
        sort=(("priority", -1),),
        url_template="/prayer-points/{slug}",
    ),
    EntityType.PLACE: ContentSource(
        entity_type=EntityType.PLACE,
        collection="places",
        title_field="name",
        description_field="description",
        search_fields=(
            "name", "description", "biblical_context",
            "historical_info", "country", "region",
        ),
        base_score=65,
        sort=(("tour_priority", -1),),
        url_template="/bible-places/{slug}",
    ),
    EntityType.PROFESSION: ContentSource(
        entity_type=EntityType.PROFESSION,
        collection="professions",
        title_field="title",
        description_field="description",
        search_fields=("title", "description", "content"),
        base_score=50,
        sort=(("updated_at", -1),),
        url_template="/prayers-for-professions/{slug}",
    ),
    EntityType.VERSE: ContentSource(
        entity_type=EntityType.VERSE,
        collection="verses",
        title_field="text_kjv",
        description_field="text_kjv",
        search_fields=("text_kjv", "text_web"),
        base_score=40,
        sort=(("book_id", 1), ("chapter", 1), ("verse_number", 1)),
        url_template="/verse/{slug}",
        publishable=False,
    ),
    EntityType.NAME: ContentSource(
        entity_type=EntityType.NAME,
        collection="names",
        title_field="name",
        description_field="meaning",
        search_fields=("name", "meaning", "character_description"),
        base_score=55,
        sort=(("name", 1),),
        url_template="/meaning-of/{slug}",
        publishable=False,
    ),
}


def calculate_match_score(text: str, query: str, base_score: float) -> float:
    """제목 매치 품질로 원점수 계산

    정확히 일치 > 접두 일치 > 단어 일치 > 부분 일치 순으로 가산한다.
    """
    lower_text = (text or "").lower()
    lower_query = query.lower()

    if lower_text == lower_query:
        return base_score + MATCH_BONUS_EXACT
    if lower_text.startswith(lower_query):
        return base_score + MATCH_BONUS_PREFIX
    if re.search(rf"\b{re.escape(lower_query)}\b", lower_text):
        return base_score + MATCH_BONUS_WORD
    if lower_query in lower_text:
        return base_score + MATCH_BONUS_CONTAINS
    return base_score


class ContentRepository:
    """유형별 콘텐츠 컬렉션 키워드 검색 저장소"""

    def __init__(
        self,
        source: ContentSource,
        database: Optional[AsyncIOMotorDatabase] = None,
        description_max_length: int = 200
    ):
        self.source = source
        self._database = database
        self.description_max_length = description_max_length

    @property
    def entity_type(self) -> EntityType:
        return self.source.entity_type

    @property
    def score_range(self) -> Tuple[float, float]:
        """이 저장소가 반환하는 원점수 범위 (최소, 최대)"""
        return (self.source.base_score, self.source.base_score + MAX_MATCH_BONUS)

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            self._database = get_database()
        return self._database

    async def search_repo_find_matches(self, query_text: str, limit: int) -> List[ContentMatch]:
        """게시된 문서 중 검색 필드에 질의가 포함된 문서 조회

        Args:
            query_text: 검색어 (대소문자 무시 부분 일치)
            limit: 최대 조회 개수

        Returns:
            저장소 고유 원점수를 가진 매치 목록
        """
        search_term = query_text.strip()
        if not search_term:
            return []

        # 제목 접두(정확 포함) 일치 문서가 최신/우선순위 정렬보다 먼저 limit 안에 든다
        title_documents = await self._find(self._build_title_prefix_filter(search_term), limit)
        documents = await self._find(self._build_filter(search_term), limit)

        seen_ids = {document["_id"] for document in title_documents}
        documents = title_documents + [d for d in documents if d["_id"] not in seen_ids]
        documents = documents[:limit]

        matches = []
        for document in documents:
            match = self._to_match(document, search_term)
            if match is not None:
                matches.append(match)

        logger.debug(
            "콘텐츠 키워드 조회 완료",
            entity_type=self.entity_type.value,
            collection=self.source.collection,
            match_count=len(matches)
        )

        return matches

    async def _find(self, query: Dict[str, Any], limit: int) -> List[Dict[str, Any]]:
        cursor = (
            self.database[self.source.collection]
            .find(query, self._projection())
            .sort(list(self.source.sort))
            .limit(limit)
        )
        return await cursor.to_list(length=limit)

    def _build_filter(self, search_term: str) -> Dict[str, Any]:
        """게시 조건 + 검색 필드 OR 정규식 조건"""
        pattern = {"$regex": re.escape(search_term), "$options": "i"}
        query: Dict[str, Any] = {
            "$or": [{field: pattern} for field in self.source.search_fields]
        }
        if self.source.publishable:
            query["status"] = PUBLISHED_STATUS
        return query

    def _build_title_prefix_filter(self, search_term: str) -> Dict[str, Any]:
        query: Dict[str, Any] = {
            self.source.title_field: {"$regex": f"^{re.escape(search_term)}", "$options": "i"}
        }
        if self.source.publishable:
            query["status"] = PUBLISHED_STATUS
        return query

    def _projection(self) -> Dict[str, int]:
        fields = {"_id", "slug", self.source.title_field, self.source.description_field}
        return {field: 1 for field in sorted(fields)}

    def _to_match(self, document: Dict[str, Any], search_term: str) -> Optional[ContentMatch]:
        """MongoDB 문서를 ContentMatch로 변환 (필수 필드 누락 시 None)"""
        title = document.get(self.source.title_field)
        slug = document.get("slug")
        if not title or not slug:
            logger.warning(
                "필수 필드가 없는 문서 건너뜀",
                entity_type=self.entity_type.value,
                document_id=str(document.get("_id"))
            )
            return None

        description = document.get(self.source.description_field) or ""

        return ContentMatch(
            id=str(document["_id"]),
            type=self.entity_type,
            title=title,
            description=description[:self.description_max_length],
            slug=slug,
            url=self.source.url_template.format(slug=slug),
            raw_score=calculate_match_score(title, search_term, self.source.base_score),
        )


class VerseRepository(ContentRepository):
    """구절 저장소 - 제목은 '책 장:절' 참조, 점수는 본문 기준"""

    def __init__(self, database: Optional[AsyncIOMotorDatabase] = None, description_max_length: int = 200):
        super().__init__(CONTENT_SOURCES[EntityType.VERSE], database, description_max_length)

    def _projection(self) -> Dict[str, int]:
        return {
            "_id": 1, "book_name": 1, "book_slug": 1,
            "chapter": 1, "verse_number": 1, "text_kjv": 1,
        }

    def _to_match(self, document: Dict[str, Any], search_term: str) -> Optional[ContentMatch]:
        book_name = document.get("book_name")
        book_slug = document.get("book_slug")
        chapter = document.get("chapter")
        verse_number = document.get("verse_number")
        if not book_name or not book_slug or chapter is None or verse_number is None:
            logger.warning("참조 정보가 없는 구절 건너뜀", document_id=str(document.get("_id")))
            return None

        text = document.get("text_kjv") or ""
        slug = f"{book_slug}/{chapter}/{verse_number}"

        return ContentMatch(
            id=str(document["_id"]),
            type=EntityType.VERSE,
            title=f"{book_name} {chapter}:{verse_number}",
            description=text[:self.description_max_length],
            slug=slug,
            url=self.source.url_template.format(slug=slug),
            raw_score=calculate_match_score(text, search_term, self.source.base_score),
        )


def build_content_repositories(
    database: Optional[AsyncIOMotorDatabase] = None,
    description_max_length: int = 200
) -> Dict[EntityType, ContentRepository]:
    """전체 유형의 콘텐츠 저장소 생성"""
    repositories: Dict[EntityType, ContentRepository] = {}
    for entity_type, source in CONTENT_SOURCES.items():
        if entity_type == EntityType.VERSE:
            repositories[entity_type] = VerseRepository(database, description_max_length)
        else:
            repositories[entity_type] = ContentRepository(source, database, description_max_length)
    return repositories


class VerseEmbeddingRepository:
    """저장된 구절 임베딩 조회 저장소 (오프라인 배치가 채움)"""

    collection_name = "verse_embeddings"

    def __init__(self, database: Optional[AsyncIOMotorDatabase] = None):
        self._database = database

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._database is None:
            self._database = get_database()
        return self._database

    async def search_repo_find_verse_embeddings(
        self,
        model: str,
        limit: int
    ) -> List[Dict[str, Any]]:
        """모델별 구절 임베딩 후보 조회 (최신 갱신 순)

        Returns:
            verse_id, book_id, chapter, verse_number, text, vector 키를 가진 목록
        """
        projection = {
            "_id": 0, "verse_id": 1, "book_id": 1, "chapter": 1,
            "verse_number": 1, "vector": 1,
            **{field: 1 for field in VERSE_TEXT_PRIORITY},
        }
        cursor = (
            self.database[self.collection_name]
            .find({"model": model}, projection)
            .sort([("updated_at", -1)])
            .limit(limit)
        )
        documents = await cursor.to_list(length=limit)

        candidates = []
        for document in documents:
            vector = document.get("vector")
            if not isinstance(vector, list) or not vector:
                continue
            if any(document.get(key) is None for key in ("verse_id", "book_id", "chapter", "verse_number")):
                continue
            candidates.append({
                "verse_id": document.get("verse_id"),
                "book_id": document.get("book_id"),
                "chapter": document.get("chapter"),
                "verse_number": document.get("verse_number"),
                "text": select_verse_text(document),
                "vector": vector,
            })

        logger.debug("구절 임베딩 후보 조회", model=model, candidate_count=len(candidates))
        return candidates


def select_verse_text(document: Dict[str, Any]) -> str:
    """번역본 우선순위에 따라 본문을 선택하고 공백을 정규화"""
    for field in VERSE_TEXT_PRIORITY:
        text = document.get(field)
        if text and text.strip():
            return " ".join(text.split())
    return ""
