"""Search 테스트 공용 가짜 객체

외부 의존성(MongoDB, OpenAI, 벡터 인덱스, Redis)은 모두 메모리 내 가짜로 대체한다.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from modules.search.schema import ContentMatch, EntityType, VectorMatch


# === MongoDB 가짜 ===

def _document_matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(_document_matches(document, sub) for sub in condition):
                return False
        elif isinstance(condition, dict) and "$regex" in condition:
            value = document.get(key)
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            if not isinstance(value, str) or not re.search(condition["$regex"], value, flags):
                return False
        elif document.get(key) != condition:
            return False
    return True


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]):
        self.documents = documents
        self._limit: Optional[int] = None

    def sort(self, keys: List[Tuple[str, int]]) -> "FakeCursor":
        for field, direction in reversed(keys):
            self.documents = sorted(
                self.documents, key=lambda d: d.get(field), reverse=direction < 0
            )
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._limit = count
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        bounds = [x for x in (self._limit, length) if x is not None]
        return list(self.documents[:min(bounds)] if bounds else self.documents)


class FakeCollection:
    def __init__(self, documents: List[Dict[str, Any]]):
        self.documents = documents
        self.queries: List[Dict[str, Any]] = []

    def find(self, query: Dict[str, Any], projection: Optional[Dict[str, int]] = None) -> FakeCursor:
        self.queries.append(query)
        return FakeCursor([d for d in self.documents if _document_matches(d, query)])


class FakeDatabase:
    def __init__(self, collections: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.collections = {
            name: FakeCollection(documents) for name, documents in (collections or {}).items()
        }

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection([])
        return self.collections[name]


# === 저장소/임베딩/벡터 가짜 ===

class FakeContentRepository:
    """고정된 매치를 반환하는 콘텐츠 저장소"""

    def __init__(
        self,
        entity_type: EntityType,
        matches: List[ContentMatch],
        score_range: Tuple[float, float] = (0, 100),
        error: Optional[Exception] = None
    ):
        self.entity_type = entity_type
        self.matches = matches
        self.score_range = score_range
        self.error = error
        self.calls: List[Tuple[str, int]] = []

    async def search_repo_find_matches(self, query_text: str, limit: int) -> List[ContentMatch]:
        self.calls.append((query_text, limit))
        if self.error is not None:
            raise self.error
        return self.matches[:limit]


class FakeEmbeddingProvider:
    def __init__(self, vector: Optional[List[float]] = None, error: Optional[Exception] = None):
        self.vector = vector or [0.1, 0.2, 0.3]
        self.error = error
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.vector


class FakeVectorIndex:
    def __init__(self, matches: Optional[List[VectorMatch]] = None, errors: Optional[List[Exception]] = None):
        self.matches = matches or []
        self.errors = list(errors or [])
        self.calls: List[int] = []

    async def top_k(self, vector: List[float], k: int) -> List[VectorMatch]:
        self.calls.append(k)
        if self.errors:
            raise self.errors.pop(0)
        return self.matches[:k]


class FakeEmbeddingCache:
    """결정적 메모리 임베딩 캐시"""

    def __init__(self):
        self.store: Dict[Tuple[str, str], List[float]] = {}

    async def cache_embedding_get(self, text: str, provider_id: str) -> Optional[List[float]]:
        return self.store.get((text.lower().strip(), provider_id))

    async def cache_embedding_set(self, text: str, provider_id: str, embedding: List[float]) -> bool:
        self.store[(text.lower().strip(), provider_id)] = embedding
        return True


# === 데이터 헬퍼 ===

def make_match(entity_type: EntityType, title: str, raw_score: float, match_id: Optional[str] = None) -> ContentMatch:
    slug = title.lower().replace(" ", "-")
    return ContentMatch(
        id=match_id or f"{entity_type.value}-{slug}",
        type=entity_type,
        title=title,
        description=f"{title} 설명",
        slug=slug,
        url=f"/{entity_type.value}/{slug}",
        raw_score=raw_score,
    )


def make_vector_match(match_id: str, entity_type: str, score: float, **metadata: Any) -> VectorMatch:
    payload = {
        "id": match_id,
        "type": entity_type,
        "title": f"Title {match_id}",
        "description": "",
        "slug": f"slug-{match_id}",
        "url": f"/{entity_type}/slug-{match_id}",
    }
    payload.update(metadata)
    return VectorMatch(id=match_id, score=score, metadata=payload)


# 게시/초안이 섞인 콘텐츠 데이터
CONTENT_DOCUMENTS = {
    "situations": [
        {"_id": "s1", "title": "Faith in Hard Times", "slug": "faith-in-hard-times",
         "meta_description": "Verses about faith", "status": "published", "updated_at": 2},
        {"_id": "s2", "title": "Faith Draft", "slug": "faith-draft",
         "meta_description": "draft", "status": "draft", "updated_at": 3},
    ],
    "prayer_points": [
        {"_id": "p1", "title": "Pray for Faith", "slug": "pray-for-faith",
         "description": "Strength in faith", "status": "published", "priority": 5},
    ],
    "places": [
        {"_id": "pl1", "name": "Bethel", "slug": "bethel", "description": "House of God",
         "biblical_context": "Jacob's faith", "status": "published", "tour_priority": 1},
        {"_id": "pl2", "name": "Faith Hill", "slug": "faith-hill", "description": "unpublished",
         "status": "draft", "tour_priority": 9},
    ],
    "professions": [
        {"_id": "pr1", "title": "Teachers", "slug": "teachers",
         "description": "Faithful teaching", "status": "published", "updated_at": 1},
    ],
    "verses": [
        {"_id": "v1", "book_name": "Hebrews", "book_slug": "hebrews", "book_id": 58,
         "chapter": 11, "verse_number": 1, "text_kjv": "Now faith is the substance of things hoped for"},
    ],
    "names": [
        {"_id": "n1", "name": "Faith", "slug": "faith", "meaning": "Trust"},
    ],
}


class FakeVerseEmbeddingRepository:
    def __init__(self, candidates: List[Dict[str, Any]], error: Optional[Exception] = None):
        self.candidates = candidates
        self.error = error
        self.calls: List[Tuple[str, int]] = []

    async def search_repo_find_verse_embeddings(self, model: str, limit: int) -> List[Dict[str, Any]]:
        self.calls.append((model, limit))
        if self.error is not None:
            raise self.error
        return self.candidates


def make_verse_candidate(verse_id: int, vector: List[float]) -> Dict[str, Any]:
    return {
        "verse_id": verse_id, "book_id": 1, "chapter": 1,
        "verse_number": verse_id, "text": f"verse {verse_id}", "vector": vector,
    }
