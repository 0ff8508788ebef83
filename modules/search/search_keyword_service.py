"""Search 키워드 검색 서비스

유형별 콘텐츠 저장소를 병렬 조회하고, 저장소 고유 원점수를 0~100 통합 점수로
변환하여 병합한다. 벡터 제공자와 무관하므로 VectorProviderError를 다루지 않는다.
"""

import asyncio
from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from .repository import ContentRepository
from .schema import ALL_ENTITY_TYPES, ContentMatch, EntityType, SearchResult

logger = structlog.get_logger(__name__)


def normalize_raw_score(raw_score: float, score_range: Tuple[float, float]) -> int:
    """저장소 원점수를 [0, 100] 정수로 재조정

    Args:
        raw_score: 저장소 고유 점수
        score_range: 저장소가 선언한 (최소, 최대) 원점수

    Returns:
        0~100 정수 점수
    """
    low, high = score_range
    if high <= low:
        return 100 if raw_score >= high else 0

    scaled = (raw_score - low) / (high - low) * 100
    return int(min(100, max(0, round(scaled))))


def sort_results(results: Iterable[SearchResult]) -> List[SearchResult]:
    """점수 내림차순, 제목 오름차순 (동점 시 ID로 고정)"""
    return sorted(results, key=lambda r: (-r.score, r.title.lower(), r.title, r.id))


class KeywordSearchEngine:
    """키워드 검색 전용 서비스"""

    def __init__(self, repositories: Dict[EntityType, ContentRepository]):
        """KeywordSearchEngine 초기화

        Args:
            repositories: 유형별 콘텐츠 저장소
        """
        self.repositories = repositories

    async def search(
        self,
        text: str,
        limit: int,
        types: Optional[Tuple[EntityType, ...]] = None
    ) -> List[SearchResult]:
        """게시된 콘텐츠 키워드 검색

        Args:
            text: 검색어
            limit: 최종 결과 개수
            types: 유형 필터 (None이면 전체)

        Returns:
            점수순 정렬 후 limit개로 자른 결과
        """
        effective_types = [
            entity_type for entity_type in (types or ALL_ENTITY_TYPES)
            if entity_type in self.repositories
        ]

        # 한 유형이 실패하면 전체 요청이 실패 (부분 결과 없음)
        per_type_matches = await asyncio.gather(*[
            self.repositories[entity_type].search_repo_find_matches(text, limit)
            for entity_type in effective_types
        ])

        results: List[SearchResult] = []
        for entity_type, matches in zip(effective_types, per_type_matches):
            score_range = self.repositories[entity_type].score_range
            results.extend(self._to_result(match, score_range) for match in matches)

        ranked = sort_results(results)[:limit]

        logger.info(
            "키워드 검색 완료",
            types=[entity_type.value for entity_type in effective_types],
            candidate_count=len(results),
            result_count=len(ranked)
        )

        return ranked

    def _to_result(self, match: ContentMatch, score_range: Tuple[float, float]) -> SearchResult:
        return SearchResult(
            id=match.id,
            type=match.type,
            title=match.title,
            description=match.description,
            slug=match.slug,
            url=match.url,
            score=normalize_raw_score(match.raw_score, score_range),
        )
