"""Search 결과 집계 서비스"""

from typing import Dict, List, Sequence

from .schema import EntityType, SearchResult


class ResultAggregator:
    """결과를 유형별로 묶는 표현 전용 집계기"""

    @staticmethod
    def group_by_type(results: Sequence[SearchResult]) -> Dict[EntityType, List[SearchResult]]:
        """유형별 그룹화

        결과가 있는 유형만 키로 포함하고, 그룹 내 순서는 입력 순서를 따른다.
        """
        grouped: Dict[EntityType, List[SearchResult]] = {}
        for result in results:
            grouped.setdefault(result.type, []).append(result)
        return grouped
