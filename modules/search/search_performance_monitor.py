"""Search 성능 모니터링 서비스

프로세스 내 검색 메트릭 수집 (모드별 요청 수, 폴백, 오류, 작업별 지연 시간)
"""

from collections import Counter, defaultdict, deque
from datetime import datetime
from typing import Any, Deque, Dict, List

import structlog

logger = structlog.get_logger(__name__)

# 작업별로 유지하는 최근 샘플 수
MAX_SAMPLES_PER_OPERATION = 1000


class SearchPerformanceMonitor:
    """검색 성능 모니터링 서비스"""

    def __init__(self, max_samples: int = MAX_SAMPLES_PER_OPERATION):
        self.max_samples = max_samples
        self.operation_times: Dict[str, Deque[float]] = defaultdict(
            lambda: deque(maxlen=self.max_samples)
        )
        self.requested_modes: Counter = Counter()
        self.served_modes: Counter = Counter()
        self.fallback_codes: Counter = Counter()
        self.error_count = 0
        self.started_at = datetime.now()

    # === 메트릭 수집 ===

    def search_monitor_record_operation(self, operation_name: str, duration_ms: float) -> None:
        """작업 소요 시간 기록"""
        self.operation_times[operation_name].append(duration_ms)

    def search_monitor_record_search(
        self,
        requested_mode: str,
        served_mode: str,
        duration_ms: float,
        fallback_code: str = None
    ) -> None:
        """완료된 검색 요청 기록

        Args:
            requested_mode: 요청된 모드
            served_mode: 실제 응답 모드
            duration_ms: 전체 소요 시간
            fallback_code: 폴백 사유 코드 (제공자:원인 예외 클래스, 폴백된 경우)
        """
        self.requested_modes[requested_mode] += 1
        self.served_modes[served_mode] += 1
        if fallback_code:
            self.fallback_codes[fallback_code] += 1
        self.search_monitor_record_operation(f"search_{served_mode}", duration_ms)

    def search_monitor_record_error(self) -> None:
        self.error_count += 1

    # === 메트릭 분석 ===

    def search_monitor_get_metrics_summary(self) -> Dict[str, Any]:
        """성능 메트릭 요약 조회

        Returns:
            메트릭 요약 정보
        """
        operations = {}
        for op_name, times in self.operation_times.items():
            if not times:
                continue
            sorted_times = sorted(times)
            operations[op_name] = {
                "count": len(sorted_times),
                "average_ms": sum(sorted_times) / len(sorted_times),
                "max_ms": sorted_times[-1],
                "p95_ms": self._calculate_percentile(sorted_times, 95),
            }

        return {
            "total_searches": sum(self.requested_modes.values()),
            "requested_modes": dict(self.requested_modes),
            "served_modes": dict(self.served_modes),
            "fallback_count": sum(self.fallback_codes.values()),
            "fallback_codes": dict(self.fallback_codes),
            "error_count": self.error_count,
            "operations": operations,
            "since": self.started_at.isoformat(),
        }

    # === 내부 헬퍼 함수 ===

    def _calculate_percentile(self, sorted_list: List[float], percentile: int) -> float:
        """백분위수 계산"""
        if not sorted_list:
            return 0

        index = int((percentile / 100) * len(sorted_list))
        if index >= len(sorted_list):
            index = len(sorted_list) - 1

        return sorted_list[index]
