"""
Redis 캐시 관리 모듈

검색 모듈이 사용하는 범용 키-값 캐시를 제공합니다.
Redis에 연결할 수 없으면 모든 작업이 no-op으로 동작합니다.
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

import redis.asyncio as redis
import structlog
from pydantic import BaseModel

from .config import get_settings

logger = structlog.get_logger(__name__)


class CacheService:
    """Redis 캐시 서비스 클래스"""

    def __init__(self):
        self.settings = get_settings()
        self.redis_client: Optional[redis.Redis] = None
        self.default_ttl = 3600  # 1시간 기본 TTL

    async def connect(self) -> None:
        """Redis 연결 초기화"""
        try:
            self.redis_client = redis.from_url(
                self.settings.redis_url,
                password=self.settings.redis_password,
                db=self.settings.redis_db,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
                max_connections=self.settings.redis_max_connections
            )

            # 연결 테스트
            await self.redis_client.ping()
            logger.info("Redis 캐시 서비스 연결 성공")

        except (redis.RedisError, OSError) as e:
            logger.warning("Redis 연결 실패, 캐시 없이 동작합니다", error=str(e))
            self.redis_client = None

    async def disconnect(self) -> None:
        """Redis 연결 해제"""
        if self.redis_client:
            await self.redis_client.aclose()
            self.redis_client = None
            logger.info("Redis 캐시 서비스 연결 해제")

    # === 기본 캐시 작업 메서드 ===

    async def cache_set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """캐시 데이터 저장"""
        if not self.redis_client:
            return False

        try:
            if isinstance(value, (dict, list, BaseModel)):
                if isinstance(value, BaseModel):
                    value = value.model_dump()
                value = json.dumps(value, ensure_ascii=False, default=str)

            ttl = ttl or self.default_ttl
            await self.redis_client.setex(key, ttl, value)
            logger.debug("캐시 저장 성공", key=key)
            return True

        except (redis.RedisError, OSError) as e:
            logger.error("캐시 저장 실패", key=key, error=str(e))
            return False

    async def cache_get(self, key: str) -> Optional[Any]:
        """캐시 데이터 조회"""
        if not self.redis_client:
            return None

        try:
            value = await self.redis_client.get(key)
            if value is None:
                return None

            # JSON 파싱 시도
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value

        except (redis.RedisError, OSError) as e:
            logger.error("캐시 조회 실패", key=key, error=str(e))
            return None

    # === 헬스체크 ===

    async def health_check(self) -> Dict[str, Any]:
        """캐시 서비스 헬스체크"""
        if not self.redis_client:
            return {"status": "unhealthy", "error": "Redis client not initialized"}

        try:
            start_time = datetime.now()
            await self.redis_client.ping()
            response_time = (datetime.now() - start_time).total_seconds() * 1000

            return {
                "status": "healthy",
                "response_time_ms": round(response_time, 2),
            }

        except (redis.RedisError, OSError) as e:
            return {"status": "unhealthy", "error": str(e)}


# 전역 캐시 서비스 인스턴스
_cache_service: Optional[CacheService] = None


async def get_cache_service() -> CacheService:
    """캐시 서비스 인스턴스 반환 (싱글톤)"""
    global _cache_service

    if _cache_service is None:
        _cache_service = CacheService()
        await _cache_service.connect()

    return _cache_service


async def cleanup_cache_service() -> None:
    """캐시 서비스 정리"""
    global _cache_service

    if _cache_service:
        await _cache_service.disconnect()
        _cache_service = None
