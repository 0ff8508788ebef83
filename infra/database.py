"""
TheLordWill Search MongoDB 연결 관리

Motor를 사용한 비동기 MongoDB 클라이언트 관리 (레이지 싱글톤)
infra 아키텍쳐 지침: 연결, 초기화, 설정만 담당
"""

import asyncio
from typing import Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from .config import get_settings

logger = structlog.get_logger(__name__)


class DatabaseManager:
    """MongoDB 연결 관리자 - 레이지 싱글톤"""

    _instance: Optional['DatabaseManager'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, '_init_done'):
            self.client: Optional[AsyncIOMotorClient] = None
            self.database: Optional[AsyncIOMotorDatabase] = None
            self._initialized = False
            self._lock = asyncio.Lock()
            self._init_done = True

    async def ensure_initialized(self) -> None:
        """레이지 초기화 - 필요할 때만 연결"""
        if self._initialized:
            return

        async with self._lock:
            if self._initialized:  # Double-check
                return

            await self._connect()
            self._initialized = True

    async def _connect(self) -> None:
        """실제 MongoDB 연결"""
        settings = get_settings()

        try:
            logger.info("MongoDB 연결 시작", database=settings.mongodb_database)

            self.client = AsyncIOMotorClient(
                settings.mongodb_url,
                minPoolSize=settings.mongodb_min_pool_size,
                maxPoolSize=settings.mongodb_max_pool_size,
                serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
                connectTimeoutMS=settings.mongodb_timeout_ms,
                socketTimeoutMS=settings.mongodb_timeout_ms,
            )

            # 연결 테스트
            await self.client.admin.command('ping')
            self.database = self.client[settings.mongodb_database]

            logger.info("MongoDB 연결 성공", database=settings.mongodb_database)

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error("MongoDB 연결 실패", error=str(e))
            self.client = None
            raise

    async def disconnect(self) -> None:
        """연결 해제"""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            self._initialized = False
            logger.info("MongoDB 연결 해제")

    async def ping(self) -> bool:
        """헬스체크용 ping"""
        if not self.client:
            return False
        try:
            await self.client.admin.command('ping')
            return True
        except Exception as e:
            logger.warning("MongoDB ping 실패", error=str(e))
            return False

    def get_database(self) -> AsyncIOMotorDatabase:
        """MongoDB 데이터베이스 객체 반환"""
        if not self._initialized or self.database is None:
            raise RuntimeError("DatabaseManager가 초기화되지 않았습니다. ensure_initialized()를 먼저 호출하세요.")
        return self.database


def get_database_manager() -> DatabaseManager:
    """데이터베이스 매니저 인스턴스 반환 - 싱글톤 패턴"""
    return DatabaseManager()


def get_database() -> AsyncIOMotorDatabase:
    """현재 데이터베이스를 반환합니다."""
    return get_database_manager().get_database()


async def connect_to_mongodb() -> None:
    """MongoDB에 연결합니다."""
    await get_database_manager().ensure_initialized()


async def disconnect_from_mongodb() -> None:
    """MongoDB 연결을 해제합니다."""
    await get_database_manager().disconnect()
