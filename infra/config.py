"""
TheLordWill Search 전역 설정 및 환경변수 관리

Pydantic Settings를 사용한 타입 안전한 설정 관리
"""

from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 전역 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # 애플리케이션 기본 설정
    app_name: str = Field(default="thelordwill-search", description="애플리케이션 이름")
    app_version: str = Field(default="0.1.0", description="애플리케이션 버전")
    app_environment: str = Field(default="development", description="실행 환경")
    app_log_level: str = Field(default="INFO", description="로그 레벨")

    # API 설정
    api_host: str = Field(default="0.0.0.0", description="API 호스트")
    api_port: int = Field(default=8000, description="API 포트")
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="CORS 허용 오리진"
    )

    # MongoDB 설정 (콘텐츠 저장소)
    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB 연결 URL"
    )
    mongodb_database: str = Field(default="thelordwill", description="MongoDB 데이터베이스명")
    mongodb_min_pool_size: int = Field(default=5, description="MongoDB 최소 연결 풀 크기")
    mongodb_max_pool_size: int = Field(default=50, description="MongoDB 최대 연결 풀 크기")
    mongodb_timeout_ms: int = Field(default=5000, description="MongoDB 타임아웃(ms)")

    # Redis 설정 (질의 임베딩 캐시)
    redis_url: str = Field(default="redis://localhost:6379", description="Redis 연결 URL")
    redis_db: int = Field(default=0, description="Redis 데이터베이스 번호")
    redis_password: Optional[str] = Field(default=None, description="Redis 비밀번호")
    redis_max_connections: int = Field(default=10, description="Redis 최대 연결 수")

    # OpenAI API 설정
    openai_api_key: str = Field(default="", description="OpenAI API 키")
    openai_model: str = Field(default="text-embedding-3-small", description="OpenAI 임베딩 모델")

    # 벡터 제공자 설정
    vector_provider: str = Field(default="none", description="벡터 제공자 (qdrant/pinecone/none)")
    qdrant_url: str = Field(default="http://localhost:6333", description="Qdrant 서버 URL")
    qdrant_api_key: Optional[str] = Field(default=None, description="Qdrant API 키")
    qdrant_collection_name: str = Field(default="thelordwill", description="Qdrant 컬렉션명")
    pinecone_api_key: str = Field(default="", description="Pinecone API 키")
    pinecone_index: str = Field(default="thelordwill", description="Pinecone 인덱스명")
    pinecone_namespace: Optional[str] = Field(default=None, description="Pinecone 네임스페이스")

    # 검색 설정
    search_default_limit: int = Field(default=20, description="검색 기본 제한 수")
    search_overfetch_factor: int = Field(default=2, ge=1, description="벡터 검색 초과 조회 배수")
    search_embedding_timeout_seconds: float = Field(default=5.0, gt=0, description="임베딩 호출 타임아웃(초)")
    search_vector_timeout_seconds: float = Field(default=5.0, gt=0, description="벡터 조회 타임아웃(초)")
    search_semantic_retry_attempts: int = Field(default=0, ge=0, le=3, description="폴백 전 재시도 횟수")
    search_embedding_cache_ttl: int = Field(default=3600, ge=1, description="질의 임베딩 캐시 TTL(초)")
    search_description_max_length: int = Field(default=200, description="설명 최대 길이")

    # 로깅 설정
    log_format: str = Field(default="json", description="로그 형식 (json/console)")
    log_file_path: Optional[str] = Field(default=None, description="로그 파일 경로")
    log_file_max_size: str = Field(default="10MB", description="로그 파일 최대 크기")
    log_file_backup_count: int = Field(default=5, description="로그 파일 백업 개수")
    log_console_enabled: bool = Field(default=True, description="콘솔 로그 활성화")

    @field_validator("app_environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """환경 설정 검증"""
        valid_environments = ["development", "testing", "staging", "production"]
        if v not in valid_environments:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_environments}")
        return v

    @field_validator("app_log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """로그 레벨 검증"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("vector_provider")
    @classmethod
    def normalize_vector_provider(cls, v: str) -> str:
        """벡터 제공자 이름 정규화 (알 수 없는 값은 레지스트리에서 처리)"""
        return (v or "none").strip().lower()

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS 오리진을 리스트로 반환"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """프로덕션 환경 여부"""
        return self.app_environment == "production"


# 전역 설정 인스턴스
settings = Settings()


def get_settings() -> Settings:
    """설정 인스턴스 반환 (의존성 주입용)"""
    return settings
