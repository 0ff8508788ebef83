"""벡터 제공자 레지스트리

프로세스 설정에서 사용할 벡터 백엔드를 결정한다.
I/O 없는 순수 조회이며, 결과는 서비스 시작 시 한 번 만들어져 주입된다.
"""

from typing import Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict

from infra.config import Settings

logger = structlog.get_logger(__name__)

SUPPORTED_PROVIDERS: Tuple[str, ...] = ("qdrant", "pinecone")
NO_PROVIDER = "none"


class ProviderState(BaseModel):
    """벡터 제공자 상태 (Unconfigured | Configured(provider_id))"""
    model_config = ConfigDict(frozen=True)

    provider_id: Optional[str] = None

    @classmethod
    def unconfigured(cls) -> "ProviderState":
        return cls()

    @classmethod
    def configured(cls, provider_id: str) -> "ProviderState":
        return cls(provider_id=provider_id)

    @property
    def is_configured(self) -> bool:
        return self.provider_id is not None

    @property
    def name(self) -> str:
        """로그/오류 메시지용 제공자 이름"""
        return self.provider_id or NO_PROVIDER


def resolve_provider(settings: Settings) -> ProviderState:
    """설정값으로부터 ProviderState 결정

    Args:
        settings: 애플리케이션 설정 (VECTOR_PROVIDER)

    Returns:
        qdrant/pinecone이면 Configured, none/빈값/알 수 없는 값이면 Unconfigured
    """
    provider = (settings.vector_provider or NO_PROVIDER).strip().lower()

    if provider in SUPPORTED_PROVIDERS:
        return ProviderState.configured(provider)

    if provider != NO_PROVIDER:
        logger.warning(
            "알 수 없는 VECTOR_PROVIDER, none으로 처리",
            vector_provider=provider,
            supported=list(SUPPORTED_PROVIDERS)
        )

    return ProviderState.unconfigured()
