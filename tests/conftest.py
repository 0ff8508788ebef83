"""Search 테스트 공용 픽스처"""

from typing import Dict

import pytest

from modules.search.errors import VectorProviderError
from modules.search.provider_registry import ProviderState
from modules.search.repository import ContentRepository, build_content_repositories
from modules.search.schema import EntityType
from modules.search.search_keyword_service import KeywordSearchEngine
from modules.search.search_semantic_service import SemanticSearchEngine

from tests.fakes import CONTENT_DOCUMENTS, FakeDatabase


@pytest.fixture
def fake_database() -> FakeDatabase:
    return FakeDatabase({name: [dict(d) for d in documents] for name, documents in CONTENT_DOCUMENTS.items()})


@pytest.fixture
def content_repositories(fake_database) -> Dict[EntityType, ContentRepository]:
    return build_content_repositories(database=fake_database)


@pytest.fixture
def keyword_engine(content_repositories) -> KeywordSearchEngine:
    return KeywordSearchEngine(content_repositories)


@pytest.fixture
def unconfigured_semantic_engine() -> SemanticSearchEngine:
    return SemanticSearchEngine(provider_state=ProviderState.unconfigured())


@pytest.fixture
def provider_error() -> VectorProviderError:
    return VectorProviderError("vector query failed: connection refused", provider="qdrant")
