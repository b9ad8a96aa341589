from unittest.mock import MagicMock

import pytest

from services.shared.domain.value_object.saga_transaction_id import SagaTransactionId


@pytest.fixture
def saga_transaction_id():
    """全テスト共通の SagaTransactionId フィクスチャ"""
    return SagaTransactionId(value="saga-123")


@pytest.fixture
def mock_repository():
    """リポジトリのモックフィクスチャ"""
    return MagicMock()
