from unittest.mock import MagicMock

import pytest

from app.database.repositories.factory import SourceRecordStoreFactory
from app.database.repositories.memory_store import InMemorySourceRecordStore
from app.database.repositories.source_record_repository import SourceRecordRepository


class TestSourceRecordStoreFactory:
    def test_creates_postgres_repository(self) -> None:
        store = SourceRecordStoreFactory.create(MagicMock(record_store="postgres"))
        assert isinstance(store, SourceRecordRepository)

    def test_creates_memory_store_case_insensitive(self) -> None:
        store = SourceRecordStoreFactory.create(MagicMock(record_store="Memory"))
        assert isinstance(store, InMemorySourceRecordStore)

    def test_unknown_store_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown record store 'redis'"):
            SourceRecordStoreFactory.create(MagicMock(record_store="redis"))
