from app.config.settings import Settings
from app.database.repositories.base import BaseSourceRecordStore
from app.database.repositories.memory_store import InMemorySourceRecordStore
from app.database.repositories.source_record_repository import SourceRecordRepository


class SourceRecordStoreFactory:
    """Creates the configured source record store."""

    STORES: dict[str, type[BaseSourceRecordStore]] = {
        "postgres": SourceRecordRepository,
        "memory": InMemorySourceRecordStore,
    }

    @classmethod
    def create(cls, settings: Settings) -> BaseSourceRecordStore:
        backend = settings.record_store.lower()
        store_cls = cls.STORES.get(backend)
        if store_cls is None:
            raise ValueError(
                f"Unknown record store '{backend}'. Choose from: {list(cls.STORES)}"
            )
        return store_cls()
