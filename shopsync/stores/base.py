from abc import ABC, abstractmethod


class BaseCacheStore(ABC):
    """Document store holding one cache document per record, namespaced by target."""

    @abstractmethod
    def existing_keys(self, target) -> set:
        """All keys currently cached for the target."""

    @abstractmethod
    def upsert(self, target, records) -> int:
        """Create or overwrite one document per record, atomically."""

    @abstractmethod
    def delete(self, target, keys) -> int:
        """Delete the documents with the given keys, atomically."""

    @abstractmethod
    def count(self, target) -> int:
        """Number of documents cached for the target."""
