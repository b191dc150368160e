"""Abstract repository for StorageLocation (read-only to the core)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ricemill.domain.model.location import StorageLocation


class LocationRepository(ABC):

    @abstractmethod
    def get_by_id(self, location_id: str) -> StorageLocation | None:
        """Return a location by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[StorageLocation]:
        """Return every location."""

    @abstractmethod
    def save(self, location: StorageLocation) -> None:
        """Persist a new or updated location."""
