"""SQLAlchemy-backed implementation of LocationRepository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ricemill.domain.model.location import LocationType, StorageLocation
from ricemill.domain.repository.location_repository import LocationRepository
from ricemill.infrastructure.persistence.models import LocationRow


class SqlLocationRepository(LocationRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, location_id: str) -> StorageLocation | None:
        row = self._session.get(LocationRow, location_id)
        return self._to_domain(row) if row is not None else None

    def list_all(self) -> list[StorageLocation]:
        rows = self._session.scalars(select(LocationRow).order_by(LocationRow.code))
        return [self._to_domain(row) for row in rows]

    def save(self, location: StorageLocation) -> None:
        row = self._session.get(LocationRow, location.id)
        if row is None:
            row = LocationRow(id=location.id)
            self._session.add(row)
        row.name = location.name
        row.code = location.code
        row.type = location.type.value
        row.parent_id = location.parent_id
        row.is_active = location.is_active
        self._session.flush()

    @staticmethod
    def _to_domain(row: LocationRow) -> StorageLocation:
        return StorageLocation(
            id=row.id,
            name=row.name,
            code=row.code,
            type=LocationType(row.type),
            parent_id=row.parent_id,
            is_active=row.is_active,
        )
