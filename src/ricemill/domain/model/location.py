"""Storage locations: warehouses down to individual bins."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LocationType(Enum):
    WAREHOUSE = "WAREHOUSE"
    ZONE = "ZONE"
    SHELF = "SHELF"
    BIN = "BIN"


@dataclass
class StorageLocation:
    id: str
    name: str
    code: str
    type: LocationType = LocationType.WAREHOUSE
    parent_id: str | None = None
    is_active: bool = True
