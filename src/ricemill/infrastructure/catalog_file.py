"""Schema of the JSON catalog file loaded by ``ricemill catalog load``.

Example::

    {
      "locations": [{"id": "wh-1", "name": "Main Warehouse", "code": "WH1"}],
      "products": [
        {"id": "p-1", "name": "Dinorado 50kg", "price": "2450.00",
         "category": "Milled Rice", "is_milled_rice": true, "reorder_point": 500}
      ]
    }
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from ricemill.application.dto import LocationSpec, ProductSpec
from ricemill.domain.exceptions import ValidationError as DomainValidationError


class CatalogLocation(BaseModel):
    id: str
    name: str
    code: str
    type: str = "WAREHOUSE"
    parent_id: Optional[str] = None
    is_active: bool = True


class CatalogProduct(BaseModel):
    id: str
    name: str
    price: Decimal = Field(ge=0)
    category: str = ""
    is_milled_rice: bool = False
    milling_yield_rate: Optional[Decimal] = None
    reorder_point: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        return v.strip()


class CatalogFile(BaseModel):
    locations: List[CatalogLocation] = Field(default_factory=list)
    products: List[CatalogProduct] = Field(default_factory=list)

    def product_specs(self) -> list[ProductSpec]:
        return [
            ProductSpec(
                id=p.id,
                name=p.name,
                price=str(p.price),
                category=p.category,
                is_milled_rice=p.is_milled_rice,
                milling_yield_rate=(
                    str(p.milling_yield_rate) if p.milling_yield_rate is not None else None
                ),
                reorder_point=p.reorder_point,
            )
            for p in self.products
        ]

    def location_specs(self) -> list[LocationSpec]:
        return [LocationSpec(**loc.model_dump()) for loc in self.locations]


def read_catalog(path: Path) -> CatalogFile:
    """Parse and validate a catalog file.

    Raises the domain ValidationError so callers handle it like any other
    rejected input.
    """
    try:
        return CatalogFile.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise DomainValidationError(f"Invalid catalog file {path}: {exc}") from exc
