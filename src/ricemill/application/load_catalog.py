"""Application service: Load Catalog use case.

Upserts products and storage locations by id.  Catalog fields are
overwritten; a product's cached stock projection is never touched here.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from ricemill.application.dto import CatalogLoadDTO, LocationSpec, ProductSpec
from ricemill.domain.exceptions import ValidationError
from ricemill.domain.model.location import LocationType, StorageLocation
from ricemill.domain.model.product import Product
from ricemill.domain.model.value_objects import Money
from ricemill.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class LoadCatalogHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        products: list[ProductSpec],
        locations: list[LocationSpec],
    ) -> CatalogLoadDTO:
        counts = dict.fromkeys(
            ("products_created", "products_updated", "locations_created", "locations_updated"), 0
        )
        with self._uow:
            for spec in locations:
                location = self._uow.locations.get_by_id(spec.id)
                if location is None:
                    counts["locations_created"] += 1
                    location = StorageLocation(id=spec.id, name=spec.name, code=spec.code)
                else:
                    counts["locations_updated"] += 1
                location.name = spec.name
                location.code = spec.code
                location.type = _location_type(spec.type)
                location.parent_id = spec.parent_id
                location.is_active = spec.is_active
                self._uow.locations.save(location)

            for spec in sorted(products, key=lambda s: s.id):
                if not spec.name or not spec.name.strip():
                    raise ValidationError(f"Product {spec.id} has no name")
                clash = self._uow.products.get_by_name(spec.name)
                if clash is not None and clash.id != spec.id:
                    raise ValidationError(f"Product '{spec.name}' already exists")

                product = self._uow.products.get_for_update(spec.id)
                if product is None:
                    counts["products_created"] += 1
                    product = Product(id=spec.id, name=spec.name, price=Money.of(spec.price))
                else:
                    counts["products_updated"] += 1
                product.name = spec.name.strip()
                product.price = Money.of(spec.price)
                product.category = spec.category
                product.is_milled_rice = spec.is_milled_rice
                product.milling_yield_rate = _yield_rate(spec.milling_yield_rate)
                product.reorder_point = spec.reorder_point
                self._uow.products.save(product)

            self._uow.commit()

        logger.info(
            "catalog loaded: %d product(s) new, %d updated; %d location(s) new, %d updated",
            counts["products_created"], counts["products_updated"],
            counts["locations_created"], counts["locations_updated"],
        )
        return CatalogLoadDTO(**counts)


def _location_type(raw: str) -> LocationType:
    try:
        return LocationType(raw.upper())
    except ValueError as exc:
        raise ValidationError(f"Unknown location type {raw!r}") from exc


def _yield_rate(raw: str | None) -> Decimal | None:
    if raw is None:
        return None
    try:
        rate = Decimal(str(raw))
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid milling yield rate {raw!r}") from exc
    if not rate.is_finite() or not Decimal(0) < rate <= Decimal(1):
        raise ValidationError(f"Invalid milling yield rate {raw!r} (must be in (0, 1])")
    return rate
