"""Application service: Create Order use case.

This is the checkout seam: it resolves product names, snapshots prices and
earmarks the order's stock in the products' ``stock_allocated`` counters.
Nothing leaves inventory until the order is allocated.
"""

from __future__ import annotations

import logging

from ricemill.application.dto import OrderDTO, OrderItemSpec
from ricemill.application.mappers import order_to_dto
from ricemill.domain.exceptions import EntityNotFoundError
from ricemill.domain.model.order import Order, OrderItem
from ricemill.domain.repository.unit_of_work import UnitOfWork
from ricemill.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class CreateOrderHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        customer_name: str,
        item_specs: list[OrderItemSpec],
        customer_email: str = "",
    ) -> OrderDTO:
        """Create a new customer order.

        Steps:
        1. Resolve each product name to a Product (fail if not found).
        2. Build OrderItems with *current* prices (snapshot).
        3. Let the Order aggregate validate all business rules.
        4. Reserve stock units, persist and return a DTO.
        """
        with self._uow:
            items: list[OrderItem] = []
            products = {}
            for spec in item_specs:
                product = self._uow.products.get_by_name(spec.product_name)
                if product is None:
                    raise EntityNotFoundError(f"Product not found: '{spec.product_name}'")
                products[product.id] = product
                items.append(
                    OrderItem(
                        product_id=product.id,
                        quantity=spec.quantity,
                        unit_price=product.price,  # <-- price snapshot
                    )
                )

            order = Order.create(
                customer_name=customer_name,
                items=items,
                customer_email=customer_email,
            )
            locked = StockLedger(self._uow).lock({item.product_id for item in order.items})
            for item in order.items:
                product = locked.product(item.product_id)
                product.reserve(product.to_stock_units(item.quantity))
                self._uow.products.save(product)
            self._uow.orders.save(order)
            dto = order_to_dto(self._uow.products, order)
            self._uow.commit()

        logger.info("created order %s for %s", dto.id, dto.customer_name)
        return dto
