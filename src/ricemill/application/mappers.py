"""Domain -> DTO mapping shared by the application handlers."""

from __future__ import annotations

from ricemill.application.dto import (
    DeliveryDTO,
    DeliveryItemDTO,
    OrderDTO,
    OrderLineItemDTO,
    PurchaseOrderDTO,
    PurchaseOrderLineDTO,
)
from ricemill.domain.model.delivery import Delivery
from ricemill.domain.model.order import Order
from ricemill.domain.model.purchase_order import PurchaseOrder, PurchaseOrderItem
from ricemill.domain.repository.product_repository import ProductRepository


def _product_name(products: ProductRepository, product_id: str) -> str:
    product = products.get_by_id(product_id)
    return product.name if product is not None else product_id


def po_line_to_dto(products: ProductRepository, item: PurchaseOrderItem) -> PurchaseOrderLineDTO:
    return PurchaseOrderLineDTO(
        id=item.id,
        product_name=_product_name(products, item.product_id),
        ordered_qty=item.ordered_qty,
        received_qty=item.received_qty,
        returned_qty=item.returned_qty,
        line_status=item.line_status.value,
    )


def purchase_order_to_dto(products: ProductRepository, po: PurchaseOrder) -> PurchaseOrderDTO:
    return PurchaseOrderDTO(
        id=po.id,
        supplier_id=po.supplier_id,
        status=po.status.value,
        lines=[po_line_to_dto(products, item) for item in po.items],
    )


def delivery_to_dto(products: ProductRepository, order: Order, delivery: Delivery) -> DeliveryDTO:
    return DeliveryDTO(
        id=delivery.id,
        delivery_number=delivery.delivery_number,
        status=delivery.status.value,
        shipment_status=delivery.shipment_status.value,
        items=[
            DeliveryItemDTO(
                order_item_id=di.order_item_id,
                product_name=_product_name(
                    products, order.find_item(di.order_item_id).product_id
                ),
                quantity=di.quantity,
                allocated_quantity=di.allocated_quantity,
            )
            for di in delivery.items
        ],
        fulfilled_at=(
            delivery.fulfilled_at.strftime("%Y-%m-%d %H:%M UTC")
            if delivery.fulfilled_at
            else None
        ),
        fulfilled_by=delivery.fulfilled_by,
    )


def order_to_dto(products: ProductRepository, order: Order) -> OrderDTO:
    lines = []
    for item in order.items:
        product = products.get_by_id(item.product_id)
        lines.append(
            OrderLineItemDTO(
                id=item.id,
                product_name=product.name if product else item.product_id,
                unit=product.order_unit if product else "",
                quantity=item.quantity,
                quantity_fulfilled=item.quantity_fulfilled,
                quantity_pending=item.quantity_pending,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
        )
    return OrderDTO(
        id=order.id,
        customer_name=order.customer_name,
        status=order.status.value,
        fulfillment_status=order.fulfillment_status.value,
        shipment_status=order.shipment_status.value,
        items=lines,
        total=str(order.total),
        created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
        deliveries=[delivery_to_dto(products, order, d) for d in order.deliveries],
    )
