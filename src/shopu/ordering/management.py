"""Admin order management: fulfilment status changes."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from shopu.domain import shop
from shopu.ordering.order import Order

logger = structlog.get_logger(__name__)


@shop.command(part_of="Order")
class UpdateOrderStatus:
    tenant_id = Identifier(required=True)
    order_id = String(required=True, max_length=255)
    status = String(required=True, max_length=20)


@shop.command_handler(part_of=Order)
class ManageOrderHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for_tenant(command.tenant_id, command.order_id)
        if order is None:
            raise ObjectNotFoundError({"order": ["Order not found"]})

        previous = order.status
        order.change_status(command.status)
        repo.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            previous_status=previous,
            new_status=order.status,
        )
        return order.to_dict()
