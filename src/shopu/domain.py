"""Shopu bounded context: multi-tenant storefronts, catalogue, carts, orders and payments.

A single domain hosts every aggregate so that placing an order, decrementing
stock and clearing the cart are committed by one Unit of Work.
"""

import structlog
from protean.domain import Domain

shop = Domain(name="shopu")

logger = structlog.get_logger(__name__)
