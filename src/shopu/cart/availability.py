"""Checks cart lines against the live catalogue.

Used in three places: when adding or changing a line (reject what cannot be
sold), when showing the cart (annotate each line), and at checkout (refuse
to place an order that the catalogue cannot fulfil).
"""

from dataclasses import asdict, dataclass

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from shopu.cart.cart import Cart, CartItem
from shopu.catalogue.product import Product


@dataclass(frozen=True)
class LineAvailability:
    is_available: bool
    unavailable_reason: str | None
    available_stock: int
    has_enough_stock: bool
    is_out_of_stock: bool


def assess_line(item: CartItem, product: Product | None) -> LineAvailability:
    if product is None:
        return LineAvailability(False, "Product no longer exists", 0, False, True)

    variant = product.find_variant(item.variant_id) if item.variant_id else None
    available_stock = product.available_stock(item.variant_id)
    has_enough_stock = available_stock >= item.quantity
    is_out_of_stock = available_stock <= 0

    reason = None
    if product.is_deleted:
        reason = "This product is no longer available"
    elif not product.is_active or (item.variant_id and (variant is None or not variant.is_active)):
        reason = "This product is currently unavailable"
    elif is_out_of_stock:
        reason = "Out of stock"
    elif not has_enough_stock:
        reason = f"Only {available_stock} available (you have {item.quantity} in cart)"

    return LineAvailability(
        is_available=reason is None,
        unavailable_reason=reason,
        available_stock=available_stock,
        has_enough_stock=has_enough_stock,
        is_out_of_stock=is_out_of_stock,
    )


def _products_for(cart: Cart) -> dict[str, Product]:
    repo = current_domain.repository_for(Product)
    products = {}
    for item in cart.items:
        key = str(item.product_id)
        if key not in products:
            products[key] = repo.get_for_tenant(cart.tenant_id, item.product_id, include_deleted=True)
    return products


def summarize_cart(cart: Cart | None, tenant_id=None, session_id=None) -> dict:
    """Cart contents annotated with availability, plus totals over sellable lines."""
    if cart is None:
        return {
            "id": None,
            "tenant_id": str(tenant_id) if tenant_id else None,
            "session_id": session_id,
            "items": [],
            "total": 0.0,
            "item_count": 0,
            "has_unavailable_items": False,
            "unavailable_count": 0,
            "has_stock_issues": False,
            "stock_issue_count": 0,
        }

    products = _products_for(cart)
    lines = []
    for item in cart.items:
        product = products.get(str(item.product_id))
        availability = assess_line(item, product)
        variant = product.find_variant(item.variant_id) if product else None
        lines.append(
            {
                "id": str(item.id),
                "product_id": str(item.product_id),
                "variant_id": str(item.variant_id) if item.variant_id else None,
                "title": product.title if product else None,
                "slug": product.slug if product else None,
                "image": (product.image_urls or [None])[0] if product else None,
                "variant_options": variant.option_values if variant else None,
                "quantity": item.quantity,
                "price": item.price,
                "line_total": item.line_total,
                **asdict(availability),
            }
        )

    unavailable = [line for line in lines if not line["is_available"]]
    stock_issues = [line for line in unavailable if line["is_out_of_stock"] or not line["has_enough_stock"]]
    return {
        "id": str(cart.id),
        "tenant_id": str(cart.tenant_id),
        "session_id": cart.session_id,
        "items": lines,
        "total": round(sum(line["line_total"] for line in lines if line["is_available"]), 2),
        "item_count": sum(line["quantity"] for line in lines),
        "has_unavailable_items": bool(unavailable),
        "unavailable_count": len(unavailable),
        "has_stock_issues": bool(stock_issues),
        "stock_issue_count": len(stock_issues),
    }


def ensure_sellable(product: Product | None, variant_id=None) -> None:
    """Reject products and variants that cannot be put in a cart."""
    if product is None or product.is_deleted or not product.is_active:
        raise ValidationError({"product_id": ["Product not found or not available"]})
    if variant_id:
        variant = product.find_variant(variant_id)
        if variant is None or not variant.is_active:
            raise ValidationError({"variant_id": ["Product variant not found or not available"]})


def ensure_stock(product: Product, variant_id, quantity: int) -> None:
    if product.available_stock(variant_id) < quantity:
        raise ValidationError({"quantity": ["Insufficient stock available"]})


def ensure_cart_can_checkout(cart: Cart | None) -> dict[str, Product]:
    """Validate every line before an order is placed and return the loaded products."""
    if cart is None or cart.is_empty:
        raise ValidationError({"cart": ["Cart is empty or not found"]})

    products = _products_for(cart)
    for item in cart.items:
        product = products.get(str(item.product_id))
        availability = assess_line(item, product)
        if availability.is_available:
            continue
        title = product.title if product else "unknown product"
        reason = availability.unavailable_reason
        if reason == "Out of stock" or reason.startswith("Only "):
            raise ValidationError({"cart": [f"Insufficient stock for {title}"]})
        raise ValidationError({"cart": [f"{title}: {availability.unavailable_reason}"]})
    return products
