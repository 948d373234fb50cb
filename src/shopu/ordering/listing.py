"""Read side of ordering: admin listings, dashboard statistics and the
storefront's order status lookup."""

from datetime import UTC, date, datetime, time, timedelta

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from shopu.ordering.order import Order, OrderStatus, PaymentStatus
from shopu.utils.pagination import paginate


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


def _day_end(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=UTC)


def _parse_day(value: str, field: str) -> date:
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError({field: ["Must be a date in YYYY-MM-DD format"]}) from None


def date_range(date_filter=None, start_date=None, end_date=None, now: datetime | None = None):
    """Inclusive (start, end) bounds for a named filter or a custom range.

    A custom range wins when both ends are given. Unknown filter names mean
    no date restriction.
    """
    now = now or datetime.now(UTC)
    today = now.date()

    if start_date and end_date:
        return _day_start(_parse_day(start_date, "start_date")), _day_end(_parse_day(end_date, "end_date"))

    first_day = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "last7days": today - timedelta(days=7),
        "last30days": today - timedelta(days=30),
        "thisMonth": today.replace(day=1),
    }.get(date_filter)
    if first_day is None:
        return None
    last_day = first_day if date_filter == "yesterday" else today
    return _day_start(first_day), _day_end(last_day)


def _matches(order: Order, status, needle, bounds) -> bool:
    if status and order.status != status:
        return False
    if needle and not any(
        needle in (value or "").lower() for value in (order.order_number, order.customer_email, order.customer_name)
    ):
        return False
    if bounds:
        created = _aware(order.created_at)
        if created is None or not bounds[0] <= created <= bounds[1]:
            return False
    return True


def _newest_first(orders: list[Order]) -> list[Order]:
    return sorted(orders, key=lambda o: _aware(o.created_at) or datetime.min.replace(tzinfo=UTC), reverse=True)


def admin_orders(
    tenant_id,
    status=None,
    search=None,
    date_filter=None,
    start_date=None,
    end_date=None,
    page=1,
    limit=10,
) -> dict:
    if status and status not in {s.value for s in OrderStatus}:
        raise ValidationError({"status": ["Invalid order status"]})

    bounds = date_range(date_filter, start_date, end_date)
    needle = search.strip().lower() if search else None
    orders = [
        o for o in current_domain.repository_for(Order).for_tenant(tenant_id) if _matches(o, status, needle, bounds)
    ]
    page_items, pagination = paginate(_newest_first(orders), page, limit)
    return {"orders": [o.to_dict() for o in page_items], "pagination": pagination}


def admin_order(tenant_id, order_id) -> dict:
    order = current_domain.repository_for(Order).get_for_tenant(tenant_id, order_id)
    if order is None:
        raise ObjectNotFoundError({"order": ["Order not found"]})
    return order.to_dict()


def order_stats(tenant_id, now: datetime | None = None) -> dict:
    """Dashboard figures. Weeks start on Sunday; revenue counts paid orders only."""
    now = now or datetime.now(UTC)
    today = now.date()
    month_start = _day_start(today.replace(day=1))
    week_start = _day_start(today - timedelta(days=(today.weekday() + 1) % 7))

    orders = _newest_first(current_domain.repository_for(Order).for_tenant(tenant_id))
    this_month = [o for o in orders if _aware(o.created_at) and _aware(o.created_at) >= month_start]

    by_status: dict[str, int] = {}
    for order in orders:
        by_status[order.status] = by_status.get(order.status, 0) + 1

    return {
        "total_orders": len(orders),
        "monthly_orders": len(this_month),
        "weekly_orders": sum(1 for o in orders if _aware(o.created_at) and _aware(o.created_at) >= week_start),
        "monthly_revenue": round(
            sum(o.total_amount for o in this_month if o.payment_status == PaymentStatus.PAID.value), 2
        ),
        "recent_orders": [o.to_dict() for o in orders[:5]],
        "orders_by_status": [{"status": status, "count": count} for status, count in sorted(by_status.items())],
    }


def order_payment_status(tenant_id, order_id) -> dict:
    """What the storefront poller needs after the gateway redirect."""
    order = current_domain.repository_for(Order).get_for_tenant(tenant_id, order_id)
    if order is None:
        raise ObjectNotFoundError({"order": ["Order not found"]})
    return {"order_number": order.order_number, "payment_status": order.payment_status}
