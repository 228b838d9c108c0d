"""Owner-side derivations over fetched collections.

All functions take plain record dicts (as returned by the store gateway or
the privileged read route) and recompute from scratch on every call.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

LOW_STOCK_THRESHOLD = 10

Record = Dict[str, Any]


def _amount(value) -> Decimal:
    try:
        return Decimal(str(value or 0))
    except ArithmeticError:
        return Decimal(0)


@dataclass
class CustomerAggregate:
    email: str
    orders: List[Record] = field(default_factory=list)
    complaints: List[Record] = field(default_factory=list)
    reviews: List[Record] = field(default_factory=list)
    revenue: Decimal = Decimal(0)

    def summary(self) -> Record:
        return {
            "email": self.email,
            "orders": len(self.orders),
            "complaints": len(self.complaints),
            "reviews": len(self.reviews),
            "revenue": float(self.revenue),
        }


def total_revenue(orders: Iterable[Record]) -> float:
    return float(sum((_amount(o.get("total_price")) for o in orders), Decimal(0)))


def low_stock(products: Iterable[Record], threshold: int = LOW_STOCK_THRESHOLD) -> List[Record]:
    return [p for p in products if (p.get("stock") or 0) < threshold]


def build_customer_aggregates(
    orders: Iterable[Record],
    complaints: Iterable[Record],
    reviews: Iterable[Record],
) -> Dict[str, CustomerAggregate]:
    """Group the three collections by ``customer_email``.

    Entries keep first-seen order: emails from orders first, then any new
    ones from complaints, then from reviews. Only orders add to revenue.
    """
    customers: Dict[str, CustomerAggregate] = {}

    def entry(email: str) -> CustomerAggregate:
        if email not in customers:
            customers[email] = CustomerAggregate(email=email)
        return customers[email]

    for o in orders:
        c = entry(o.get("customer_email"))
        c.orders.append(o)
        c.revenue += _amount(o.get("total_price"))
    for c in complaints:
        entry(c.get("customer_email")).complaints.append(c)
    for r in reviews:
        entry(r.get("customer_email")).reviews.append(r)
    return customers


def customer_rows(customers: Dict[str, CustomerAggregate]) -> List[Record]:
    return [c.summary() for c in customers.values()]


def matches_search(order: Record, search: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    return (
        search in (order.get("order_id") or "")
        or needle in (order.get("product_name") or "").lower()
        or needle in (order.get("customer_email") or "").lower()
    )


def filter_orders(orders: Iterable[Record], search: str = "", status: Optional[str] = "") -> List[Record]:
    return [
        o for o in orders
        if matches_search(o, search) and (not status or o.get("status") == status)
    ]
