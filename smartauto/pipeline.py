# smartauto/pipeline.py
"""
Submission pipeline for orders, complaints and reviews.

Each submission runs validate -> persist -> notify:
  - validation needs no I/O beyond a product lookup and never writes;
  - the record is committed before the relay is called;
  - a relay failure leaves the committed record in place and surfaces
    as NotificationFailed, which carries that record.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from . import crud
from .errors import (
    DuplicateOrderId,
    InsufficientStock,
    MissingFields,
    NotificationFailed,
    RelayError,
    StoreError,
    UnknownProduct,
)
from .order_ids import generate_order_id
from .relay_client import RelayClient
from .schemas import ComplaintForm, OrderForm, ReviewForm
from .session import AuthContext

logger = logging.getLogger(__name__)

ORDER_ID_ATTEMPTS = 5
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class SubmissionKind:
    type: str
    table: str
    required: Tuple[str, ...]
    success: str

    def message(self, record: Dict[str, Any]) -> str:
        return self.success.format(**record)


ORDER = SubmissionKind(
    "order", "orders",
    ("product_id", "customer_name", "shipping_address"),
    "Order {order_id} placed successfully!",
)
COMPLAINT = SubmissionKind(
    "complaint", "complaints",
    ("subject", "description"),
    "Complaint submitted successfully",
)
REVIEW = SubmissionKind(
    "review", "reviews",
    ("product_id", "title", "review_text"),
    "Review submitted!",
)


@dataclass
class SubmissionResult:
    kind: str
    record: Dict[str, Any]
    message: str
    relay: Dict[str, Any] = field(default_factory=dict)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _clean(value):
    if isinstance(value, str):
        value = value.strip()
    return value or None


def validate_required(kind: SubmissionKind, data: Dict[str, Any]) -> None:
    missing = [f for f in kind.required if _blank(data.get(f))]
    if missing:
        raise MissingFields(missing)


async def _notify(relay: RelayClient, kind: SubmissionKind, saved: Dict[str, Any]) -> Dict[str, Any]:
    try:
        return await relay.send(kind.type, saved)
    except RelayError as e:
        logger.warning("[PIPELINE] %s %s saved but relay failed: %s", kind.type, saved.get("id"), e.message)
        raise NotificationFailed(kind.type, saved, e.message) from e


async def _complete(relay: RelayClient, kind: SubmissionKind, saved: Dict[str, Any]) -> SubmissionResult:
    logger.info("[PIPELINE] %s %s persisted for user %s", kind.type, saved.get("id"), saved.get("user_id"))
    response = await _notify(relay, kind, saved)
    return SubmissionResult(kind=kind.type, record=saved, message=kind.message(saved), relay=response)


async def _place_order(db: AsyncSession, record: Dict[str, Any]) -> Dict[str, Any]:
    for attempt in range(1, ORDER_ID_ATTEMPTS + 1):
        order_id = generate_order_id()
        if await crud.order_id_exists(db, order_id):
            continue
        try:
            return await crud.place_order(db, {**record, "order_id": order_id})
        except DuplicateOrderId:
            logger.info("[PIPELINE] order id %s taken (attempt %s/%s)", order_id, attempt, ORDER_ID_ATTEMPTS)
    raise StoreError("Could not allocate a unique order id")


async def submit_order(db: AsyncSession, relay: RelayClient, ctx: AuthContext, form: OrderForm) -> SubmissionResult:
    identity = ctx.require()
    data = form.model_dump()
    validate_required(ORDER, data)

    product = await crud.get_product(db, data["product_id"].strip())
    if product is None:
        raise UnknownProduct(data["product_id"])
    if form.quantity > product.stock:
        raise InsufficientStock(product.stock)

    unit_price = Decimal(str(product.price))
    record = {
        "product_id": product.id,
        "product_name": product.name,
        "quantity": form.quantity,
        "unit_price": unit_price,
        "total_price": (unit_price * form.quantity).quantize(CENTS),
        "customer_name": _clean(data["customer_name"]),
        "customer_email": identity.email,
        "shipping_address": _clean(data["shipping_address"]),
        "special_instructions": _clean(data["special_instructions"]),
        "user_id": identity.user_id,
        "status": "pending",
    }
    saved = await _place_order(db, record)
    return await _complete(relay, ORDER, saved)


async def submit_complaint(db: AsyncSession, relay: RelayClient, ctx: AuthContext, form: ComplaintForm) -> SubmissionResult:
    identity = ctx.require()
    data = form.model_dump()
    validate_required(COMPLAINT, data)

    record = {
        "user_id": identity.user_id,
        "customer_email": identity.email,
        "subject": _clean(data["subject"]),
        "description": _clean(data["description"]),
        "order_id": _clean(data["order_id"]),
        "status": "open",
    }
    saved = await crud.insert(db, COMPLAINT.table, record)
    return await _complete(relay, COMPLAINT, saved)


async def submit_review(db: AsyncSession, relay: RelayClient, ctx: AuthContext, form: ReviewForm) -> SubmissionResult:
    identity = ctx.require()
    data = form.model_dump()
    validate_required(REVIEW, data)

    product = await crud.get_product(db, data["product_id"].strip())
    if product is None:
        raise UnknownProduct(data["product_id"])

    record = {
        "user_id": identity.user_id,
        "customer_email": identity.email,
        "product_id": product.id,
        "product_name": product.name,
        "rating": form.rating,
        "title": _clean(data["title"]),
        "review_text": _clean(data["review_text"]),
    }
    saved = await crud.insert(db, REVIEW.table, record)
    return await _complete(relay, REVIEW, saved)
