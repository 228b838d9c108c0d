# smartauto/crud.py
import logging
from datetime import datetime, date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from passlib.context import CryptContext
from sqlalchemy import select, insert as sa_insert, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import DuplicateOrderId, InsufficientStock, StoreError
from .models import Product, Order, Complaint, Review, User, RevokedToken

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TABLES = {
    "products": Product,
    "orders": Order,
    "complaints": Complaint,
    "reviews": Review,
}


def _model(table: str):
    try:
        return TABLES[table]
    except KeyError:
        raise ValueError(f"Unknown table: {table}") from None


def _store_message(e: SQLAlchemyError) -> str:
    orig = getattr(e, "orig", None)
    return str(orig) if orig is not None else str(e)


def to_dict(row) -> Dict[str, Any]:
    """Plain JSON-ready dict of a mapped row (Decimal -> float, datetimes -> ISO)."""
    out = {}
    for col in row.__table__.columns:
        value = getattr(row, col.key)
        if isinstance(value, Decimal):
            value = float(value)
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        out[col.key] = value
    return out


# ---------- generic gateway ----------
async def insert(db: AsyncSession, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
    model = _model(table)
    obj = model(**record)
    db.add(obj)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("[CRUD] insert into %s failed: %s", table, e)
        raise StoreError(_store_message(e)) from e
    await db.refresh(obj)
    return to_dict(obj)


async def query(
    db: AsyncSession,
    table: str,
    filters: Optional[Dict[str, Any]] = None,
    order_by: Optional[str] = "created_at",
    descending: bool = True,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    model = _model(table)
    q = select(model)
    for key, value in (filters or {}).items():
        q = q.where(getattr(model, key) == value)
    if order_by:
        col = getattr(model, order_by)
        q = q.order_by(col.desc() if descending else col.asc())
    if limit:
        q = q.limit(limit)
    try:
        r = await db.execute(q)
    except SQLAlchemyError as e:
        raise StoreError(_store_message(e)) from e
    return [to_dict(row) for row in r.scalars().all()]


# ---------- products ----------
async def get_product(db: AsyncSession, product_id: str) -> Optional[Product]:
    q = select(Product).where(Product.id == product_id)
    r = await db.execute(q)
    return r.scalar_one_or_none()


async def list_products(db: AsyncSession) -> List[Dict[str, Any]]:
    return await query(db, "products", order_by="name", descending=False)


async def upsert_product(db: AsyncSession, product: Dict):
    q = select(Product).where(Product.product_id == product["product_id"])
    r = await db.execute(q)
    existing = r.scalar_one_or_none()
    if existing:
        stmt = update(Product).where(Product.id == existing.id).values(
            name=product.get("name", existing.name),
            price=product.get("price", existing.price),
            stock=product.get("stock", existing.stock),
        )
    else:
        stmt = sa_insert(Product).values(**product)
    await db.execute(stmt)
    await db.commit()


# ---------- orders ----------
async def order_id_exists(db: AsyncSession, order_id: str) -> bool:
    q = select(Order.id).where(Order.order_id == order_id)
    r = await db.execute(q)
    return r.first() is not None


async def place_order(db: AsyncSession, record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Atomic stock check, decrement and order insert in one transaction:
    UPDATE products SET stock = stock - :qty WHERE id = :pid AND stock >= :qty
    followed by the order INSERT. Nothing is written when the UPDATE matches no row.
    """
    qty = record["quantity"]
    stmt = (
        update(Product)
        .where(Product.id == record["product_id"], Product.stock >= qty)
        .values(stock=Product.stock - qty)
        .execution_options(synchronize_session=False)
    )
    try:
        result = await db.execute(stmt)
        if result.rowcount == 0:
            await db.rollback()
            product = await get_product(db, record["product_id"])
            available = product.stock if product else 0
            logger.info("[CRUD] place_order rejected %s: %s available, %s requested",
                        record["order_id"], available, qty)
            raise InsufficientStock(available)
        obj = Order(**record)
        db.add(obj)
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if "order_id" in _store_message(e):
            raise DuplicateOrderId(record["order_id"]) from e
        raise StoreError(_store_message(e)) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("[CRUD] place_order failed: %s", e)
        raise StoreError(_store_message(e)) from e
    await db.refresh(obj)
    logger.info("[CRUD] place_order created %s for user %s", obj.order_id, obj.user_id)
    return to_dict(obj)


# ---------- users ----------
async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    q = select(User).where(User.email == email)
    r = await db.execute(q)
    return r.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: str) -> Optional[User]:
    q = select(User).where(User.user_id == user_id)
    r = await db.execute(q)
    return r.scalar_one_or_none()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


async def create_user(db: AsyncSession, name: str, email: str, password: str) -> User:
    user = User(name=name, email=email, password_hash=hash_password(password))
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


# ---------- token revocation ----------
async def revoke_token(db: AsyncSession, jti: str):
    if await is_token_revoked(db, jti):
        return
    db.add(RevokedToken(jti=jti))
    await db.commit()


async def is_token_revoked(db: AsyncSession, jti: str) -> bool:
    q = select(RevokedToken.jti).where(RevokedToken.jti == jti)
    r = await db.execute(q)
    return r.first() is not None
