# smartauto/models.py
from sqlalchemy import Column, Integer, String, Numeric, TIMESTAMP, func, Text, CheckConstraint
from .db import Base
import uuid

def gen_uuid():
    return str(uuid.uuid4())

ORDER_STATUSES = ("pending", "completed", "cancelled")

class User(Base):
    __tablename__ = "users"
    user_id = Column(String, primary_key=True, default=gen_uuid)
    name = Column(String)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

class RevokedToken(Base):
    __tablename__ = "revoked_tokens"
    jti = Column(String, primary_key=True)
    revoked_at = Column(TIMESTAMP, server_default=func.now())

class Product(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)
    id = Column(String, primary_key=True, default=gen_uuid)
    product_id = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP, server_default=func.now())

class Order(Base):
    __tablename__ = "orders"
    id = Column(String, primary_key=True, default=gen_uuid)
    order_id = Column(String, unique=True, index=True, nullable=False)
    product_id = Column(String, index=True, nullable=False)
    product_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, index=True, nullable=False)
    shipping_address = Column(Text, nullable=False)
    special_instructions = Column(Text, nullable=True)
    user_id = Column(String, index=True, nullable=False)
    status = Column(String, nullable=False, default="pending")  # pending | completed | cancelled
    created_at = Column(TIMESTAMP, server_default=func.now())

class Complaint(Base):
    __tablename__ = "complaints"
    id = Column(String, primary_key=True, default=gen_uuid)
    user_id = Column(String, index=True, nullable=False)
    customer_email = Column(String, index=True, nullable=False)
    order_id = Column(String, nullable=True)  # free text, not a foreign key
    subject = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="open")  # open | resolved
    sentiment = Column(String, nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

class Review(Base):
    __tablename__ = "reviews"
    id = Column(String, primary_key=True, default=gen_uuid)
    user_id = Column(String, index=True, nullable=False)
    customer_email = Column(String, index=True, nullable=False)
    product_id = Column(String, index=True, nullable=False)
    product_name = Column(String, nullable=True)
    rating = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    review_text = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
