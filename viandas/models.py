import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from .db import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    # 'user' or 'admin'
    role = Column(String(16), nullable=False, default=ROLE_USER, index=True)
    # soft delete flag; inactive users are invisible to reads and logins
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    orders = relationship("Order", back_populates="user")
    files = relationship("FileRecord", back_populates="user")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client = Column(String(100), nullable=False, index=True)
    size = Column(String(16), nullable=False)
    complement = Column(String(200), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    status = Column(String(16), nullable=False, default="pending", index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="orders")


class FileRecord(Base):
    __tablename__ = "files"

    id = Column(String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    original_name = Column(String(255), nullable=False)
    key = Column(String(512), nullable=False, unique=True)
    size = Column(Integer, nullable=False)
    content_type = Column(String(127), nullable=False, index=True)
    url = Column(String(1024), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    user = relationship("User", back_populates="files")
