"""Account & order models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


class User(Base):
    __tablename__ = "users"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(32), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    nickname = Column(String(64))
    bio = Column(Text)
    avatar = Column(String(500))
    role = Column(Integer)  # None = regular user, settings.admin_role = admin
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    orders = relationship("Order", back_populates="user")


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (UniqueConstraint("user_id", "resource_id", name="uq_order_user_resource"),)
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    resource_id = Column(Uuid, ForeignKey("sys_resources.id"), nullable=False)
    price = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="orders")
    resource = relationship("SysResource")
