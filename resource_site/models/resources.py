"""Downloadable resource models — packages and their screenshots."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


class SysResource(Base):
    __tablename__ = "sys_resources"
    __table_args__ = (Index("ix_sys_resources_category_language", "category", "language"),)
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text, default="")
    category = Column(String(50), nullable=False)
    language = Column(String(50), nullable=False, default="PHP")
    price = Column(Integer, nullable=False, default=0)
    resource_link = Column(String(1000), nullable=False)
    description_file = Column(String(500))
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc), index=True)
    updated_at = Column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    images = relationship(
        "ResourceImage", back_populates="resource", order_by="ResourceImage.created_at"
    )


class ResourceImage(Base):
    """A stored screenshot. resource_id stays NULL until a resource claims it."""

    __tablename__ = "resource_images"
    id = Column(String(64), primary_key=True)  # generated upload id
    path = Column(String(500), nullable=False)
    resource_id = Column(Uuid, ForeignKey("sys_resources.id"), index=True)
    uploaded_by = Column(Uuid, ForeignKey("users.id"))
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    resource = relationship("SysResource", back_populates="images")
