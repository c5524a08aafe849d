"""Website content models."""

from sqlalchemy import Boolean, Column, Integer, String

from .base import Base


class CarouselSlide(Base):
    __tablename__ = "carousel_slides"
    id = Column(Integer, primary_key=True)
    image = Column(String(500), nullable=False)
    link = Column(String(1000))
    title = Column(String(200))
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
