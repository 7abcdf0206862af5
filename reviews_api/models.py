from sqlalchemy import (
    BigInteger, Boolean, Column, Integer, String, Text, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship

from reviews_api.database import Base


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    summary = Column(String(255), nullable=False, default="")
    body = Column(Text, nullable=False, default="")
    recommend = Column(Boolean, nullable=False, default=False)
    reported = Column(Boolean, nullable=False, default=False)
    response = Column(Text, nullable=True)
    review_date = Column(BigInteger, nullable=False)  # epoch milliseconds
    reviewer_name = Column(String(60), nullable=False)
    reviewer_email = Column(String(60), nullable=False)
    helpfulness = Column(Integer, nullable=False, default=0)

    photos = relationship("Photo", back_populates="review", cascade="all, delete-orphan")
    characteristic_reviews = relationship(
        "CharacteristicReview", back_populates="review", cascade="all, delete-orphan"
    )


class Photo(Base):
    __tablename__ = "reviews_photos"

    id = Column(Integer, primary_key=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    photo_url = Column(String(500), nullable=False)

    review = relationship("Review", back_populates="photos")


class Characteristic(Base):
    __tablename__ = "characteristics"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, nullable=False, index=True)
    name = Column("characteristic_name", String(50), nullable=False)

    characteristic_reviews = relationship("CharacteristicReview", back_populates="characteristic")


class CharacteristicReview(Base):
    __tablename__ = "characteristic_reviews"
    __table_args__ = (UniqueConstraint("review_id", "characteristic_id"),)

    id = Column(Integer, primary_key=True)
    characteristic_id = Column(
        Integer, ForeignKey("characteristics.id", ondelete="CASCADE"), nullable=False, index=True
    )
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, index=True)
    review_value = Column(Integer, nullable=False)

    review = relationship("Review", back_populates="characteristic_reviews")
    characteristic = relationship("Characteristic", back_populates="characteristic_reviews")
