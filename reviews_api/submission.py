"""Writes: new review submissions, helpfulness votes and reports."""

import logging
import time
from collections.abc import Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reviews_api import queries
from reviews_api.errors import Invalid, NotFound, from_db_error

logger = logging.getLogger(__name__)


def now_millis() -> int:
    return int(time.time() * 1000)


async def create_review(
    db: AsyncSession,
    *,
    product_id: int,
    rating: int,
    summary: str,
    body: str,
    recommend: bool,
    name: str,
    email: str,
    photos: Sequence[str] = (),
    characteristics: Mapping[int, int] | None = None,
) -> dict:
    """Persist a review together with its photos and characteristic ratings.

    All three stages share one transaction: if any of them fails the review
    row is rolled back too.
    """
    characteristics = dict(characteristics or {})
    try:
        known = await queries.fetch_characteristic_ids(db, product_id, characteristics)
        unknown = sorted(set(characteristics) - known)
        if unknown:
            raise Invalid(f"Characteristics {unknown} do not belong to product {product_id}")

        review_id = await queries.insert_review(db, {
            "product_id": product_id,
            "rating": rating,
            "summary": summary,
            "body": body,
            "recommend": recommend,
            "reported": False,
            "helpfulness": 0,
            "review_date": now_millis(),
            "reviewer_name": name,
            "reviewer_email": email,
        })
        photo_count = await queries.insert_photos(db, review_id, list(photos))
        characteristic_count = await queries.insert_characteristic_reviews(db, review_id, characteristics)
        await db.commit()
    except Invalid:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        raise from_db_error(exc) from exc

    logger.info("Created review %s for product %s", review_id, product_id)
    return {"review_id": review_id, "photos": photo_count, "characteristics": characteristic_count}


async def mark_helpful(db: AsyncSession, review_id: int) -> None:
    await _update_one(db, review_id, queries.increment_helpfulness)


async def report_review(db: AsyncSession, review_id: int) -> None:
    await _update_one(db, review_id, queries.set_reported)
    logger.info("Review %s reported", review_id)


async def _update_one(db: AsyncSession, review_id: int, statement) -> None:
    try:
        updated = await statement(db, review_id)
        if not updated:
            raise NotFound(f"Review {review_id} not found")
        await db.commit()
    except NotFound:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        raise from_db_error(exc) from exc
