"""Parameterized statements against the review tables.

Functions here only run SQL and hand back rows or row counts; shaping and
business rules live in the listing, meta and submission modules.
"""

from collections.abc import Iterable, Mapping, Sequence

from sqlalchemy import Row, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reviews_api.models import Characteristic, CharacteristicReview, Photo, Review


async def fetch_review_page(db: AsyncSession, product_id: int, count: int, page: int) -> Sequence[Row]:
    result = await db.execute(
        select(
            Review.id.label("review_id"),
            Review.rating,
            Review.summary,
            Review.recommend,
            Review.response,
            Review.body,
            Review.review_date.label("date"),
            Review.reviewer_name,
            Review.helpfulness,
        )
        .where(Review.product_id == product_id)
        .order_by(Review.id)
        .offset(count * (page - 1))
        .limit(count)
    )
    return result.all()


async def fetch_photos(db: AsyncSession, review_ids: Sequence[int]) -> Sequence[Row]:
    if not review_ids:
        return []
    result = await db.execute(
        select(Photo.review_id, Photo.photo_url)
        .where(Photo.review_id.in_(review_ids))
        .order_by(Photo.id)
    )
    return result.all()


async def fetch_meta_rows(db: AsyncSession, product_id: int) -> Sequence[Row]:
    """One row per (review, characteristic rating) for the product's non-reported reviews.

    Left joins keep reviews without characteristic ratings as a single row
    whose characteristic columns are NULL.
    """
    result = await db.execute(
        select(
            Review.id.label("review_id"),
            Review.recommend,
            Review.rating,
            CharacteristicReview.review_value,
            Characteristic.name.label("characteristic_name"),
            Characteristic.id.label("characteristic_id"),
        )
        .select_from(Review)
        .outerjoin(CharacteristicReview, Review.id == CharacteristicReview.review_id)
        .outerjoin(Characteristic, CharacteristicReview.characteristic_id == Characteristic.id)
        .where(Review.product_id == product_id)
        .where(Review.reported.is_(False))
        .order_by(Review.id)
    )
    return result.all()


async def fetch_characteristic_ids(db: AsyncSession, product_id: int, ids: Iterable[int]) -> set[int]:
    """Return the subset of `ids` that are characteristics of `product_id`."""
    ids = list(ids)
    if not ids:
        return set()
    result = await db.execute(
        select(Characteristic.id)
        .where(Characteristic.product_id == product_id)
        .where(Characteristic.id.in_(ids))
    )
    return set(result.scalars().all())


async def insert_review(db: AsyncSession, values: Mapping) -> int:
    result = await db.execute(insert(Review).values(**values).returning(Review.id))
    return result.scalar_one()


async def insert_photos(db: AsyncSession, review_id: int, urls: Sequence[str]) -> int:
    if not urls:
        return 0
    await db.execute(insert(Photo), [{"review_id": review_id, "photo_url": url} for url in urls])
    return len(urls)


async def insert_characteristic_reviews(db: AsyncSession, review_id: int, ratings: Mapping[int, int]) -> int:
    if not ratings:
        return 0
    await db.execute(
        insert(CharacteristicReview),
        [
            {"characteristic_id": characteristic_id, "review_id": review_id, "review_value": value}
            for characteristic_id, value in ratings.items()
        ],
    )
    return len(ratings)


async def increment_helpfulness(db: AsyncSession, review_id: int) -> int:
    result = await db.execute(
        update(Review)
        .where(Review.id == review_id)
        .values(helpfulness=Review.helpfulness + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def set_reported(db: AsyncSession, review_id: int) -> int:
    result = await db.execute(
        update(Review)
        .where(Review.id == review_id)
        .values(reported=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
