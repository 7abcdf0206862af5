import logging
from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession

from reviews_api import queries
from reviews_api.config import DEFAULT_SORT, SORT_KEYS

logger = logging.getLogger(__name__)

# Older imports stored a missing response as the literal string "null".
ABSENT_RESPONSE = "null"


def normalize_review(row: dict, photos: list[str] | None) -> dict:
    review = dict(row)
    review["photos"] = [p for p in (photos or []) if p]
    if review.get("response") == ABSENT_RESPONSE:
        review["response"] = None
    review["date"] = int(review["date"]) if review.get("date") is not None else 0
    return review


def resolve_sort(sort: str | None) -> str:
    if sort in SORT_KEYS:
        return sort
    if sort:
        logger.debug("Unknown sort key %r, falling back to %s", sort, DEFAULT_SORT)
    return DEFAULT_SORT


def sort_reviews(reviews: list[dict], sort: str | None) -> list[dict]:
    sort = resolve_sort(sort)
    if sort == "helpful":
        key = lambda r: -r["helpfulness"]  # noqa: E731
    elif sort == "newest":
        key = lambda r: -r["date"]  # noqa: E731
    else:
        key = lambda r: (-r["helpfulness"], -r["date"])  # noqa: E731
    return sorted(reviews, key=key)


async def list_reviews(
    db: AsyncSession,
    product_id: int | None,
    count: int,
    page: int,
    sort: str | None,
) -> list[dict]:
    """Fetch one page of a product's reviews, ordered by `sort`.

    Pages are cut by review id so they stay stable; the sort is applied to
    the page afterwards. A missing product id matches nothing.
    """
    logger.debug("List reviews product=%s count=%s page=%s sort=%s", product_id, count, page, sort)
    if product_id is None:
        return []

    rows = await queries.fetch_review_page(db, product_id, count, page)
    photo_rows = await queries.fetch_photos(db, [r.review_id for r in rows])

    photos_by_review: dict[int, list[str]] = defaultdict(list)
    for photo in photo_rows:
        photos_by_review[photo.review_id].append(photo.photo_url)

    reviews = [normalize_review(r._asdict(), photos_by_review.get(r.review_id)) for r in rows]
    return sort_reviews(reviews, sort)
