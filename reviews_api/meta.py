from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from reviews_api import queries
from reviews_api.config import MAX_RATING, MIN_RATING


def format_average(value: float) -> str:
    """Render an average the way clients have always received it: "3", "3.5"."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def aggregate(rows: Iterable) -> dict:
    """Reduce joined (review x characteristic rating) rows into metadata.

    Ratings and recommend tallies count each review once no matter how many
    characteristic rows the join produced for it.
    """
    ratings = {str(star): 0 for star in range(MIN_RATING, MAX_RATING + 1)}
    recommended = {"true": 0, "false": 0}
    totals: dict[str, dict] = {}
    seen: set[int] = set()

    for row in rows:
        if row.review_id not in seen:
            seen.add(row.review_id)
            star = str(row.rating)
            if star in ratings:
                ratings[star] += 1
            recommended["true" if row.recommend else "false"] += 1

        if row.characteristic_name is None or row.review_value is None:
            continue
        entry = totals.setdefault(row.characteristic_name, {"id": row.characteristic_id, "sum": 0, "count": 0})
        entry["sum"] += row.review_value
        entry["count"] += 1

    characteristics = {
        name: {"id": entry["id"], "value": format_average(entry["sum"] / entry["count"])}
        for name, entry in totals.items()
    }
    return {"ratings": ratings, "recommended": recommended, "characteristics": characteristics}


async def review_metadata(db: AsyncSession, product_id: int) -> dict:
    rows = await queries.fetch_meta_rows(db, product_id)
    return {"product_id": product_id, **aggregate(rows)}
