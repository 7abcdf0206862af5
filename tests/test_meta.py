from collections import namedtuple

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from reviews_api import queries
from reviews_api.meta import aggregate, format_average

from conftest import OTHER_PRODUCT_ID, PRODUCT_ID, add_review

MetaRow = namedtuple(
    "MetaRow", "review_id recommend rating review_value characteristic_name characteristic_id"
)


class TestFormatAverage:
    def test_whole_numbers_have_no_decimal(self):
        assert format_average(3.0) == "3"
        assert format_average(4) == "4"

    def test_fractions(self):
        assert format_average(3.5) == "3.5"
        assert format_average(10 / 3) == "3.3333333333333335"


class TestAggregate:
    def test_empty(self):
        assert aggregate([]) == {
            "ratings": {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0},
            "recommended": {"true": 0, "false": 0},
            "characteristics": {},
        }

    def test_counts_each_review_once(self):
        rows = [
            MetaRow(1, True, 5, 4, "Comfort", 10),
            MetaRow(1, True, 5, 3, "Quality", 11),
            MetaRow(2, False, 2, 2, "Comfort", 10),
            MetaRow(2, False, 2, 5, "Quality", 11),
        ]
        result = aggregate(rows)
        assert result["ratings"] == {"1": 0, "2": 1, "3": 0, "4": 0, "5": 1}
        assert result["recommended"] == {"true": 1, "false": 1}
        assert result["characteristics"] == {
            "Comfort": {"id": 10, "value": "3"},
            "Quality": {"id": 11, "value": "4"},
        }

    def test_reviews_without_characteristics(self):
        rows = [MetaRow(1, True, 4, None, None, None), MetaRow(2, True, 4, None, None, None)]
        result = aggregate(rows)
        assert result["ratings"]["4"] == 2
        assert result["recommended"] == {"true": 2, "false": 0}
        assert result["characteristics"] == {}

    def test_uneven_characteristic_coverage(self):
        rows = [
            MetaRow(1, True, 5, 4, "Comfort", 10),
            MetaRow(1, True, 5, 1, "Quality", 11),
            MetaRow(2, True, 3, 2, "Comfort", 10),
        ]
        result = aggregate(rows)
        assert result["ratings"] == {"1": 0, "2": 0, "3": 1, "4": 0, "5": 1}
        assert result["characteristics"]["Quality"] == {"id": 11, "value": "1"}

    def test_out_of_range_rating_ignored(self):
        result = aggregate([MetaRow(1, False, 9, None, None, None)])
        assert sum(result["ratings"].values()) == 0
        assert result["recommended"]["false"] == 1


class TestReviewMetaAPI:
    @pytest.mark.asyncio
    async def test_two_review_scenario(self, client: AsyncClient, db: AsyncSession, characteristics):
        comfort = characteristics["Comfort"]
        await add_review(db, rating=5, recommend=True, ratings={comfort: 4})
        await add_review(db, rating=3, recommend=False, ratings={comfort: 2})

        resp = await client.get(f"/reviews/meta?product_id={PRODUCT_ID}")
        assert resp.status_code == 200
        assert resp.json() == {
            "product_id": PRODUCT_ID,
            "ratings": {"1": 0, "2": 0, "3": 1, "4": 0, "5": 1},
            "recommended": {"true": 1, "false": 1},
            "characteristics": {"Comfort": {"id": comfort.id, "value": "3"}},
        }

    @pytest.mark.asyncio
    async def test_bucket_times_characteristics_equals_rows(self, client: AsyncClient, db: AsyncSession, characteristics):
        comfort, quality = characteristics["Comfort"], characteristics["Quality"]
        for rating in (5, 5, 4):
            await add_review(db, rating=rating, ratings={comfort: 3, quality: 4})

        data = (await client.get(f"/reviews/meta?product_id={PRODUCT_ID}")).json()
        rows = await queries.fetch_meta_rows(db, PRODUCT_ID)
        k = len(data["characteristics"])
        assert k == 2
        assert data["ratings"]["5"] * k == sum(1 for r in rows if r.rating == 5)
        assert data["ratings"]["4"] * k == sum(1 for r in rows if r.rating == 4)
        assert data["characteristics"]["Quality"]["value"] == "4"

    @pytest.mark.asyncio
    async def test_reported_reviews_excluded(self, client: AsyncClient, db: AsyncSession, characteristics):
        comfort = characteristics["Comfort"]
        await add_review(db, rating=5, ratings={comfort: 5})
        await add_review(db, rating=1, recommend=False, reported=True, ratings={comfort: 1})

        data = (await client.get(f"/reviews/meta?product_id={PRODUCT_ID}")).json()
        assert data["ratings"]["1"] == 0
        assert data["ratings"]["5"] == 1
        assert data["recommended"] == {"true": 1, "false": 0}
        assert data["characteristics"]["Comfort"]["value"] == "5"

    @pytest.mark.asyncio
    async def test_product_without_characteristics(self, client: AsyncClient, db: AsyncSession):
        await add_review(db, rating=2)
        resp = await client.get(f"/reviews/meta?product_id={PRODUCT_ID}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["ratings"]["2"] == 1
        assert data["characteristics"] == {}

    @pytest.mark.asyncio
    async def test_unknown_product(self, client: AsyncClient):
        resp = await client.get(f"/reviews/meta?product_id={OTHER_PRODUCT_ID}")
        data = resp.json()
        assert sum(data["ratings"].values()) == 0
        assert data["recommended"] == {"true": 0, "false": 0}

    @pytest.mark.asyncio
    async def test_product_id_required(self, client: AsyncClient):
        resp = await client.get("/reviews/meta")
        assert resp.status_code == 422
