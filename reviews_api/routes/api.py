from typing import Annotated
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reviews_api.config import (
    DEFAULT_PAGE_COUNT, MAX_PAGE_COUNT, MAX_SUMMARY, MAX_BODY, MAX_REVIEWER_NAME,
    MAX_REVIEWER_EMAIL, MAX_PHOTO_URL, MAX_PHOTOS, MIN_RATING, MAX_RATING,
)
from reviews_api.database import Database, get_database, get_db
from reviews_api.errors import Unavailable
from reviews_api.listing import list_reviews
from reviews_api.meta import review_metadata
from reviews_api.submission import create_review, mark_helpful, report_review

router = APIRouter(tags=["Reviews"])


# --- Pydantic Schemas ---

class ReviewOut(BaseModel):
    review_id: int
    rating: int
    summary: str
    recommend: bool
    response: str | None
    body: str
    date: int
    reviewer_name: str
    helpfulness: int
    photos: list[str]


class ReviewListOut(BaseModel):
    product: int | None
    page: int
    count: int
    results: list[ReviewOut]


class CharacteristicMeta(BaseModel):
    id: int
    value: str


class ReviewMetaOut(BaseModel):
    product_id: int
    ratings: dict[str, int]
    recommended: dict[str, int]
    characteristics: dict[str, CharacteristicMeta]


CharacteristicValue = Annotated[int, Field(ge=MIN_RATING, le=MAX_RATING)]


class ReviewCreate(BaseModel):
    product_id: int = Field(ge=1)
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)
    summary: str = Field(min_length=1, max_length=MAX_SUMMARY)
    body: str = Field(min_length=1, max_length=MAX_BODY)
    recommend: bool
    name: str = Field(min_length=1, max_length=MAX_REVIEWER_NAME)
    email: str = Field(min_length=3, max_length=MAX_REVIEWER_EMAIL)
    photos: list[str] = Field(default_factory=list, max_length=MAX_PHOTOS)
    characteristics: dict[int, CharacteristicValue] = Field(default_factory=dict)

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        local, _, domain = v.partition("@")
        if not local or not domain:
            raise ValueError("email must look like name@host")
        return v

    # Reject non-http(s) schemes so javascript:/data: URIs never get stored
    @field_validator("photos")
    @classmethod
    def check_photo_urls(cls, v: list[str]) -> list[str]:
        for url in v:
            if len(url) > MAX_PHOTO_URL:
                raise ValueError(f"photo URLs are limited to {MAX_PHOTO_URL} characters")
            if urlparse(url).scheme not in ("http", "https"):
                raise ValueError("photo URLs must start with http:// or https://")
        return v


class ReviewCreateOut(BaseModel):
    review_id: int
    photos: int
    characteristics: int


# --- Endpoints ---

# IMPORTANT: /reviews/meta BEFORE any /reviews/{review_id} GET route
@router.get("/reviews/meta", response_model=ReviewMetaOut)
async def get_review_meta(product_id: int = Query(...), db: AsyncSession = Depends(get_db)):
    return await review_metadata(db, product_id)


@router.get("/reviews", response_model=ReviewListOut)
async def get_reviews(
    product_id: int | None = None,
    count: int = Query(DEFAULT_PAGE_COUNT, ge=1, le=MAX_PAGE_COUNT),
    page: int | None = Query(None, ge=1),
    pages: int | None = Query(None, ge=1, deprecated=True, description="Legacy alias for page"),
    sort: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    page = page or pages or 1
    results = await list_reviews(db, product_id, count, page, sort)
    return ReviewListOut(product=product_id, page=page, count=count, results=results)


@router.post("/reviews", response_model=ReviewCreateOut, status_code=201)
async def post_review(body: ReviewCreate, db: AsyncSession = Depends(get_db)):
    return await create_review(
        db,
        product_id=body.product_id,
        rating=body.rating,
        summary=body.summary,
        body=body.body,
        recommend=body.recommend,
        name=body.name,
        email=body.email,
        photos=body.photos,
        characteristics=body.characteristics,
    )


@router.put("/reviews/{review_id}/helpful", status_code=204)
async def put_helpful(review_id: int, db: AsyncSession = Depends(get_db)):
    await mark_helpful(db, review_id)
    return Response(status_code=204)


@router.put("/reviews/{review_id}/report", status_code=204)
async def put_report(review_id: int, db: AsyncSession = Depends(get_db)):
    await report_review(db, review_id)
    return Response(status_code=204)


@router.get("/health", include_in_schema=False)
async def health(database: Database = Depends(get_database)):
    try:
        await database.ping()
    except SQLAlchemyError as exc:
        raise Unavailable("Database is unavailable") from exc
    return {"status": "ok"}
