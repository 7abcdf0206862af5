import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from reviews_api.database import Base, get_db
from reviews_api.main import app
from reviews_api.models import Characteristic, CharacteristicReview, Photo, Review

PRODUCT_ID = 40344
OTHER_PRODUCT_ID = 40345


async def _make_db():
    """Create a fresh in-memory DB engine + session."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return engine, session_factory()


async def _teardown_db(engine, session):
    await session.close()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db():
    engine, session = await _make_db()
    yield session
    await _teardown_db(engine, session)


@pytest_asyncio.fixture
async def client(db: AsyncSession):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def add_review(db: AsyncSession, product_id: int = PRODUCT_ID, photos=(), ratings=None, **fields) -> Review:
    """Insert a review plus optional photo URLs and {Characteristic: value} ratings."""
    values = {
        "rating": 5,
        "summary": "Great fit",
        "body": "Wore these every day for a month.",
        "recommend": True,
        "reviewer_name": "shopper",
        "reviewer_email": "shopper@example.com",
        "review_date": 1_600_000_000_000,
        "helpfulness": 0,
    }
    values.update(fields)
    review = Review(product_id=product_id, **values)
    review.photos = [Photo(photo_url=url) for url in photos]
    review.characteristic_reviews = [
        CharacteristicReview(characteristic=characteristic, review_value=value)
        for characteristic, value in (ratings or {}).items()
    ]
    db.add(review)
    await db.commit()
    await db.refresh(review)
    return review


@pytest_asyncio.fixture
async def characteristics(db: AsyncSession) -> dict[str, Characteristic]:
    chars = {
        "Comfort": Characteristic(product_id=PRODUCT_ID, name="Comfort"),
        "Quality": Characteristic(product_id=PRODUCT_ID, name="Quality"),
        "Fit": Characteristic(product_id=OTHER_PRODUCT_ID, name="Fit"),
    }
    db.add_all(chars.values())
    await db.commit()
    for c in chars.values():
        await db.refresh(c)
    return chars


@pytest_asyncio.fixture
async def sample_reviews(db: AsyncSession) -> list[Review]:
    """Seven reviews for one product with varied helpfulness and dates."""
    specs = [
        # (helpfulness, review_date, photos)
        (3, 1_600_000_000_000, ["https://img.example.com/a.jpg", "https://img.example.com/b.jpg"]),
        (10, 1_600_000_500_000, []),
        (3, 1_600_000_900_000, []),
        (0, 1_600_000_100_000, ["https://img.example.com/c.jpg"]),
        (7, 1_600_000_300_000, []),
        (1, 1_600_000_800_000, []),
        (7, 1_600_000_200_000, []),
    ]
    reviews = []
    for i, (helpfulness, date, photos) in enumerate(specs):
        reviews.append(await add_review(
            db, photos=photos, helpfulness=helpfulness, review_date=date,
            summary=f"Review {i}", reviewer_name=f"user{i}",
        ))
    return reviews
