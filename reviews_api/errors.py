"""Error kinds surfaced at the HTTP boundary.

Every failure a route can produce is one of four kinds, each with a fixed
status code. Database exceptions are translated with ``from_db_error`` so the
raw driver error never reaches a client.
"""

from sqlalchemy.exc import (
    DataError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)


class ReviewsError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"detail": self.detail, "kind": self.kind}


class NotFound(ReviewsError):
    kind = "not_found"
    status_code = 404


class Conflict(ReviewsError):
    kind = "conflict"
    status_code = 409


class Invalid(ReviewsError):
    kind = "invalid"
    status_code = 422


class Unavailable(ReviewsError):
    kind = "unavailable"
    status_code = 503


def from_db_error(exc: SQLAlchemyError) -> ReviewsError:
    if isinstance(exc, PoolTimeoutError):
        return Unavailable("Timed out waiting for a database connection")
    if isinstance(exc, IntegrityError):
        return Conflict("Write conflicts with existing data")
    if isinstance(exc, DataError):
        return Invalid("Value rejected by the database")
    if isinstance(exc, (OperationalError, InterfaceError)):
        return Unavailable("Database is unavailable")
    return Unavailable("Database request failed")
