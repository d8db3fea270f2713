from collections.abc import Iterator

from sqlalchemy.orm import Session

import app.db.session as db_session


def get_db() -> Iterator[Session]:
    """Yield a request-scoped database session."""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()
