"""Transaction helpers shared by services and scripts."""

from sqlalchemy.orm import Session


def commit_and_refresh(db: Session, *instances) -> None:
    """Commit, then reload server-generated columns (id, created_at) on each instance."""
    db.commit()
    for instance in instances:
        db.refresh(instance)
