"""API dependencies"""

from typing import Generator

from sqlalchemy.orm import Session

from pairstats.core.db import SessionLocal
from pairstats.repositories.base import EntityRepository
from pairstats.repositories.sqlalchemy_repository import SqlAlchemyRepository


def get_db() -> Generator[Session, None, None]:
    """Database session, closed after the request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_repository(db: Session) -> EntityRepository:
    return SqlAlchemyRepository(db)
