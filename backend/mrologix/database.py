"""Engine and session wiring for the relational store."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import DatabaseConfig, settings


def build_engine(config: DatabaseConfig) -> Engine:
    return create_engine(config.url, **config.engine_options)


def build_sessionmaker(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = build_engine(settings.database)
SessionLocal = build_sessionmaker(engine)

Base = declarative_base()


def get_db():
    """Request-scoped session; handlers commit or roll back themselves."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
