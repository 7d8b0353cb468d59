from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import os
from dotenv import load_dotenv

from models import Base

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")


def make_engine(database_url: str):
    # Configure engine for PostgreSQL
    # For PostgreSQL, we use connection pooling and don't need SQLite-specific args
    if database_url.startswith("postgresql://") or database_url.startswith("postgres://"):
        return create_engine(
            database_url,
            pool_size=10,
            max_overflow=20,
            pool_pre_ping=True,  # Verify connections before using them
            echo=False  # Set to True for SQL query logging
        )
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every session sees an empty database
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool
        )
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False} if "sqlite" in database_url else {}
    )


def make_session_factory(engine, create_tables: bool = True):
    if create_tables:
        Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
