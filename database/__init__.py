from .database import (
    make_engine,
    make_session_factory,
    DATABASE_URL
)

__all__ = ['make_engine', 'make_session_factory', 'DATABASE_URL']
