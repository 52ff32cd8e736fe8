"""Relational persistence for events, photos and faces."""
from .photo_store import SqlAlchemyPhotoStore
from .session import create_engine, create_session_factory, init_models

__all__ = ["SqlAlchemyPhotoStore", "create_engine", "create_session_factory", "init_models"]
