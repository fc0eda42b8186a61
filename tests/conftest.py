from __future__ import annotations

from typing import Generator

import pytest
from flask import Flask
from flask.testing import FlaskClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from pastebin import create_app
from pastebin.db import Base, get_engine
from pastebin.domain import models as _models  # noqa: F401
from pastebin.repositories.paste_repository import PasteRepository
from pastebin.services.paste_service import PasteService


@pytest.fixture(scope="function")
def engine(tmp_path) -> Generator[Engine, None, None]:
    """
    Create a fresh file-backed SQLite engine for each test function.

    A file (rather than ``:memory:``) lets several connections, and threads,
    share one database.
    """

    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'pastes.db'}",
        future=True,
        connect_args={"timeout": 30},
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    with SessionLocal() as session:
        yield session
        session.rollback()


@pytest.fixture
def paste_repo(session: Session) -> PasteRepository:
    return PasteRepository(session=session)


@pytest.fixture
def paste_service(engine) -> PasteService:
    """Service with its own session factory; each call gets a new session from the test engine."""
    session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    return PasteService(session_factory=session_factory)


@pytest.fixture
def make_app(tmp_path):
    def _make_app(**overrides) -> Flask:
        config = {
            "SQLALCHEMY_DATABASE_URI": f"sqlite+pysqlite:///{tmp_path / 'app.db'}",
            "TEST_MODE": True,
        }
        config.update(overrides)
        app = create_app("testing", config)
        Base.metadata.create_all(get_engine())
        return app

    return _make_app


@pytest.fixture
def app(make_app) -> Flask:
    return make_app()


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()
