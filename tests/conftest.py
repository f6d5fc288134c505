import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest

from marginalia.citations import Library

from helpers import SAMPLE_BIB


@pytest.fixture
def library() -> Library:
    lib = Library()
    lib.load_bibliography(SAMPLE_BIB)
    return lib

@pytest.fixture
def clean_db():
    from marginalia import models  # noqa: F401
    from marginalia.database import Base, engine, init_db

    Base.metadata.drop_all(bind=engine)
    init_db()
    yield engine

@pytest.fixture
def db_session(clean_db):
    from marginalia.database import SessionLocal

    with SessionLocal() as session:
        yield session
        session.rollback()
