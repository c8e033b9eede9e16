import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.pop("GEMINI_API_KEY", None)
os.environ.pop("OPENROUTER_API_KEY", None)

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from studyapp.db import Base, get_db
from studyapp.main import app
from studyapp.onboarding import registry
from studyapp.settings import settings


@pytest.fixture
def engine():
	eng = create_engine(
		"sqlite://",
		connect_args={"check_same_thread": False},
		poolclass=StaticPool,
		future=True,
	)
	Base.metadata.create_all(bind=eng)
	yield eng
	eng.dispose()


@pytest.fixture
def session_factory(engine):
	return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


@pytest.fixture
def db_session(session_factory):
	db = session_factory()
	try:
		yield db
	finally:
		db.close()


@pytest.fixture(autouse=True)
def clean_registry():
	registry._sessions.clear()
	yield
	registry._sessions.clear()


@pytest.fixture
def client(session_factory):
	def _get_db():
		db = session_factory()
		try:
			yield db
		finally:
			db.close()

	app.dependency_overrides[get_db] = _get_db
	yield TestClient(app)
	app.dependency_overrides.clear()


def make_token(sub="user-1", email="student@example.com"):
	return jwt.encode({"sub": sub, "email": email}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth_headers():
	return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def headers_for():
	def _headers(sub, email=None):
		return {"Authorization": f"Bearer {make_token(sub, email)}"}
	return _headers
