from __future__ import annotations
import logging

from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


logger = logging.getLogger(__name__)

DATABASE_URL = settings.database_url or "sqlite:///./app.db"

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


# Columns added after the first release of the profiles table
_PROFILE_COLUMNS = {
	"xp": "INTEGER DEFAULT 0 NOT NULL",
	"level": "INTEGER DEFAULT 1 NOT NULL",
	"streak": "INTEGER DEFAULT 0 NOT NULL",
	"last_login_date": "DATE",
	"onboarding_completed": "BOOLEAN DEFAULT FALSE NOT NULL",
}


def ensure_schema(bind=None) -> list[str]:
	"""Add missing profile columns to an existing database.

	Returns the names of the columns that were added.
	"""
	bind = bind or engine
	try:
		inspector = inspect(bind)
		tables = set(inspector.get_table_names())
	except SQLAlchemyError:
		logger.exception("Could not inspect database schema")
		return []
	if "profiles" not in tables:
		return []
	cols = {c["name"] for c in inspector.get_columns("profiles")}
	added: list[str] = []
	with bind.begin() as conn:
		for name, ddl in _PROFILE_COLUMNS.items():
			if name not in cols:
				conn.exec_driver_sql(f"ALTER TABLE profiles ADD COLUMN {name} {ddl}")
				added.append(name)
	if added:
		logger.info("Added profile columns: %s", ", ".join(added))
	return added
