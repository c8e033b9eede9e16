from datetime import date

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.pool import StaticPool

from studyapp.db import ensure_schema
from studyapp.errors import InvalidDate
from studyapp.profiles import ProfileStore


def test_get_or_create_defaults(db_session):
	profile = ProfileStore(db_session).get_or_create("u1", "u1@example.com")
	assert profile.email == "u1@example.com"
	assert profile.streak == 0
	assert profile.level == 1
	assert profile.subjects == []
	assert not profile.onboarding_completed


def test_update_partial_fields(db_session):
	store = ProfileStore(db_session)
	store.update("u1", {"first_name": "Asha", "date_of_birth": "2008-05-14", "subjects": ["Physics"]})
	profile = store.update("u1", {"goals": "Top 10"})
	assert profile.first_name == "Asha"
	assert profile.date_of_birth == date(2008, 5, 14)
	assert profile.subjects == ["Physics"]
	assert profile.goals == "Top 10"


def test_update_rejects_unknown_fields(db_session):
	with pytest.raises(ValueError):
		ProfileStore(db_session).update("u1", {"xp": 1000})


def test_update_rejects_bad_dates(db_session):
	with pytest.raises(InvalidDate):
		ProfileStore(db_session).update("u1", {"date_of_birth": "tomorrow"})


def test_record_login_sequence(db_session):
	store = ProfileStore(db_session)
	_, first = store.record_login("u1", "2024-01-01")
	assert (first.streak, first.changed) == (1, True)
	_, again = store.record_login("u1", "2024-01-01")
	assert (again.streak, again.changed) == (1, False)
	_, next_day = store.record_login("u1", "2024-01-02")
	assert next_day.streak == 2
	profile, after_gap = store.record_login("u1", "2024-01-10")
	assert after_gap.streak == 1
	assert profile.streak == 1
	assert profile.last_login_date == date(2024, 1, 10)


def test_add_xp_levels_up(db_session):
	store = ProfileStore(db_session)
	first = store.add_xp("u1", 150)
	assert (first.xp, first.level, first.level_up) == (150, 1, False)
	second = store.add_xp("u1", 60)
	assert (second.xp, second.level, second.level_up) == (210, 2, True)
	with pytest.raises(ValueError):
		store.add_xp("u1", -5)


def test_ensure_schema_adds_missing_columns():
	eng = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
	with eng.begin() as conn:
		conn.exec_driver_sql("CREATE TABLE profiles (id VARCHAR(128) PRIMARY KEY, email VARCHAR(256))")
	added = ensure_schema(eng)
	assert set(added) == {"xp", "level", "streak", "last_login_date", "onboarding_completed"}
	cols = {c["name"] for c in inspect(eng).get_columns("profiles")}
	assert {"streak", "last_login_date"} <= cols
	assert ensure_schema(eng) == []


def test_update_creates_profile_with_store_email(db_session):
	profile = ProfileStore(db_session, email="u1@example.com").update("u1", {"first_name": "Asha"})
	assert profile.email == "u1@example.com"


def test_store_email_backfills_missing_email(db_session):
	ProfileStore(db_session).update("u1", {"first_name": "Asha"})
	assert ProfileStore(db_session).read("u1").email is None

	profile = ProfileStore(db_session, email="u1@example.com").update("u1", {"goals": "Boards"})
	assert profile.email == "u1@example.com"
	assert profile.first_name == "Asha"
