from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Integer, Text, Boolean, JSON
from .db import Base


class Profile(Base):
	__tablename__ = "profiles"
	# Subject id from the identity provider
	id = Column(String(128), primary_key=True, index=True)
	email = Column(String(256), nullable=True)
	first_name = Column(String(128), nullable=True)
	last_name = Column(String(128), nullable=True)
	date_of_birth = Column(Date, nullable=True)
	standard = Column(String(64), nullable=True)
	subjects = Column(JSON, nullable=False, default=list)
	goals = Column(Text, nullable=True)
	avatar = Column(String(512), nullable=True)
	xp = Column(Integer, default=0, nullable=False)
	level = Column(Integer, default=1, nullable=False)
	streak = Column(Integer, default=0, nullable=False)
	last_login_date = Column(Date, nullable=True)
	onboarding_completed = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
