from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .dates import DateLike, parse_date
from .errors import ProfileStoreError
from .models import Profile
from .settings import settings
from .streak import StreakDecision, decide_streak


logger = logging.getLogger(__name__)


# Fields callers may change through a partial update
UPDATABLE_FIELDS = frozenset({
	"first_name",
	"last_name",
	"date_of_birth",
	"standard",
	"subjects",
	"goals",
	"avatar",
	"onboarding_completed",
})


@dataclass(frozen=True)
class XpResult:
	xp: int
	level: int
	level_up: bool


def level_for_xp(xp: int, per_level: Optional[int] = None) -> int:
	per_level = per_level or settings.xp_per_level
	return xp // per_level + 1


class ProfileStore:
	"""Reads and writes learner profiles for one database session."""

	def __init__(self, db: Session, *, email: Optional[str] = None) -> None:
		self.db = db
		# Used when a write has to create the profile or fill a missing email
		self.email = email

	def read(self, user_id: str) -> Optional[Profile]:
		return self.db.get(Profile, user_id)

	def get_or_create(self, user_id: str, email: Optional[str] = None) -> Profile:
		email = email or self.email
		profile = self.read(user_id)
		if profile is not None:
			if email and not profile.email:
				profile.email = email
				self._commit(profile)
			return profile
		profile = Profile(id=user_id, email=email, subjects=[], xp=0, level=1, streak=0, onboarding_completed=False)
		self._commit(profile)
		logger.info("Created profile for %s", user_id)
		return profile

	def update(self, user_id: str, fields: Dict[str, Any]) -> Profile:
		unknown = set(fields) - UPDATABLE_FIELDS
		if unknown:
			raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")
		profile = self.get_or_create(user_id)
		for name, value in fields.items():
			if name == "date_of_birth" and value is not None:
				value = parse_date(value)
			if name == "subjects":
				value = list(value or [])
			setattr(profile, name, value)
		self._commit(profile)
		return profile

	def record_login(self, user_id: str, today: DateLike, email: Optional[str] = None) -> Tuple[Profile, StreakDecision]:
		profile = self.get_or_create(user_id, email)
		decision = decide_streak(profile.streak or 0, profile.last_login_date, today)
		if decision.changed:
			profile.streak = decision.streak
			profile.last_login_date = decision.last_login_date
			self._commit(profile)
			logger.info("Streak for %s is now %d", user_id, decision.streak)
		return profile, decision

	def add_xp(self, user_id: str, amount: int) -> XpResult:
		if amount < 0:
			raise ValueError("amount must be non-negative")
		profile = self.get_or_create(user_id)
		current_level = profile.level or 1
		profile.xp = (profile.xp or 0) + amount
		profile.level = level_for_xp(profile.xp)
		self._commit(profile)
		return XpResult(xp=profile.xp, level=profile.level, level_up=profile.level > current_level)

	def _commit(self, profile: Profile) -> None:
		try:
			self.db.add(profile)
			self.db.commit()
			self.db.refresh(profile)
		except SQLAlchemyError as e:
			self.db.rollback()
			raise ProfileStoreError(f"profile write failed: {e}") from e
