from __future__ import annotations
import logging
import re
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Annotated, Any, Dict, List, Literal, Optional, Protocol, Union

from pydantic import BaseModel, Field

from .dates import parse_date
from .errors import InvalidDate, InvalidTransition, ProfileStoreError, ValidationFailed
from .settings import settings


logger = logging.getLogger(__name__)


AVAILABLE_SUBJECTS: List[str] = [
	"Mathematics",
	"Physics",
	"Chemistry",
	"Biology",
	"Computer Science",
	"English",
	"Hindi",
	"Social Studies",
	"Economics",
	"Business Studies",
	"Accountancy",
	"Psychology",
]

AVAILABLE_STANDARDS: List[str] = [
	"8th Standard",
	"9th Standard",
	"10th Standard",
	"11th Standard",
	"12th Standard",
	"College",
]

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class OnboardingStep(IntEnum):
	AUTH = 0
	WALKTHROUGH = 1
	STUDENT_INFO = 2
	DASHBOARD_PREVIEW = 3
	INFO_BOARD = 4

	@property
	def slug(self) -> str:
		return self.name.lower()


TOTAL_STEPS = len(OnboardingStep)


class ProfileWriter(Protocol):
	def update(self, user_id: str, fields: Dict[str, Any]) -> Any: ...


# ---- Step payloads ----

class AuthStepData(BaseModel):
	step: Literal["auth"] = "auth"
	email: str = ""
	password: str = ""
	confirm_password: str = ""
	is_sign_up: bool = True

	def validate_fields(self) -> Dict[str, str]:
		errors: Dict[str, str] = {}
		if not self.email:
			errors["email"] = "Email is required"
		elif not _EMAIL.match(self.email):
			errors["email"] = "Please enter a valid email"
		if not self.password:
			errors["password"] = "Password is required"
		elif len(self.password) < 6:
			errors["password"] = "Password must be at least 6 characters"
		if self.is_sign_up and self.password != self.confirm_password:
			errors["confirm_password"] = "Passwords do not match"
		return errors

	def collected(self) -> Dict[str, Any]:
		# Credentials go to the identity provider and are never kept here
		return {"email": self.email, "is_sign_up": self.is_sign_up}

	def profile_fields(self) -> Dict[str, Any]:
		return {}


class WalkthroughStepData(BaseModel):
	step: Literal["walkthrough"] = "walkthrough"
	first_name: str = ""
	last_name: str = ""
	date_of_birth: str = ""

	def validate_fields(self) -> Dict[str, str]:
		errors: Dict[str, str] = {}
		for field, label in (("first_name", "first name"), ("last_name", "last name")):
			value = getattr(self, field).strip()
			if not value:
				errors[field] = f"Please enter your {label}"
			elif len(value) < 2:
				errors[field] = f"{label.capitalize()} must be at least 2 characters"
		if not self.date_of_birth:
			errors["date_of_birth"] = "Please enter your date of birth"
		else:
			try:
				parse_date(self.date_of_birth)
			except InvalidDate:
				errors["date_of_birth"] = "Date of birth must be YYYY-MM-DD"
		return errors

	def collected(self) -> Dict[str, Any]:
		return self.profile_fields()

	def profile_fields(self) -> Dict[str, Any]:
		return {
			"first_name": self.first_name.strip(),
			"last_name": self.last_name.strip(),
			"date_of_birth": self.date_of_birth,
		}


class StudentInfoStepData(BaseModel):
	step: Literal["student_info"] = "student_info"
	standard: str = ""
	subjects: List[str] = Field(default_factory=list)
	goals: str = ""
	comfortable_time: str = ""

	def validate_fields(self) -> Dict[str, str]:
		errors: Dict[str, str] = {}
		if not self.standard:
			errors["standard"] = "Please select your class/standard"
		elif self.standard not in AVAILABLE_STANDARDS:
			errors["standard"] = f"Unknown standard: {self.standard}"
		if not self.subjects:
			errors["subjects"] = "Please select at least one subject"
		else:
			unknown = [s for s in self.subjects if s not in AVAILABLE_SUBJECTS]
			if unknown:
				errors["subjects"] = f"Unknown subjects: {', '.join(unknown)}"
		if not self.comfortable_time.strip():
			errors["comfortable_time"] = "Please enter your comfortable study time"
		return errors

	def collected(self) -> Dict[str, Any]:
		return {**self.profile_fields(), "comfortable_time": self.comfortable_time.strip()}

	def profile_fields(self) -> Dict[str, Any]:
		return {"standard": self.standard, "subjects": list(self.subjects), "goals": self.goals}


class DashboardPreviewStepData(BaseModel):
	step: Literal["dashboard_preview"] = "dashboard_preview"

	def validate_fields(self) -> Dict[str, str]:
		return {}

	def collected(self) -> Dict[str, Any]:
		return {}

	def profile_fields(self) -> Dict[str, Any]:
		return {}


StepData = Annotated[
	Union[AuthStepData, WalkthroughStepData, StudentInfoStepData, DashboardPreviewStepData],
	Field(discriminator="step"),
]


# ---- State machine ----

@dataclass(frozen=True)
class Transition:
	outcome: str
	step: OnboardingStep
	persisted: bool = True
	redirect_to: Optional[str] = None


class OnboardingSession:
	def __init__(self, user_id: str, *, redirect_to: Optional[str] = None) -> None:
		self.session_id: str = uuid.uuid4().hex
		self.user_id = user_id
		self.current_step_index: int = 0
		self.collected_fields: Dict[str, Any] = {}
		# Fields whose profile write failed; kept until a retry succeeds
		self.pending_fields: Dict[str, Any] = {}
		self.finished: bool = False
		self.created_at: datetime = datetime.utcnow()
		self.redirect_to = redirect_to or settings.post_onboarding_redirect

	@property
	def step(self) -> OnboardingStep:
		return OnboardingStep(self.current_step_index)

	def complete(self, data: StepData, profiles: ProfileWriter) -> Transition:
		"""Validate and store one step's data, then move forward.

		The profile write is best effort: a failure is logged and the fields
		are parked in ``pending_fields``, but the step still advances.
		"""
		self._ensure_active()
		step = self.step
		if step is OnboardingStep.INFO_BOARD:
			raise InvalidTransition("info_board has no next step; call finish")
		if data.step != step.slug:
			raise InvalidTransition(f"expected {step.slug} data, got {data.step}")
		errors = data.validate_fields()
		if errors:
			raise ValidationFailed(errors)

		self.collected_fields.update(data.collected())
		if isinstance(data, AuthStepData) and not data.is_sign_up:
			# Returning users skip the wizard entirely
			self.finished = True
			return Transition(outcome="signed_in", step=step, redirect_to=self.redirect_to)

		persisted = self._persist(data.profile_fields(), profiles)
		self.current_step_index += 1
		return Transition(outcome="advanced", step=self.step, persisted=persisted)

	def back(self) -> Transition:
		self._ensure_active()
		if self.current_step_index == 0:
			raise InvalidTransition("already at the first step")
		self.current_step_index -= 1
		return Transition(outcome="back", step=self.step)

	def finish(self, profiles: ProfileWriter) -> Transition:
		self._ensure_active()
		if self.step is not OnboardingStep.INFO_BOARD:
			raise InvalidTransition(f"cannot finish from {self.step.slug}")
		# Unsaved step fields ride along with the terminal write
		profiles.update(self.user_id, {**self.pending_fields, "onboarding_completed": True})
		self.pending_fields = {}
		self.finished = True
		logger.info("Onboarding completed for %s", self.user_id)
		return Transition(outcome="completed", step=self.step, redirect_to=self.redirect_to)

	def retry_pending(self, profiles: ProfileWriter) -> bool:
		if not self.pending_fields:
			return True
		fields, self.pending_fields = self.pending_fields, {}
		return self._persist(fields, profiles)

	def snapshot(self) -> Dict[str, Any]:
		return {
			"session_id": self.session_id,
			"step": self.step.slug,
			"current_step_index": self.current_step_index,
			"total_steps": TOTAL_STEPS,
			"collected_fields": dict(self.collected_fields),
			"pending_fields": sorted(self.pending_fields),
			"finished": self.finished,
		}

	def _persist(self, fields: Dict[str, Any], profiles: ProfileWriter) -> bool:
		if not fields:
			return True
		try:
			profiles.update(self.user_id, fields)
		except ProfileStoreError as e:
			logger.warning("Saving onboarding fields %s for %s failed: %s", sorted(fields), self.user_id, e)
			self.pending_fields.update(fields)
			return False
		return True

	def _ensure_active(self) -> None:
		if self.finished:
			raise InvalidTransition("onboarding session already finished")


class OnboardingRegistry:
	"""Process-local map of live onboarding sessions."""

	def __init__(self) -> None:
		self._sessions: Dict[str, OnboardingSession] = {}
		# Sync endpoints run in worker threads while the purge runs on the event loop
		self._lock = threading.Lock()

	def __len__(self) -> int:
		return len(self._sessions)

	def create(self, user_id: str) -> OnboardingSession:
		session = OnboardingSession(user_id)
		with self._lock:
			self._sessions[session.session_id] = session
		return session

	def get(self, session_id: str, user_id: str) -> OnboardingSession:
		session = self._sessions.get(session_id)
		if session is None or session.user_id != user_id:
			raise KeyError(session_id)
		return session

	def discard(self, session_id: str) -> None:
		with self._lock:
			self._sessions.pop(session_id, None)

	def purge_older_than(self, max_age: timedelta, *, now: Optional[datetime] = None) -> int:
		threshold = (now or datetime.utcnow()) - max_age
		with self._lock:
			stale = [sid for sid, s in self._sessions.items() if s.finished or s.created_at < threshold]
			for sid in stale:
				del self._sessions[sid]
		return len(stale)


registry = OnboardingRegistry()
