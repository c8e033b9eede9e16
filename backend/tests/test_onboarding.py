import threading
from datetime import datetime, timedelta

import pytest

from studyapp.errors import InvalidTransition, ProfileStoreError, ValidationFailed
from studyapp.onboarding import (
	TOTAL_STEPS,
	AuthStepData,
	DashboardPreviewStepData,
	OnboardingRegistry,
	OnboardingSession,
	OnboardingStep,
	StudentInfoStepData,
	WalkthroughStepData,
)


class FakeProfiles:
	def __init__(self, fail=False):
		self.fail = fail
		self.updates = []

	def update(self, user_id, fields):
		if self.fail:
			raise ProfileStoreError("database is down")
		self.updates.append((user_id, dict(fields)))


SIGN_UP = AuthStepData(email="asha@example.com", password="secret1", confirm_password="secret1", is_sign_up=True)
WALKTHROUGH = WalkthroughStepData(first_name="Asha", last_name="Rao", date_of_birth="2008-05-14")
STUDENT_INFO = StudentInfoStepData(
	standard="12th Standard",
	subjects=["Mathematics", "Physics"],
	goals="Crack the board exams",
	comfortable_time="Evenings",
)


def _at_step(step, profiles):
	session = OnboardingSession("user-1")
	for data in (SIGN_UP, WALKTHROUGH, STUDENT_INFO, DashboardPreviewStepData())[:step]:
		session.complete(data, profiles)
	return session


def test_total_steps():
	assert TOTAL_STEPS == 5


def test_starts_at_auth():
	session = OnboardingSession("user-1")
	assert session.step is OnboardingStep.AUTH
	assert session.collected_fields == {}


def test_full_sign_up_flow():
	profiles = FakeProfiles()
	session = _at_step(4, profiles)
	assert session.step is OnboardingStep.INFO_BOARD

	transition = session.finish(profiles)
	assert transition.outcome == "completed"
	assert transition.redirect_to == "/home"
	assert session.finished
	assert profiles.updates == [
		("user-1", {"first_name": "Asha", "last_name": "Rao", "date_of_birth": "2008-05-14"}),
		("user-1", {"standard": "12th Standard", "subjects": ["Mathematics", "Physics"], "goals": "Crack the board exams"}),
		("user-1", {"onboarding_completed": True}),
	]


def test_collected_fields_never_hold_credentials():
	session = _at_step(3, FakeProfiles())
	assert session.collected_fields["email"] == "asha@example.com"
	assert session.collected_fields["comfortable_time"] == "Evenings"
	assert "password" not in session.collected_fields
	assert "confirm_password" not in session.collected_fields


def test_sign_in_short_circuits():
	profiles = FakeProfiles()
	session = OnboardingSession("user-1")
	transition = session.complete(AuthStepData(email="asha@example.com", password="secret1", is_sign_up=False), profiles)
	assert transition.outcome == "signed_in"
	assert transition.redirect_to == "/home"
	assert session.finished
	assert session.current_step_index == 0
	assert profiles.updates == []
	with pytest.raises(InvalidTransition):
		session.complete(WALKTHROUGH, profiles)


def test_back_from_auth_is_rejected():
	with pytest.raises(InvalidTransition):
		OnboardingSession("user-1").back()


@pytest.mark.parametrize("step", [1, 2, 3, 4])
def test_back_then_complete_returns_to_same_step(step):
	profiles = FakeProfiles()
	session = _at_step(step, profiles)
	before = dict(session.collected_fields)

	transition = session.back()
	assert transition.outcome == "back"
	assert session.current_step_index == step - 1
	assert session.collected_fields == before

	redo = (SIGN_UP, WALKTHROUGH, STUDENT_INFO, DashboardPreviewStepData())[step - 1]
	session.complete(redo, profiles)
	assert session.current_step_index == step


def test_info_board_has_no_forward_transition():
	session = _at_step(4, FakeProfiles())
	with pytest.raises(InvalidTransition):
		session.complete(DashboardPreviewStepData(), FakeProfiles())


def test_finish_only_from_info_board():
	session = _at_step(2, FakeProfiles())
	with pytest.raises(InvalidTransition):
		session.finish(FakeProfiles())


def test_wrong_step_data_rejected():
	session = OnboardingSession("user-1")
	with pytest.raises(InvalidTransition):
		session.complete(WALKTHROUGH, FakeProfiles())


def test_auth_validation_messages():
	session = OnboardingSession("user-1")
	with pytest.raises(ValidationFailed) as exc:
		session.complete(AuthStepData(email="not-an-email", password="abc", confirm_password="abd"), FakeProfiles())
	assert exc.value.errors == {
		"email": "Please enter a valid email",
		"password": "Password must be at least 6 characters",
		"confirm_password": "Passwords do not match",
	}
	assert session.current_step_index == 0


def test_walkthrough_validation():
	session = _at_step(1, FakeProfiles())
	with pytest.raises(ValidationFailed) as exc:
		session.complete(WalkthroughStepData(first_name=" ", last_name="R", date_of_birth="14/05/2008"), FakeProfiles())
	assert set(exc.value.errors) == {"first_name", "last_name", "date_of_birth"}
	assert session.step is OnboardingStep.WALKTHROUGH


def test_student_info_validation():
	profiles = FakeProfiles()
	session = _at_step(2, profiles)
	with pytest.raises(ValidationFailed) as exc:
		session.complete(StudentInfoStepData(standard="", subjects=[], comfortable_time=""), profiles)
	assert exc.value.errors == {
		"standard": "Please select your class/standard",
		"subjects": "Please select at least one subject",
		"comfortable_time": "Please enter your comfortable study time",
	}
	assert len(profiles.updates) == 1


def test_store_failure_still_advances():
	session = _at_step(1, FakeProfiles())
	failing = FakeProfiles(fail=True)
	transition = session.complete(WALKTHROUGH, failing)
	assert transition.outcome == "advanced"
	assert transition.persisted is False
	assert session.step is OnboardingStep.STUDENT_INFO
	assert set(session.pending_fields) == {"first_name", "last_name", "date_of_birth"}

	assert session.retry_pending(failing) is False
	working = FakeProfiles()
	assert session.retry_pending(working) is True
	assert session.pending_fields == {}
	assert working.updates[0][1]["first_name"] == "Asha"


def test_finish_failure_propagates():
	session = _at_step(4, FakeProfiles())
	with pytest.raises(ProfileStoreError):
		session.finish(FakeProfiles(fail=True))
	assert not session.finished


def test_registry_scopes_sessions_to_user():
	reg = OnboardingRegistry()
	session = reg.create("user-1")
	assert reg.get(session.session_id, "user-1") is session
	with pytest.raises(KeyError):
		reg.get(session.session_id, "user-2")


def test_registry_purges_old_and_finished():
	reg = OnboardingRegistry()
	old = reg.create("a")
	old.created_at = datetime.utcnow() - timedelta(hours=5)
	done = reg.create("b")
	done.finished = True
	live = reg.create("c")
	assert reg.purge_older_than(timedelta(hours=2)) == 2
	assert len(reg) == 1
	assert reg.get(live.session_id, "c") is live


def test_finish_carries_unsaved_fields():
	session = _at_step(1, FakeProfiles())
	session.complete(WALKTHROUGH, FakeProfiles(fail=True))
	profiles = FakeProfiles()
	session.complete(STUDENT_INFO, profiles)
	session.complete(DashboardPreviewStepData(), profiles)

	session.finish(profiles)
	assert profiles.updates[-1] == (
		"user-1",
		{"first_name": "Asha", "last_name": "Rao", "date_of_birth": "2008-05-14", "onboarding_completed": True},
	)
	assert session.pending_fields == {}


def test_failed_finish_keeps_unsaved_fields():
	session = _at_step(1, FakeProfiles())
	session.complete(WALKTHROUGH, FakeProfiles(fail=True))
	session.complete(STUDENT_INFO, FakeProfiles())
	session.complete(DashboardPreviewStepData(), FakeProfiles())
	with pytest.raises(ProfileStoreError):
		session.finish(FakeProfiles(fail=True))
	assert set(session.pending_fields) == {"first_name", "last_name", "date_of_birth"}


def test_registry_purge_races_with_creates():
	reg = OnboardingRegistry()
	for i in range(200):
		reg.create(f"old-{i}").finished = True

	def keep_creating():
		for i in range(500):
			reg.create(f"new-{i}")

	worker = threading.Thread(target=keep_creating)
	worker.start()
	purged = 0
	while worker.is_alive():
		purged += reg.purge_older_than(timedelta(hours=2))
	worker.join()
	purged += reg.purge_older_than(timedelta(hours=2))
	assert purged == 200
	assert len(reg) == 500
