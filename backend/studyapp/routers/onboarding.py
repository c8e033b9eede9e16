from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import InvalidTransition, ProfileStoreError, ValidationFailed
from ..onboarding import (
	AVAILABLE_STANDARDS,
	AVAILABLE_SUBJECTS,
	OnboardingSession,
	StepData,
	Transition,
	registry,
)
from ..profiles import ProfileStore
from .auth import User, get_current_user


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


class SessionOut(BaseModel):
	session_id: str
	step: str
	current_step_index: int
	total_steps: int
	collected_fields: Dict[str, Any]
	pending_fields: List[str]
	finished: bool


class TransitionOut(BaseModel):
	outcome: str
	step: str
	persisted: bool
	redirect_to: Optional[str] = None
	session: SessionOut


class CompleteRequest(BaseModel):
	data: StepData


class RetryOut(BaseModel):
	persisted: bool
	session: SessionOut


def _session_for(session_id: str, user: User) -> OnboardingSession:
	try:
		return registry.get(session_id, user.id)
	except KeyError:
		raise HTTPException(status_code=404, detail="onboarding session not found")


def _profiles(db: Session, session: OnboardingSession, user: User) -> ProfileStore:
	return ProfileStore(db, email=user.email or session.collected_fields.get("email"))


def _transition_out(session: OnboardingSession, transition: Transition) -> TransitionOut:
	if session.finished:
		registry.discard(session.session_id)
	return TransitionOut(
		outcome=transition.outcome,
		step=transition.step.slug,
		persisted=transition.persisted,
		redirect_to=transition.redirect_to,
		session=SessionOut(**session.snapshot()),
	)


@router.get("/options")
def options():
	return {"standards": AVAILABLE_STANDARDS, "subjects": AVAILABLE_SUBJECTS}


@router.post("/sessions", response_model=SessionOut, status_code=201)
def start_session(user: User = Depends(get_current_user)):
	session = registry.create(user.id)
	logger.info("Started onboarding session %s for %s", session.session_id, user.id)
	return SessionOut(**session.snapshot())


@router.get("/sessions/{session_id}", response_model=SessionOut)
def get_session(session_id: str, user: User = Depends(get_current_user)):
	return SessionOut(**_session_for(session_id, user).snapshot())


@router.post("/sessions/{session_id}/complete", response_model=TransitionOut)
def complete_step(
	session_id: str,
	req: CompleteRequest,
	user: User = Depends(get_current_user),
	db: Session = Depends(get_db),
):
	session = _session_for(session_id, user)
	try:
		transition = session.complete(req.data, _profiles(db, session, user))
	except ValidationFailed as e:
		raise HTTPException(status_code=422, detail={"errors": e.errors})
	except InvalidTransition as e:
		raise HTTPException(status_code=409, detail=str(e))
	return _transition_out(session, transition)


@router.post("/sessions/{session_id}/back", response_model=TransitionOut)
def go_back(session_id: str, user: User = Depends(get_current_user)):
	session = _session_for(session_id, user)
	try:
		transition = session.back()
	except InvalidTransition as e:
		raise HTTPException(status_code=409, detail=str(e))
	return _transition_out(session, transition)


@router.post("/sessions/{session_id}/finish", response_model=TransitionOut)
def finish(session_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	session = _session_for(session_id, user)
	try:
		transition = session.finish(_profiles(db, session, user))
	except InvalidTransition as e:
		raise HTTPException(status_code=409, detail=str(e))
	except ProfileStoreError as e:
		raise HTTPException(status_code=503, detail=str(e))
	return _transition_out(session, transition)


@router.post("/sessions/{session_id}/retry", response_model=RetryOut)
def retry_pending(session_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	session = _session_for(session_id, user)
	persisted = session.retry_pending(_profiles(db, session, user))
	return RetryOut(persisted=persisted, session=SessionOut(**session.snapshot()))
