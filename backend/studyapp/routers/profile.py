from __future__ import annotations
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..dates import utc_today
from ..db import get_db
from ..errors import InvalidDate, ProfileStoreError
from ..onboarding import AVAILABLE_STANDARDS, AVAILABLE_SUBJECTS
from ..profiles import ProfileStore
from .auth import User, get_current_user


router = APIRouter(prefix="/profile", tags=["profile"])


class ProfileOut(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: str
	email: Optional[str] = None
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	date_of_birth: Optional[date] = None
	standard: Optional[str] = None
	subjects: List[str] = Field(default_factory=list)
	goals: Optional[str] = None
	avatar: Optional[str] = None
	xp: int = 0
	level: int = 1
	streak: int = 0
	last_login_date: Optional[date] = None
	onboarding_completed: bool = False
	updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	date_of_birth: Optional[str] = None
	standard: Optional[str] = None
	subjects: Optional[List[str]] = None
	goals: Optional[str] = None
	avatar: Optional[str] = None


class LoginResponse(BaseModel):
	streak: int
	last_login_date: date
	changed: bool


class XpRequest(BaseModel):
	amount: int = Field(ge=0)


class XpResponse(BaseModel):
	xp: int
	level: int
	level_up: bool


@router.get("/me", response_model=ProfileOut)
def read_me(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	try:
		return ProfileStore(db).get_or_create(user.id, user.email)
	except ProfileStoreError as e:
		raise HTTPException(status_code=503, detail=str(e))


@router.patch("/me", response_model=ProfileOut)
def update_me(req: ProfileUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	fields = req.model_dump(exclude_unset=True)
	if fields.get("standard") is not None and fields["standard"] not in AVAILABLE_STANDARDS:
		raise HTTPException(status_code=400, detail=f"unknown standard: {fields['standard']}")
	unknown = [s for s in fields.get("subjects") or [] if s not in AVAILABLE_SUBJECTS]
	if unknown:
		raise HTTPException(status_code=400, detail=f"unknown subjects: {', '.join(unknown)}")
	try:
		return ProfileStore(db, email=user.email).update(user.id, fields)
	except InvalidDate as e:
		raise HTTPException(status_code=400, detail=str(e))
	except ProfileStoreError as e:
		raise HTTPException(status_code=503, detail=str(e))


@router.post("/login", response_model=LoginResponse)
def record_login(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	try:
		_, decision = ProfileStore(db).record_login(user.id, utc_today(), email=user.email)
	except ProfileStoreError as e:
		raise HTTPException(status_code=503, detail=str(e))
	return LoginResponse(streak=decision.streak, last_login_date=decision.last_login_date, changed=decision.changed)


@router.post("/xp", response_model=XpResponse)
def add_xp(req: XpRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	try:
		result = ProfileStore(db, email=user.email).add_xp(user.id, req.amount)
	except ProfileStoreError as e:
		raise HTTPException(status_code=503, detail=str(e))
	return XpResponse(xp=result.xp, level=result.level, level_up=result.level_up)
