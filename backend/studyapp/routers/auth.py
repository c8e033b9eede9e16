from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel
import logging

from ..settings import settings

logger = logging.getLogger(__name__)

# Sign-up and sign-in happen at the hosted identity provider; this service
# only checks the bearer tokens it issues.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


class User(BaseModel):
	id: str
	email: Optional[str] = None


def decode_token(token: str) -> User:
	credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
	options = {"verify_aud": settings.jwt_audience is not None}
	try:
		payload = jwt.decode(
			token,
			settings.jwt_secret_key,
			algorithms=[settings.jwt_algorithm],
			audience=settings.jwt_audience,
			options=options,
		)
	except JWTError as e:
		logger.info("Rejected bearer token: %s", e)
		raise credentials_exception
	user_id: str | None = payload.get("sub")
	if not user_id:
		raise credentials_exception
	return User(id=user_id, email=payload.get("email"))


def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
	return decode_token(token)
