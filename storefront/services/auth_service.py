from typing import Dict, Optional
from uuid import uuid4
from sqlalchemy import func
from werkzeug.security import check_password_hash, generate_password_hash
from ..db.session import get_session
from ..models.profile import Profile
from ..utils.dto import to_profile_dto
from .errors import AuthenticationFailed, NotFound, ValidationFailed, persistence_errors
from .logging import log_event

MIN_PASSWORD_LENGTH = 6


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AuthService:
    """Email/password identity for shoppers.

    The web layer keeps the signed-in profile id in the Flask session; this
    service only creates and checks credentials.
    """

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def sign_up(self, *, email: str, password: str, full_name: Optional[str] = None) -> Dict:
        addr = _normalize_email(email)
        if "@" not in addr:
            raise ValidationFailed("a valid email is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
        with persistence_errors("sign up"):
            with self._session_factory() as session:
                taken = session.query(Profile.id).filter(func.lower(Profile.email) == addr).first()
                if taken:
                    raise ValidationFailed("email already registered")
                profile = Profile(
                    id=str(uuid4()),
                    email=addr,
                    password_hash=generate_password_hash(password),
                    full_name=(full_name or "").strip() or None,
                )
                session.add(profile)
                session.flush()
                data = to_profile_dto(profile)
        log_event("info", "auth.signed_up", user_id=data["id"])
        return data

    def sign_in(self, *, email: str, password: str) -> Dict:
        addr = _normalize_email(email)
        with persistence_errors("sign in"), self._session_factory() as session:
            profile = session.query(Profile).filter(func.lower(Profile.email) == addr).first()
            if not profile or not check_password_hash(profile.password_hash, password or ""):
                log_event("warning", "auth.sign_in_failed", email=addr)
                raise AuthenticationFailed()
            return to_profile_dto(profile)

    def get_profile(self, user_id: str) -> Dict:
        with persistence_errors("profile read"), self._session_factory() as session:
            profile = session.query(Profile).filter(Profile.id == user_id).first()
            if not profile:
                raise NotFound("profile not found")
            return to_profile_dto(profile)
