# modules/auth/identity.py

import logging
from datetime import datetime

from flask_login import current_user, login_user, logout_user
from sqlalchemy.exc import SQLAlchemyError

from models import AdminUser

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Sign-in or password change rejected by the identity provider."""


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class IdentityProvider:
    """Email + password accounts in `admin_user`, sessions via Flask-Login."""

    def __init__(self, db):
        self.db = db

    def find(self, email: str):
        try:
            return AdminUser.query.filter_by(email=_normalize_email(email)).first()
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise AuthError(f"Identity lookup failed: {e}") from e

    def sign_in(self, email: str, password: str) -> AdminUser:
        user = self.find(email)
        if not user or not user.check_password(password or ""):
            raise AuthError("Invalid login credentials")

        login_user(user)
        try:
            user.last_login_at = datetime.utcnow()
            self.db.session.commit()
        except SQLAlchemyError:
            self.db.session.rollback()
            logger.exception("Failed to record last login for %s", user.email)
        logger.info("Admin signed in: %s", user.email)
        return user

    def sign_out(self) -> None:
        if getattr(current_user, "is_authenticated", False):
            logger.info("Admin signed out: %s", current_user.email)
        logout_user()

    def current_session(self):
        """The signed-in AdminUser, or None."""
        if getattr(current_user, "is_authenticated", False):
            return current_user._get_current_object()
        return None

    def verify_password(self, password: str) -> bool:
        user = self.current_session()
        return bool(user and user.check_password(password or ""))

    def update_password(self, new_password: str) -> None:
        user = self.current_session()
        if user is None:
            raise AuthError("Not signed in")
        try:
            user.set_password(new_password)
            self.db.session.commit()
        except SQLAlchemyError as e:
            self.db.session.rollback()
            raise AuthError(f"Password update failed: {e}") from e
        logger.info("Password updated for %s", user.email)
