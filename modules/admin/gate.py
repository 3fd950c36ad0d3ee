# modules/admin/gate.py

import logging
from typing import Dict, List, Optional

from flask_login import user_logged_in, user_logged_out

from modules.auth.identity import AuthError
from modules.common.fanout import run_parallel

from .managers import Notifier, _log_notice, build_managers
from .schemas import LOGIN_FORM, validate_form

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
AUTHENTICATED = "authenticated"
UNAUTHENTICATED = "unauthenticated"


class AdminSession:
    """
    Gate in front of the admin console.

    Starts `unknown`, settles on `authenticated` or `unauthenticated` after
    `check()`, and follows Flask-Login's sign-in/sign-out signals from then
    on. Holds the six collection managers; a sign-out empties all of them
    before anything else is rendered.
    """

    def __init__(self, client, app, notify: Optional[Notifier] = None):
        self.client = client
        self.app = app
        self.notify = notify or _log_notice
        self.state = UNKNOWN
        self.failed: List[str] = []  # collections the last bulk load could not read
        self.managers = build_managers(client, notify=self.notify)

        user_logged_in.connect(self._on_signed_in, app)
        user_logged_out.connect(self._on_signed_out, app)

    def close(self) -> None:
        user_logged_in.disconnect(self._on_signed_in, self.app)
        user_logged_out.disconnect(self._on_signed_out, self.app)

    # ---------------------------
    # State
    # ---------------------------
    @property
    def view(self) -> str:
        if self.state == UNKNOWN:
            return "loading"
        if self.state == UNAUTHENTICATED:
            return "login"
        return "console"

    def check(self) -> str:
        user = self.client.identity.current_session()
        self.state = AUTHENTICATED if user else UNAUTHENTICATED
        return self.state

    def _on_signed_in(self, sender, user=None, **extra):
        self.state = AUTHENTICATED

    def _on_signed_out(self, sender, user=None, **extra):
        self.clear()
        self.state = UNAUTHENTICATED

    def clear(self) -> None:
        for manager in self.managers.values():
            manager.clear()
        self.failed = []

    # ---------------------------
    # Actions
    # ---------------------------
    def sign_in(self, form) -> Dict[str, str]:
        """Validate, sign in and bulk-load. Returns field errors (empty on success)."""
        values, errors = validate_form(LOGIN_FORM, form)
        if errors:
            return errors
        try:
            self.client.identity.sign_in(values["email"], values["password"])
        except AuthError as e:
            logger.warning("Admin sign-in failed for %s: %s", values["email"], e)
            self.notify(str(e), "error")
            return {}
        self.notify("Signed in successfully", "success")
        self.load_all()
        return {}

    def sign_out(self) -> None:
        self.client.identity.sign_out()
        self.notify("Signed out successfully", "success")

    def load_all(self) -> List[str]:
        """Fetch all six collections concurrently and hand each to its manager."""
        jobs = {key: manager.fetch for key, manager in self.managers.items()}
        results = run_parallel(self.app, jobs)
        failed = []
        for key, value in results.items():
            if isinstance(value, Exception):
                logger.error("Failed to load %s: %s", key, value)
                failed.append(key)
                continue
            self.managers[key].load(value)
        if failed:
            self.notify(f"Failed to load data ({', '.join(failed)})", "error")
        self.failed = failed
        return failed

    def stats(self) -> Dict[str, int]:
        return {key: len(manager.records) for key, manager in self.managers.items()}
