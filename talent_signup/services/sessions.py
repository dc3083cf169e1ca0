import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from talent_signup.core.config import SESSION_TIMEOUT_MINUTES
from talent_signup.services.api_client import AuthSession
from talent_signup.wizard.controller import WizardController

logger = logging.getLogger(__name__)

class WizardSessionStore:
    """In-memory wizards and login sessions, keyed by chat user id."""
    def __init__(
        self,
        timeout_minutes: int = SESSION_TIMEOUT_MINUTES,
        factory: Callable[[], WizardController] = WizardController,
    ):
        self.timeout = timedelta(minutes=timeout_minutes)
        self.factory = factory
        self._wizards: Dict[int, WizardController] = {}
        self._auth: Dict[int, AuthSession] = {}
        self._last_activity: Dict[int, datetime] = {}

    def start(self, user_id: int) -> WizardController:
        """Fresh wizard; any earlier one is abandoned."""
        wizard = self.factory()
        self._wizards[user_id] = wizard
        self._last_activity[user_id] = datetime.now()
        logger.info(f"Started signup wizard for user {user_id}")
        return wizard

    def get(self, user_id: int) -> Optional[WizardController]:
        return self._wizards.get(user_id)

    def end(self, user_id: int) -> None:
        self._last_activity.pop(user_id, None)
        if self._wizards.pop(user_id, None) is not None:
            logger.info(f"Discarded signup wizard for user {user_id}")

    def set_auth(self, user_id: int, session: AuthSession) -> None:
        self._auth[user_id] = session

    def auth(self, user_id: int) -> Optional[AuthSession]:
        return self._auth.get(user_id)

    def clear_auth(self, user_id: int) -> bool:
        """Forget the user's bearer token; False when there was none."""
        return self._auth.pop(user_id, None) is not None

    def touch(self, user_id: int, now: Optional[datetime] = None) -> bool:
        """Record activity; returns True when an idle wizard was expired instead."""
        wizard = self._wizards.get(user_id)
        if wizard is None:
            return False
        now = now or datetime.now()
        last = self._last_activity.get(user_id)
        self._last_activity[user_id] = now
        if last and now - last > self.timeout and not (wizard.in_flight or wizard.attachments_in_flight):
            self.end(user_id)
            return True
        return False

wizard_sessions = WizardSessionStore()
