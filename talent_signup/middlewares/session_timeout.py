import logging
from typing import Any, Awaitable, Callable, Dict, Optional
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from aiogram.fsm.context import FSMContext
from talent_signup.core.messages import Messages
from talent_signup.services.sessions import WizardSessionStore, wizard_sessions

logger = logging.getLogger(__name__)

class SessionTimeoutMiddleware(BaseMiddleware):
    """Drops signup wizards idle for longer than the session timeout."""
    def __init__(self, sessions: WizardSessionStore = wizard_sessions):
        self.sessions = sessions

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user = getattr(event, 'from_user', None)
        if user is not None and self.sessions.touch(user.id):
            state: Optional[FSMContext] = data.get('state')
            if state:
                await state.clear()
            logger.info(f"Expired signup wizard for user {user.id} due to inactivity")
            await event.answer(Messages.Common.SESSION_TIMEOUT)
            return None
        return await handler(event, data)
