import logging
from typing import Any, Awaitable, Callable, Dict, Optional
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Message, CallbackQuery
from aiogram.fsm.context import FSMContext
from talent_signup.core.messages import Messages

logger = logging.getLogger(__name__)

class CustomFormatter(logging.Formatter):
    """Formatter that always has a user_id."""
    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, 'user_id'):
            record.user_id = 'system'
        return super().format(record)

class LoggingMiddleware(BaseMiddleware):
    """Logs messages and callbacks with the user id."""
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user = event.from_user if hasattr(event, 'from_user') else None
        user_id = user.id if user else 'unknown'
        data['user_id'] = user_id
        state: Optional[FSMContext] = data.get('state')

        try:
            if isinstance(event, Message):
                if event.document:
                    text = f"document {event.document.file_name} ({event.document.file_size} bytes)"
                else:
                    text = "<text>" if await _is_secret_input(state) else (event.text or event.caption or "Non-text message")
                logger.info(f"Message from user {user_id}: {text}", extra={'user_id': user_id})
            elif isinstance(event, CallbackQuery):
                logger.info(f"Callback from user {user_id}: {event.data}", extra={'user_id': user_id})
            else:
                logger.info(f"Event from user {user_id}: {type(event)}", extra={'user_id': user_id})

            return await handler(event, data)
        except Exception as e:
            logger.error(f"Error handling event for user {user_id}: {e}", exc_info=True, extra={'user_id': user_id})
            if hasattr(event, 'answer'):
                await event.answer(Messages.Common.INTERNAL_ERROR)
            raise

async def _is_secret_input(state: Optional[FSMContext]) -> bool:
    """Password entry must not reach the logs."""
    if state is None:
        return False
    current = await state.get_state()
    if current is None:
        return False
    if current.endswith("entering_password"):
        return True
    data = await state.get_data()
    return current.endswith("entering_field") and data.get('current_field') == 'password'
