from aiogram import Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message
from talent_signup.core.messages import Messages
from talent_signup.services.sessions import wizard_sessions
import logging

router = Router()
logger = logging.getLogger(__name__)

@router.message(Command("start"))
async def cmd_start(message: Message, state: FSMContext) -> None:
    """Handle /start."""
    await state.clear()
    logger.info(f"User {message.from_user.id} started /start")
    await message.answer(Messages.Common.START)

@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext) -> None:
    """Abandon whatever is in progress; nothing is persisted."""
    logger.info(f"User {message.from_user.id} cancelled")
    wizard_sessions.end(message.from_user.id)
    await state.clear()
    await message.answer(Messages.Common.CANCELLED)
