import logging
from html import escape
from typing import Any, Dict

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from talent_signup.core.messages import Messages
from talent_signup.models.record import PendingFile
from talent_signup.services.api_client import APIHTTPError, APIRequestError, auth_api_client
from talent_signup.services.attachments import AttachmentPipeline
from talent_signup.services.sessions import wizard_sessions
from talent_signup.states.auth import AttachmentFSM, LoginFSM
from talent_signup.utils.formatters import format_profile

router = Router()
logger = logging.getLogger(__name__)

attachment_pipeline = AttachmentPipeline()

@router.message(Command("login"))
async def cmd_login(message: Message, state: FSMContext) -> None:
    """Ask for login credentials."""
    await state.clear()
    await state.set_state(LoginFSM.entering_email)
    await message.answer(Messages.Auth.ENTER_EMAIL)

@router.message(LoginFSM.entering_email, F.text, ~F.text.startswith("/"))
async def handle_login_email(message: Message, state: FSMContext) -> None:
    await state.update_data(login_email=message.text.strip())
    await state.set_state(LoginFSM.entering_password)
    await message.answer(Messages.Auth.ENTER_PASSWORD)

@router.message(LoginFSM.entering_password, F.text)
async def handle_login_password(message: Message, state: FSMContext) -> None:
    data: Dict[str, Any] = await state.get_data()
    email: str = data.get('login_email', '')
    password = message.text
    try:
        await message.delete()
    except TelegramBadRequest as e:
        logger.warning(f"Could not delete password message: {e}")
    await state.clear()

    try:
        session = await auth_api_client.login(email, password, user_type="talent")
    except APIHTTPError as e:
        logger.info(f"Login rejected for user {message.from_user.id}: {e.status_code}")
        await message.answer(e.detail or Messages.Auth.LOGIN_FAILED)
        return
    except APIRequestError as e:
        logger.error(f"Login failed for user {message.from_user.id}: {e}")
        await message.answer(Messages.Common.NETWORK_ERROR)
        return

    wizard_sessions.set_auth(message.from_user.id, session)
    await message.answer(Messages.Auth.LOGIN_OK.format(name=session.user.get("full_name") or email))

@router.message(Command("cv"))
async def cmd_cv(message: Message, state: FSMContext) -> None:
    """Attach a CV to an existing account."""
    if wizard_sessions.auth(message.from_user.id) is None:
        await message.answer(Messages.Auth.LOGIN_REQUIRED)
        return
    await state.set_state(AttachmentFSM.uploading_cv)
    await message.answer(Messages.Upload.SEND_CV)

@router.message(AttachmentFSM.uploading_cv, F.document)
async def handle_cv_upload(message: Message, state: FSMContext) -> None:
    """Signed upload of the CV, then link it with the user's token."""
    session = wizard_sessions.auth(message.from_user.id)
    if session is None:
        await state.clear()
        await message.answer(Messages.Auth.LOGIN_REQUIRED)
        return

    document = message.document
    max_bytes = attachment_pipeline.uploader.max_bytes
    if document.file_size and document.file_size > max_bytes:
        await message.answer(Messages.Upload.FILE_TOO_LARGE.format(max_mb=max_bytes // (1024 * 1024)))
        return

    await message.answer(Messages.Upload.PROCESSING)
    file_info = await message.bot.get_file(document.file_id)
    file_data = await message.bot.download_file(file_info.file_path)
    pending = PendingFile(
        filename=document.file_name or "cv",
        content=file_data.read(),
        content_type=document.mime_type or "application/octet-stream",
    )
    outcome = await attachment_pipeline.run("cv_file", pending, bearer_token=session.access_token)
    if not outcome.ok:
        logger.info(f"CV attachment for user {message.from_user.id} failed at {outcome.failed_stage}")
        await message.answer(outcome.error)
        return
    await state.clear()
    await message.answer(Messages.Upload.SAVED.format(url=outcome.reference))

@router.message(Command("me"))
async def cmd_me(message: Message, state: FSMContext) -> None:
    """Show the logged-in user's profile."""
    user_id = message.from_user.id
    session = wizard_sessions.auth(user_id)
    if session is None:
        await message.answer(Messages.Auth.LOGIN_REQUIRED)
        return
    try:
        profile = await auth_api_client.me(session.access_token)
    except APIHTTPError as e:
        logger.info(f"Profile request for user {user_id} rejected: {e.status_code}")
        if e.status_code == 401:
            wizard_sessions.clear_auth(user_id)
            await message.answer(Messages.Auth.LOGIN_REQUIRED)
            return
        await message.answer(Messages.Auth.PROFILE_FAILED.format(error=escape(e.detail or str(e.status_code))))
        return
    except APIRequestError as e:
        logger.error(f"Profile request for user {user_id} failed: {e}")
        await message.answer(Messages.Common.NETWORK_ERROR)
        return
    await message.answer(format_profile(profile, session.user_type))

@router.message(Command("logout"))
async def cmd_logout(message: Message, state: FSMContext) -> None:
    """Forget the stored token."""
    user_id = message.from_user.id
    if wizard_sessions.clear_auth(user_id):
        logger.info(f"User {user_id} logged out")
    await state.clear()
    await message.answer(Messages.Auth.LOGGED_OUT)
