import logging
from datetime import date
from typing import Any, Dict, Optional

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from talent_signup.core.messages import Messages
from talent_signup.keyboards.inline import (
    ContactCallback,
    DayCallback,
    FieldCallback,
    FileCallback,
    FlagCallback,
    NavCallback,
    OptionCallback,
    SkillCallback,
    get_stage_keyboard,
)
from talent_signup.models.record import FLAG_FIELDS
from talent_signup.services.api_client import APIHTTPError, APIRequestError, auth_api_client
from talent_signup.services.sessions import wizard_sessions
from talent_signup.states.signup import SignupFSM
from talent_signup.utils.formatters import format_stage
from talent_signup.wizard.controller import WizardController
from talent_signup.wizard.stages import FIELD_LABELS, FILE_FORMATS, OPTION_CHOICES

router = Router()
logger = logging.getLogger(__name__)

async def _render(target: Message, wizard: WizardController, edit: bool = False) -> None:
    """Show the current stage, editing the message in place when possible."""
    text = format_stage(wizard)
    keyboard = get_stage_keyboard(wizard)
    if edit:
        try:
            await target.edit_text(text, reply_markup=keyboard)
            return
        except TelegramBadRequest as e:
            if "message is not modified" in str(e):
                return
            logger.warning(f"Could not edit stage message: {e}")
    await target.answer(text, reply_markup=keyboard)

async def _get_wizard(event: Message | CallbackQuery, state: FSMContext, editing: bool = True) -> Optional[WizardController]:
    """The user's wizard; None (and the user is told why) when there is none or it is submitting."""
    wizard = wizard_sessions.get(event.from_user.id)
    if wizard is None:
        await state.clear()
        if isinstance(event, CallbackQuery):
            await event.answer(Messages.Common.NO_ACTIVE_SIGNUP, show_alert=True)
        else:
            await event.answer(Messages.Common.NO_ACTIVE_SIGNUP)
        return None
    if editing and wizard.in_flight:
        await event.answer(Messages.Signup.FINALIZE_BUSY)
        return None
    return wizard

async def _back_to_stage(message: Message, state: FSMContext, wizard: WizardController) -> None:
    await state.set_state(SignupFSM.reviewing_stage)
    await _render(message, wizard)

@router.message(Command("signup"))
async def cmd_signup(message: Message, state: FSMContext) -> None:
    """Start a new signup wizard."""
    await state.clear()
    wizard = wizard_sessions.start(message.from_user.id)
    await state.set_state(SignupFSM.reviewing_stage)
    await _render(message, wizard)

@router.message(Command("skip"), SignupFSM.uploading_file)
@router.message(Command("skip"), SignupFSM.entering_field)
@router.message(Command("skip"), SignupFSM.entering_skill)
@router.message(Command("skip"), SignupFSM.entering_contact)
async def handle_skip(message: Message, state: FSMContext) -> None:
    """Leave the current input without changes."""
    wizard = await _get_wizard(message, state)
    if wizard is None:
        return
    await _back_to_stage(message, state, wizard)

@router.callback_query(NavCallback.filter())
async def handle_navigation(callback: CallbackQuery, callback_data: NavCallback, state: FSMContext) -> None:
    """Back / Next / Create account / Cancel."""
    wizard = await _get_wizard(callback, state, editing=False)
    if wizard is None:
        return
    user_id = callback.from_user.id
    logger.info(f"User {user_id} navigation: {callback_data.action} on stage {wizard.stage.key}")

    if callback_data.action == "cancel":
        wizard_sessions.end(user_id)
        await state.clear()
        await callback.message.edit_text(Messages.Common.CANCELLED)
        await callback.answer()
        return

    if callback_data.action == "back":
        wizard.retreat()
        await state.set_state(SignupFSM.reviewing_stage)
        await _render(callback.message, wizard, edit=True)
        await callback.answer()
        return

    if wizard.is_terminal:
        await _finalize(callback, state, wizard)
        return

    await wizard.advance()
    await state.set_state(SignupFSM.reviewing_stage)
    await _render(callback.message, wizard, edit=True)
    await callback.answer()

async def _finalize(callback: CallbackQuery, state: FSMContext, wizard: WizardController) -> None:
    if wizard.in_flight:
        await callback.answer(Messages.Signup.FINALIZE_BUSY)
        return
    await callback.answer(Messages.Signup.FINALIZING)
    user_id = callback.from_user.id
    email, password = wizard.record.email, wizard.record.password

    async def on_complete(result: Dict[str, Any]) -> None:
        wizard_sessions.end(user_id)
        await state.clear()
        await callback.message.edit_text(result.get("message") or Messages.Signup.COMPLETE)
        try:
            session = await auth_api_client.login(email, password, user_type="talent")
        except APIHTTPError as e:
            await callback.message.answer(Messages.Signup.COMPLETE_LOGIN_FAILED.format(error=e.detail or e.status_code))
            return
        except APIRequestError as e:
            logger.error(f"Login after signup failed for user {user_id}: {e}")
            await callback.message.answer(Messages.Signup.COMPLETE_LOGIN_FAILED.format(error=Messages.Common.NETWORK_ERROR))
            return
        wizard_sessions.set_auth(user_id, session)
        name = session.user.get("full_name") or email
        await callback.message.answer(Messages.Auth.LOGIN_OK.format(name=name))

    if not await wizard.finalize(on_complete=on_complete):
        logger.info(f"Signup for user {user_id} not completed: {wizard.last_error}")
        await _render(callback.message, wizard, edit=True)

@router.callback_query(FieldCallback.filter())
async def handle_field_choice(callback: CallbackQuery, callback_data: FieldCallback, state: FSMContext) -> None:
    """Ask for a free-text field."""
    if await _get_wizard(callback, state) is None:
        return
    await state.update_data(current_field=callback_data.field)
    await state.set_state(SignupFSM.entering_field)
    if callback_data.field == "date_of_birth":
        await callback.message.answer(Messages.Signup.BIRTH_DATE_PROMPT)
    else:
        await callback.message.answer(Messages.Signup.ENTER_FIELD.format(label=FIELD_LABELS[callback_data.field].lower()))
    await callback.answer()

@router.message(SignupFSM.entering_field, F.text, ~F.text.startswith("/"))
async def handle_field_input(message: Message, state: FSMContext) -> None:
    wizard = await _get_wizard(message, state)
    if wizard is None:
        return
    data: Dict[str, Any] = await state.get_data()
    field: Optional[str] = data.get('current_field')
    if field is None:
        await message.answer(Messages.Common.INVALID_INPUT)
        await _back_to_stage(message, state, wizard)
        return

    if field == "password":
        wizard.record.update(field, message.text)
        try:
            await message.delete()
        except TelegramBadRequest as e:
            logger.warning(f"Could not delete password message: {e}")
    elif field == "date_of_birth":
        try:
            born = date.fromisoformat(message.text.strip())
        except ValueError:
            await message.answer(Messages.Common.INVALID_INPUT)
            await message.answer(Messages.Signup.BIRTH_DATE_PROMPT)
            return
        wizard.record.update(field, born)
    else:
        wizard.record.update(field, message.text.strip())
    await state.update_data(current_field=None)
    await _back_to_stage(message, state, wizard)

@router.callback_query(OptionCallback.filter())
async def handle_option(callback: CallbackQuery, callback_data: OptionCallback, state: FSMContext) -> None:
    """Enum choices: experience, contract type, time slot, contact relation."""
    wizard = await _get_wizard(callback, state)
    if wizard is None:
        return
    field, value = callback_data.field, callback_data.value
    if value not in OPTION_CHOICES.get(field, ()):
        logger.warning(f"Rejected option {field}={value!r} from user {callback.from_user.id}")
        await callback.answer(Messages.Common.INVALID_INPUT)
        return
    if field == "time_slot":
        wizard.record.set_time_slot(value)
    elif field == "position":
        wizard.record.update_new_contact("position", value)
    else:
        wizard.record.update(field, value)
    await _render(callback.message, wizard, edit=True)
    await callback.answer()

@router.callback_query(DayCallback.filter())
async def handle_day(callback: CallbackQuery, callback_data: DayCallback, state: FSMContext) -> None:
    wizard = await _get_wizard(callback, state)
    if wizard is None:
        return
    wizard.record.toggle_day(callback_data.day)
    await _render(callback.message, wizard, edit=True)
    await callback.answer()

@router.callback_query(SkillCallback.filter())
async def handle_skill(callback: CallbackQuery, callback_data: SkillCallback, state: FSMContext) -> None:
    wizard = await _get_wizard(callback, state)
    if wizard is None:
        return
    if callback_data.action == "add":
        await state.set_state(SignupFSM.entering_skill)
        await callback.message.answer(Messages.Signup.SKILL_PROMPT)
    else:
        skills = wizard.record.skills
        if 0 <= callback_data.index < len(skills):
            wizard.record.remove_skill(skills[callback_data.index])
        await _render(callback.message, wizard, edit=True)
    await callback.answer()

@router.message(SignupFSM.entering_skill, F.text, ~F.text.startswith("/"))
async def handle_skill_input(message: Message, state: FSMContext) -> None:
    wizard = await _get_wizard(message, state)
    if wizard is None:
        return
    wizard.record.add_skill(message.text)
    await _back_to_stage(message, state, wizard)

@router.callback_query(ContactCallback.filter())
async def handle_contact(callback: CallbackQuery, callback_data: ContactCallback, state: FSMContext) -> None:
    """New-contact form: fill a field, commit, or remove a committed contact."""
    wizard = await _get_wizard(callback, state)
    if wizard is None:
        return
    if callback_data.action == "field":
        await state.update_data(contact_field=callback_data.value)
        await state.set_state(SignupFSM.entering_contact)
        label = "full name" if callback_data.value == "full_name" else callback_data.value
        await callback.message.answer(Messages.Signup.CONTACT_PROMPT.format(label=label))
        await callback.answer()
        return

    if callback_data.action == "add":
        name = wizard.record.new_contact.full_name
        if wizard.record.add_contact():
            await callback.answer(Messages.Signup.CONTACT_ADDED.format(name=name))
        else:
            await callback.answer(Messages.Signup.CONTACT_INCOMPLETE, show_alert=True)
    else:
        try:
            wizard.record.remove_contact(int(callback_data.value))
        except ValueError:
            logger.warning(f"Bad contact index {callback_data.value!r} from user {callback.from_user.id}")
        await callback.answer()
    await _render(callback.message, wizard, edit=True)

@router.message(SignupFSM.entering_contact, F.text, ~F.text.startswith("/"))
async def handle_contact_input(message: Message, state: FSMContext) -> None:
    wizard = await _get_wizard(message, state)
    if wizard is None:
        return
    data: Dict[str, Any] = await state.get_data()
    contact_field: Optional[str] = data.get('contact_field')
    if contact_field:
        wizard.record.update_new_contact(contact_field, message.text.strip())
    await state.update_data(contact_field=None)
    await _back_to_stage(message, state, wizard)

@router.callback_query(FlagCallback.filter())
async def handle_flag(callback: CallbackQuery, callback_data: FlagCallback, state: FSMContext) -> None:
    wizard = await _get_wizard(callback, state)
    if wizard is None:
        return
    if callback_data.field not in FLAG_FIELDS:
        logger.warning(f"Rejected flag {callback_data.field!r} from user {callback.from_user.id}")
        await callback.answer(Messages.Common.INVALID_INPUT)
        return
    wizard.record.update(callback_data.field, not getattr(wizard.record, callback_data.field))
    await _render(callback.message, wizard, edit=True)
    await callback.answer()

@router.callback_query(FileCallback.filter())
async def handle_file_action(callback: CallbackQuery, callback_data: FileCallback, state: FSMContext) -> None:
    """Select, remove or eagerly upload a stage file."""
    wizard = await _get_wizard(callback, state)
    if wizard is None:
        return
    field = callback_data.field
    if callback_data.action == "select":
        await state.update_data(file_field=field)
        await state.set_state(SignupFSM.uploading_file)
        formats = ", ".join(f.upper() for f in FILE_FORMATS.get(field, ()))
        await callback.message.answer(Messages.Upload.SEND_FILE.format(formats=formats))
        await callback.answer()
        return

    if callback_data.action == "remove":
        wizard.remove_file(field)
        await callback.answer(Messages.Upload.FILE_REMOVED)
    else:
        await callback.answer(Messages.Upload.PROCESSING)
        outcome = await wizard.attach(field)
        logger.info(f"Eager upload of {field} for user {callback.from_user.id}: ok={outcome.ok} stage={outcome.failed_stage}")
    await _render(callback.message, wizard, edit=True)

@router.message(SignupFSM.uploading_file, F.document)
async def handle_file_upload(message: Message, state: FSMContext) -> None:
    wizard = await _get_wizard(message, state)
    if wizard is None:
        return
    data: Dict[str, Any] = await state.get_data()
    field: Optional[str] = data.get('file_field')
    document = message.document
    if field is None:
        await _back_to_stage(message, state, wizard)
        return

    if document.file_size and document.file_size > wizard.max_file_bytes:
        await message.answer(Messages.Upload.FILE_TOO_LARGE.format(max_mb=wizard.max_file_bytes // (1024 * 1024)))
        return
    file_info = await message.bot.get_file(document.file_id)
    file_data = await message.bot.download_file(file_info.file_path)
    content_type = document.mime_type or "application/octet-stream"
    if not wizard.select_file(field, document.file_name or "document", file_data.read(), content_type):
        await message.answer(wizard.last_error)
        return
    await message.answer(Messages.Upload.FILE_SELECTED.format(name=document.file_name))
    await state.update_data(file_field=None)
    await _back_to_stage(message, state, wizard)
