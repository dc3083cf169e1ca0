from typing import List, Literal

from aiogram.filters.callback_data import CallbackData
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from talent_signup.models.record import (
    WEEKDAYS,
    ContactRelation,
    ContractType,
    ExperienceLevel,
    TimeSlot,
)
from talent_signup.wizard.controller import AttachmentStrategy, WizardController
from talent_signup.wizard.stages import FIELD_LABELS

class NavCallback(CallbackData, prefix="nav"):
    """Callback for stage navigation."""
    action: Literal["next", "back", "cancel"]

class FieldCallback(CallbackData, prefix="field"):
    """Callback for choosing a text field to fill."""
    field: str

class OptionCallback(CallbackData, prefix="opt"):
    """Callback for enum choices."""
    field: str
    value: str

class DayCallback(CallbackData, prefix="day"):
    day: str

class SkillCallback(CallbackData, prefix="skill"):
    action: Literal["add", "remove"]
    index: int = 0

class ContactCallback(CallbackData, prefix="contact"):
    """Callback for the new-contact form and contact removal."""
    action: Literal["field", "add", "remove"]
    value: str = ""

class FlagCallback(CallbackData, prefix="flag"):
    field: str

class FileCallback(CallbackData, prefix="file"):
    action: Literal["select", "remove", "upload"]
    field: str

def _field_button(field: str) -> InlineKeyboardButton:
    return InlineKeyboardButton(text=f"✏️ {FIELD_LABELS[field]}", callback_data=FieldCallback(field=field).pack())

def _option_row(field: str, values: List[str], selected: str) -> List[InlineKeyboardButton]:
    return [
        InlineKeyboardButton(
            text=f"{'✅ ' if v == selected else ''}{v}",
            callback_data=OptionCallback(field=field, value=v).pack(),
        )
        for v in values
    ]

def _file_rows(wizard: WizardController, field: str) -> List[List[InlineKeyboardButton]]:
    record = wizard.record
    rows = []
    if not record.file_reference(field):
        rows.append([InlineKeyboardButton(text="📎 Upload file", callback_data=FileCallback(action="select", field=field).pack())])
    if record.pending_file(field) or record.file_reference(field):
        rows.append([InlineKeyboardButton(text="🗑️ Remove file", callback_data=FileCallback(action="remove", field=field).pack())])
    if record.pending_file(field) and wizard.strategy_for(field) == AttachmentStrategy.SIGNED_UPLOAD:
        rows.append([InlineKeyboardButton(text="☁️ Upload now", callback_data=FileCallback(action="upload", field=field).pack())])
    return rows

def get_navigation_row(wizard: WizardController) -> List[InlineKeyboardButton]:
    row = []
    if not wizard.is_first:
        row.append(InlineKeyboardButton(text="⬅️ Back", callback_data=NavCallback(action="back").pack()))
    row.append(InlineKeyboardButton(text="❌ Cancel", callback_data=NavCallback(action="cancel").pack()))
    next_text = "🚀 Create account" if wizard.is_terminal else "Next ➡️"
    row.append(InlineKeyboardButton(text=next_text, callback_data=NavCallback(action="next").pack()))
    return row

def get_stage_keyboard(wizard: WizardController) -> InlineKeyboardMarkup:
    """Keyboard for the wizard's current stage."""
    record = wizard.record
    key = wizard.stage.key
    keyboard: List[List[InlineKeyboardButton]] = []

    if key == "credentials":
        keyboard += [
            [_field_button("full_name"), _field_button("date_of_birth")],
            [_field_button("email"), _field_button("password")],
            [_field_button("mobile_number")],
        ]
    elif key == "overview":
        keyboard += [
            [_field_button("about_me"), _field_button("profile_picture")],
            [_field_button("ideal_job_industry"), _field_button("ideal_job_title")],
            _option_row("experience_level", [e.value for e in ExperienceLevel], record.experience_level),
            _option_row("contract_type", [c.value for c in ContractType], record.contract_type),
            [InlineKeyboardButton(text="➕ Add skill", callback_data=SkillCallback(action="add").pack())],
        ]
        for index, skill in enumerate(record.skills):
            keyboard.append([
                InlineKeyboardButton(text=f"✖️ {skill}", callback_data=SkillCallback(action="remove", index=index).pack())
            ])
        slots = [s.value for s in TimeSlot]
        keyboard.append(_option_row("time_slot", slots[:2], record.interview_availability.time_slot))
        keyboard.append(_option_row("time_slot", slots[2:], record.interview_availability.time_slot))
        keyboard.append([
            InlineKeyboardButton(
                text=f"{'✅' if day in record.interview_availability.days else ''}{day[0]}",
                callback_data=DayCallback(day=day).pack(),
            )
            for day in WEEKDAYS
        ])
    elif key == "portfolio":
        keyboard.append([_field_button("portfolio_link")])
        keyboard += _file_rows(wizard, "portfolio_file")
    elif key == "network":
        keyboard.append([
            InlineKeyboardButton(text="👤 Name", callback_data=ContactCallback(action="field", value="full_name").pack()),
            InlineKeyboardButton(text="📧 Email", callback_data=ContactCallback(action="field", value="email").pack()),
        ])
        keyboard.append(_option_row("position", [r.value for r in ContactRelation], record.new_contact.position))
        keyboard.append([InlineKeyboardButton(text="➕ Add contact", callback_data=ContactCallback(action="add").pack())])
        for index, contact in enumerate(record.network_contacts):
            keyboard.append([
                InlineKeyboardButton(
                    text=f"🗑️ {contact.full_name}",
                    callback_data=ContactCallback(action="remove", value=str(index)).pack(),
                )
            ])
    elif key == "cv":
        keyboard += _file_rows(wizard, "cv_file")
    elif key == "assistant":
        for field in ("ai_assessment_enabled", "openai_enabled", "ai_assistant_enabled"):
            mark = "✅" if getattr(record, field) else "⬜"
            keyboard.append([
                InlineKeyboardButton(text=f"{mark} {FIELD_LABELS[field]}", callback_data=FlagCallback(field=field).pack())
            ])

    keyboard.append(get_navigation_row(wizard))
    return InlineKeyboardMarkup(inline_keyboard=keyboard)
