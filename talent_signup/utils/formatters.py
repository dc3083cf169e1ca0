from html import escape
from typing import Any, Dict, List

from talent_signup.core.messages import Messages
from talent_signup.wizard.controller import WizardController
from talent_signup.wizard.stages import FIELD_LABELS

NOT_SET = "<i>not set</i>"

def format_value(field: str, value: Any) -> str:
    """Render one field value for display."""
    if field == "password":
        return "•" * len(value) if value else NOT_SET
    if isinstance(value, bool):
        return "On" if value else "Off"
    if field == "skills":
        return escape(", ".join(value)) if value else NOT_SET
    if field == "interview_availability":
        days = ", ".join(value.days) if value.days else "no days"
        return f"{escape(value.time_slot)} ({days})"
    if field == "network_contacts":
        if not value:
            return NOT_SET
        return "".join(
            f"\n  {i}. {escape(c.full_name)} ({escape(c.position)}), {escape(c.email)}"
            for i, c in enumerate(value, start=1)
        )
    if value is None or value == "":
        return NOT_SET
    return escape(str(value))

def format_stage(wizard: WizardController) -> str:
    """Current stage header, its values and the last error."""
    stage = wizard.stage
    lines: List[str] = [
        Messages.Signup.STAGE_HEADER.format(number=wizard.stage_index + 1, total=wizard.total, title=stage.title),
        "",
    ]
    for field, value in wizard.current_values().items():
        lines.append(f"<b>{FIELD_LABELS.get(field, field)}:</b> {format_value(field, value)}")

    if stage.key == "network":
        draft = wizard.record.new_contact
        if any((draft.full_name, draft.email, draft.position)):
            lines.append(
                f"\n<i>New contact:</i> {escape(draft.full_name) or '…'} / "
                f"{escape(draft.email) or '…'} / {escape(draft.position) or '…'}"
            )

    if wizard.last_error:
        lines.append(f"\n❌ {escape(wizard.last_error)}")
    return "\n".join(lines)

def format_profile(profile: Dict[str, Any], user_type: str = "talent") -> str:
    """Profile card for /me."""
    user = profile.get("user") if isinstance(profile.get("user"), dict) else profile
    text = Messages.Auth.PROFILE.format(
        name=escape(str(user.get("full_name") or "Unknown")),
        email=escape(str(user.get("email") or "")),
        user_type=escape(str(profile.get("user_type") or user_type)),
    )
    skills = user.get("skills")
    if isinstance(skills, list) and skills:
        text += f"\n<b>{FIELD_LABELS['skills']}:</b> {format_value('skills', [str(s) for s in skills])}"
    if user.get("experience_level"):
        text += f"\n<b>{FIELD_LABELS['experience_level']}:</b> {escape(str(user['experience_level']))}"
    return text
