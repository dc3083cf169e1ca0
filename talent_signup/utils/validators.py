import logging
import re
from datetime import date
from typing import List, Optional
from urllib.parse import urlparse

import phonenumbers
from pydantic import BaseModel, ValidationError, field_validator

from talent_signup.models.record import (
    WEEKDAYS,
    ContactRelation,
    ContractType,
    ExperienceLevel,
    StageRecord,
    TimeSlot,
)

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6

class Credentials(BaseModel):
    """Identity and credentials, required before submission."""
    full_name: str
    date_of_birth: str
    email: str
    password: str
    mobile_number: str

    @field_validator('full_name')
    @classmethod
    def check_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Full name is required.")
        return v

    @field_validator('date_of_birth')
    @classmethod
    def check_birth_date(cls, v: str) -> str:
        if not v:
            raise ValueError("Birth date is required.")
        try:
            born = date.fromisoformat(v)
        except ValueError:
            raise ValueError("Birth date must be a valid date.")
        if born > date.today():
            raise ValueError("Birth date cannot be in the future.")
        return v

    @field_validator('email')
    @classmethod
    def check_email(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Email address is required.")
        if not is_valid_email(v):
            raise ValueError("Invalid email format.")
        return v

    @field_validator('password')
    @classmethod
    def check_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
        return v

    @field_validator('mobile_number')
    @classmethod
    def check_phone(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Mobile number is required.")
        if not is_valid_phone(v):
            raise ValueError("Invalid mobile number, use the international format (+44...).")
        return v

def error_messages(error: ValidationError) -> List[str]:
    """Human-readable messages from a pydantic ValidationError."""
    messages = []
    for err in error.errors():
        cause = (err.get("ctx") or {}).get("error")
        messages.append(str(cause) if cause else err["msg"])
    return messages

def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email.strip()))

def is_valid_phone(number: str) -> bool:
    try:
        parsed = phonenumbers.parse(number, None)
    except phonenumbers.NumberParseException:
        return False
    return phonenumbers.is_valid_number(parsed)

def is_valid_url(url: str) -> bool:
    """URL validity check."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except ValueError:
        return False

def _check_choice(value: str, choices, label: str) -> Optional[str]:
    if value and value not in {c.value for c in choices}:
        return f"Unknown {label}: {value}."
    return None

def validate_credentials(record: StageRecord) -> List[str]:
    try:
        Credentials(
            full_name=record.full_name,
            date_of_birth=record.date_of_birth,
            email=record.email,
            password=record.password,
            mobile_number=record.mobile_number,
        )
    except ValidationError as e:
        return error_messages(e)
    return []

def validate_overview(record: StageRecord) -> List[str]:
    errors = [
        _check_choice(record.experience_level, ExperienceLevel, "experience level"),
        _check_choice(record.contract_type, ContractType, "contract type"),
        _check_choice(record.interview_availability.time_slot, TimeSlot, "time slot"),
    ]
    unknown_days = [d for d in record.interview_availability.days if d not in WEEKDAYS]
    if unknown_days:
        errors.append(f"Unknown interview days: {', '.join(unknown_days)}.")
    if record.profile_picture and not is_valid_url(record.profile_picture):
        errors.append("Profile picture must be a link.")
    return [e for e in errors if e]

def validate_portfolio(record: StageRecord) -> List[str]:
    if record.portfolio_link and not is_valid_url(record.portfolio_link):
        return [f"Invalid portfolio link: {record.portfolio_link}"]
    return []

def validate_network(record: StageRecord) -> List[str]:
    errors = []
    for contact in record.network_contacts:
        if not is_valid_email(contact.email):
            errors.append(f"Invalid email for contact {contact.full_name}.")
        relation_error = _check_choice(contact.position, ContactRelation, "relation")
        if relation_error:
            errors.append(relation_error)
    return errors
