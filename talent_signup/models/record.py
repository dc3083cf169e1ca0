import logging
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

class ExperienceLevel(str, Enum):
    ENTRY = "entry"
    MID = "mid"
    SENIOR = "senior"
    EXECUTIVE = "executive"

class ContractType(str, Enum):
    FULL_TIME = "full-time"
    PART_TIME = "part-time"
    CONTRACT = "contract"
    FREELANCE = "freelance"

class TimeSlot(str, Enum):
    NINE_TO_FIVE = "9 AM - 5 PM"
    TEN_TO_SIX = "10 AM - 6 PM"
    ELEVEN_TO_SEVEN = "11 AM - 7 PM"
    FLEXIBLE = "Flexible"

class ContactRelation(str, Enum):
    MANAGER = "Manager"
    COLLEAGUE = "Colleague"
    CLIENT = "Client"
    MENTOR = "Mentor"
    OTHER = "Other"

WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
FILE_FIELDS = ("portfolio_file", "cv_file")
FLAG_FIELDS = ("ai_assessment_enabled", "openai_enabled", "ai_assistant_enabled")
BIRTH_DATE_PARTS = ("year", "month", "day")

# Fields that only hold in-progress input and are never submitted.
SCRATCH_FIELDS = ("new_contact", "birth_date_parts", "resolved_files")

class PendingFile(BaseModel):
    """Locally held file that has not been uploaded yet."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

class InterviewAvailability(BaseModel):
    time_slot: str = TimeSlot.NINE_TO_FIVE.value
    days: List[str] = Field(default_factory=list)

class NetworkContact(BaseModel):
    full_name: str = ""
    email: str = ""
    position: str = ""

    def is_complete(self) -> bool:
        return all(value.strip() for value in (self.full_name, self.email, self.position))

class StageRecord(BaseModel):
    """Everything the candidate has entered so far, across all stages.

    Every mutation is total: bad input is ignored (and logged) rather than
    raised, validation happens at the stage gate in the wizard controller.
    """
    # credentials
    full_name: str = ""
    date_of_birth: str = ""
    email: str = ""
    password: str = ""
    mobile_number: str = ""

    # professional overview
    about_me: str = ""
    profile_picture: str = ""
    ideal_job_industry: str = ""
    ideal_job_title: str = ""
    experience_level: str = ""
    contract_type: str = ""
    skills: List[str] = Field(default_factory=list)
    interview_availability: InterviewAvailability = Field(default_factory=InterviewAvailability)

    # portfolio
    portfolio_link: str = ""
    portfolio_file: Optional[PendingFile] = None

    # network
    network_contacts: List[NetworkContact] = Field(default_factory=list)

    # cv
    cv_file: Optional[PendingFile] = None

    # assistant flags
    ai_assessment_enabled: bool = False
    openai_enabled: bool = False
    ai_assistant_enabled: bool = False

    new_contact: NetworkContact = Field(default_factory=NetworkContact)
    birth_date_parts: Dict[str, int] = Field(default_factory=dict)
    resolved_files: Dict[str, str] = Field(default_factory=dict)

    def update(self, field: str, value: Any) -> None:
        """Set a single field by key; composites go through their own operations."""
        if field == "date_of_birth":
            self.set_birth_date(value)
        elif field in FILE_FIELDS:
            self.set_pending_file(field, value)
        elif field in FLAG_FIELDS:
            setattr(self, field, bool(value))
        elif field == "skills":
            self.set_skills(value)
        elif field == "network_contacts":
            self.set_contacts(value)
        elif field == "interview_availability":
            self.set_availability(value)
        elif field in type(self).model_fields and field not in SCRATCH_FIELDS:
            setattr(self, field, "" if value is None else str(value))
        else:
            logger.warning(f"Ignoring update of unknown field {field!r}")

    def set_skills(self, skills: Any) -> None:
        if not isinstance(skills, (list, tuple)):
            logger.warning(f"Ignoring skills that are not a list: {skills!r}")
            return
        self.skills = []
        for skill in skills:
            self.add_skill(str(skill))

    def set_contacts(self, contacts: Any) -> None:
        """Replace the committed contacts; incomplete or malformed entries are dropped."""
        if not isinstance(contacts, (list, tuple)):
            logger.warning(f"Ignoring contacts that are not a list: {contacts!r}")
            return
        committed = []
        for item in contacts:
            try:
                contact = NetworkContact.model_validate(item.model_dump() if isinstance(item, BaseModel) else item)
            except ValidationError:
                logger.warning(f"Dropping malformed contact {item!r}")
                continue
            if contact.is_complete():
                committed.append(contact)
        self.network_contacts = committed

    def set_availability(self, availability: Any) -> None:
        if isinstance(availability, BaseModel):
            availability = availability.model_dump()
        try:
            parsed = InterviewAvailability.model_validate(availability)
        except ValidationError:
            logger.warning(f"Ignoring malformed interview availability {availability!r}")
            return
        self.interview_availability = InterviewAvailability(time_slot=parsed.time_slot)
        for day in parsed.days:
            if day not in self.interview_availability.days:
                self.toggle_day(day)

    def add_skill(self, skill: str) -> bool:
        skill = (skill or "").strip()
        if not skill or skill in self.skills:
            return False
        self.skills.append(skill)
        return True

    def remove_skill(self, skill: str) -> bool:
        skill = (skill or "").strip()
        if skill not in self.skills:
            return False
        self.skills.remove(skill)
        return True

    def toggle_day(self, day: str) -> bool:
        if day not in WEEKDAYS:
            logger.warning(f"Ignoring unknown weekday {day!r}")
            return False
        days = self.interview_availability.days
        if day in days:
            days.remove(day)
        else:
            days.append(day)
        return True

    def set_time_slot(self, slot: str) -> None:
        self.interview_availability.time_slot = slot

    def update_new_contact(self, field: str, value: str) -> None:
        if field not in NetworkContact.model_fields:
            logger.warning(f"Ignoring unknown contact field {field!r}")
            return
        setattr(self.new_contact, field, value)

    def add_contact(self) -> bool:
        """Commit the scratch contact, only when all of its fields are filled."""
        if not self.new_contact.is_complete():
            return False
        self.network_contacts.append(self.new_contact.model_copy())
        self.new_contact = NetworkContact()
        return True

    def remove_contact(self, index: int) -> bool:
        if not 0 <= index < len(self.network_contacts):
            return False
        del self.network_contacts[index]
        return True

    def set_birth_date_part(self, part: str, value: Any) -> None:
        if part not in BIRTH_DATE_PARTS:
            logger.warning(f"Ignoring unknown birth date part {part!r}")
            return
        try:
            self.birth_date_parts[part] = int(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric birth date {part}: {value!r}")
            return
        self._compose_birth_date()

    def set_birth_date(self, value: Any) -> None:
        """Set the full birth date from a date or a YYYY-MM-DD string."""
        if isinstance(value, date):
            parsed = value
        else:
            try:
                parsed = date.fromisoformat(str(value).strip())
            except ValueError:
                logger.warning(f"Ignoring malformed birth date {value!r}")
                return
        self.birth_date_parts = {"year": parsed.year, "month": parsed.month, "day": parsed.day}
        self.date_of_birth = parsed.isoformat()

    def _compose_birth_date(self) -> None:
        if not all(part in self.birth_date_parts for part in BIRTH_DATE_PARTS):
            return
        try:
            composed = date(
                self.birth_date_parts["year"],
                self.birth_date_parts["month"],
                self.birth_date_parts["day"],
            )
        except ValueError:
            self.date_of_birth = ""
            return
        self.date_of_birth = composed.isoformat()

    def set_pending_file(self, field: str, file: Optional[PendingFile]) -> None:
        if field not in FILE_FIELDS:
            logger.warning(f"Ignoring file for unknown field {field!r}")
            return
        if file is None:
            self.clear_file(field)
            return
        if not isinstance(file, PendingFile):
            logger.warning(f"Ignoring non-file value for {field!r}")
            return
        if field in self.resolved_files:
            logger.info(f"Dropping {file.filename} for {field}: already stored at {self.resolved_files[field]}")
            return
        setattr(self, field, file)

    def clear_file(self, field: str) -> None:
        if field not in FILE_FIELDS:
            return
        setattr(self, field, None)
        self.resolved_files.pop(field, None)

    def resolve_file(self, field: str, reference: str) -> None:
        """Record the durable reference; the pending bytes are dropped."""
        if field not in FILE_FIELDS:
            logger.warning(f"Ignoring reference for unknown field {field!r}")
            return
        self.resolved_files[field] = reference
        setattr(self, field, None)

    def pending_file(self, field: str) -> Optional[PendingFile]:
        return getattr(self, field, None) if field in FILE_FIELDS else None

    def file_reference(self, field: str) -> Optional[str]:
        return self.resolved_files.get(field)

    def reset(self) -> None:
        defaults = StageRecord()
        for name in type(self).model_fields:
            setattr(self, name, getattr(defaults, name))
