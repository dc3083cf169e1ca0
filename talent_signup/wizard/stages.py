from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from talent_signup.models.record import (
    FLAG_FIELDS,
    ContactRelation,
    ContractType,
    ExperienceLevel,
    StageRecord,
    TimeSlot,
)
from talent_signup.utils.validators import (
    validate_credentials,
    validate_network,
    validate_overview,
    validate_portfolio,
)

class Stage(NamedTuple):
    key: str
    title: str
    fields: Tuple[str, ...]
    validator: Optional[Callable[[StageRecord], List[str]]] = None

STAGES: Tuple[Stage, ...] = (
    Stage(
        "credentials",
        "Personal & Credentials",
        ("full_name", "date_of_birth", "email", "password", "mobile_number"),
        validate_credentials,
    ),
    Stage(
        "overview",
        "Professional Overview",
        (
            "about_me", "profile_picture", "ideal_job_industry", "ideal_job_title",
            "experience_level", "contract_type", "skills", "interview_availability",
        ),
        validate_overview,
    ),
    Stage("portfolio", "Portfolio Section", ("portfolio_link", "portfolio_file"), validate_portfolio),
    Stage("network", "Professional Network", ("network_contacts",), validate_network),
    Stage("cv", "Personal CV", ("cv_file",)),
    Stage("assistant", "AI Recruitment Assistant", FLAG_FIELDS),
)

FIELD_LABELS: Dict[str, str] = {
    "full_name": "Full name",
    "date_of_birth": "Birth date",
    "email": "Email address",
    "password": "Password",
    "mobile_number": "Mobile number",
    "about_me": "About me",
    "profile_picture": "Profile picture link",
    "ideal_job_industry": "Ideal job industry",
    "ideal_job_title": "Ideal job title",
    "experience_level": "Experience level",
    "contract_type": "Contract type",
    "skills": "Skills",
    "interview_availability": "Interview availability",
    "portfolio_link": "Portfolio link",
    "portfolio_file": "Portfolio file",
    "network_contacts": "Network contacts",
    "cv_file": "CV",
    "ai_assessment_enabled": "AI recruitment assessment",
    "openai_enabled": "OpenAI integration",
    "ai_assistant_enabled": "AI assistant",
}

# Fields typed in as free text, in the order the bot asks for them.
TEXT_FIELDS: Tuple[str, ...] = (
    "full_name", "email", "password", "mobile_number",
    "about_me", "profile_picture", "ideal_job_industry", "ideal_job_title",
    "portfolio_link",
)

# Accepted extensions per file field.
FILE_FORMATS: Dict[str, Tuple[str, ...]] = {
    "portfolio_file": ("pdf", "doc", "docx", "zip"),
    "cv_file": ("pdf", "doc", "docx"),
}

def stage_index(key: str) -> int:
    for index, stage in enumerate(STAGES):
        if stage.key == key:
            return index
    raise KeyError(key)

# Fields picked from a fixed list of buttons, with their allowed values.
OPTION_CHOICES: Dict[str, Tuple[str, ...]] = {
    "experience_level": tuple(level.value for level in ExperienceLevel),
    "contract_type": tuple(contract.value for contract in ContractType),
    "time_slot": tuple(slot.value for slot in TimeSlot),
    "position": tuple(relation.value for relation in ContactRelation),
}
