import json
from typing import Dict, Tuple

from talent_signup.models.record import FILE_FIELDS, SCRATCH_FIELDS, StageRecord
from talent_signup.services.api_client import FormFiles

COMPOSITE_FIELDS = ("skills", "network_contacts", "interview_availability")

def build_signup_form(record: StageRecord) -> Tuple[Dict[str, str], FormFiles]:
    """Split the record into multipart form fields and binary file parts.

    Composites travel as JSON strings and booleans as "true"/"false". A file
    field is sent as its resolved URL when one exists, otherwise as the raw
    pending bytes; never both.
    """
    data: Dict[str, str] = {}
    files: FormFiles = {}
    dumped = record.model_dump(exclude=set(SCRATCH_FIELDS) | set(FILE_FIELDS))
    for key, value in dumped.items():
        if key in COMPOSITE_FIELDS:
            data[key] = json.dumps(value)
        elif isinstance(value, bool):
            data[key] = "true" if value else "false"
        else:
            data[key] = "" if value is None else str(value)

    for field in FILE_FIELDS:
        reference = record.file_reference(field)
        if reference:
            data[field] = reference
            continue
        pending = record.pending_file(field)
        if pending is not None:
            files[field] = (pending.filename, pending.content, pending.content_type)
    return data, files
