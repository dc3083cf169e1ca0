"""Signup wizard state machine.

The controller owns the stage pointer, the candidate's StageRecord, the
single-flight latch and the last error shown to the user. Every network
failure is caught here and turned into ``last_error``; nothing raises out of
``advance``/``finalize``/``attach`` for remote errors.

File fields follow an explicit per-field strategy:

* ``inline``: pending bytes are sent as binary parts of the signup request.
* ``signed_upload``: the file goes to the object store first and only its
  URL is sent. ``attach`` does this eagerly (and links the URL when a bearer
  token is given); ``finalize`` uploads whatever is still pending.
"""
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

from talent_signup.core.config import ATTACHMENT_STRATEGIES, STAGE_VALIDATION, UPLOAD_MAX_BYTES
from talent_signup.core.messages import Messages
from talent_signup.models.record import FILE_FIELDS, PendingFile, StageRecord
from talent_signup.services.api_client import (
    APIHTTPError,
    APINetworkError,
    APIRequestError,
    AuthAPIClient,
    auth_api_client,
)
from talent_signup.services.attachments import AttachmentOutcome, AttachmentPipeline, AttachmentStage
from talent_signup.wizard.payload import build_signup_form
from talent_signup.wizard.stages import FILE_FORMATS, STAGES, Stage

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[Dict[str, Any]], Awaitable[None]]

class AttachmentStrategy(str, Enum):
    INLINE = "inline"
    SIGNED_UPLOAD = "signed_upload"

class WizardController:
    def __init__(
        self,
        api: Optional[AuthAPIClient] = None,
        attachments: Optional[AttachmentPipeline] = None,
        strategies: Optional[Dict[str, str]] = None,
        stage_validation: bool = STAGE_VALIDATION,
        max_file_bytes: int = UPLOAD_MAX_BYTES,
        on_complete: Optional[CompletionCallback] = None,
        stages: Sequence[Stage] = STAGES,
    ):
        self.api = api or auth_api_client
        self.attachments = attachments or AttachmentPipeline(api=self.api)
        self.strategies: Dict[str, AttachmentStrategy] = {
            field: AttachmentStrategy(value)
            for field, value in (ATTACHMENT_STRATEGIES if strategies is None else strategies).items()
        }
        self.stage_validation = stage_validation
        self.max_file_bytes = max_file_bytes
        self.on_complete = on_complete
        self.stages = tuple(stages)

        self.record = StageRecord()
        self.stage_index = 0
        self.in_flight = False
        self.last_error = ""
        self.attachments_in_flight: Set[str] = set()
        # Uploaded references whose link call failed, kept for a link retry.
        self.unlinked: Dict[str, str] = {}

    @property
    def stage(self) -> Stage:
        return self.stages[self.stage_index]

    @property
    def total(self) -> int:
        return len(self.stages)

    @property
    def is_first(self) -> bool:
        return self.stage_index == 0

    @property
    def is_terminal(self) -> bool:
        return self.stage_index == self.total - 1

    def strategy_for(self, field: str) -> AttachmentStrategy:
        return self.strategies.get(field, AttachmentStrategy.INLINE)

    def field_value(self, field: str) -> Any:
        """Display value of a field; files show their URL or file name."""
        if field in FILE_FIELDS:
            reference = self.record.file_reference(field)
            if reference:
                return reference
            pending = self.record.pending_file(field)
            return pending.filename if pending else None
        return getattr(self.record, field)

    def current_values(self) -> Dict[str, Any]:
        return {field: self.field_value(field) for field in self.stage.fields}

    def validate_stage(self, index: Optional[int] = None) -> List[str]:
        stage = self.stages[self.stage_index if index is None else index]
        if stage.validator is None:
            return []
        return stage.validator(self.record)

    def validate_all(self) -> List[str]:
        errors = []
        for index in range(self.total):
            errors.extend(self.validate_stage(index))
        return errors

    async def advance(self) -> bool:
        """Next stage, or the final submission on the last stage."""
        if self.is_terminal:
            return await self.finalize()
        if self.stage_validation:
            errors = self.validate_stage()
            if errors:
                self.last_error = Messages.Signup.STAGE_INVALID.format(errors="\n".join(errors))
                logger.info(f"Advance from {self.stage.key} refused: {errors}")
                return False
        self.stage_index += 1
        self.last_error = ""
        logger.info(f"Advanced to stage {self.stage_index} ({self.stage.key})")
        return True

    def retreat(self) -> bool:
        if self.in_flight:
            logger.info("Retreat ignored: submission in flight")
            return False
        if self.is_first:
            return False
        self.stage_index -= 1
        self.last_error = ""
        logger.info(f"Went back to stage {self.stage_index} ({self.stage.key})")
        return True

    def select_file(self, field: str, filename: str, content: bytes, content_type: str) -> bool:
        """Hold a file for a file field after local checks; the record is untouched on rejection."""
        if field not in FILE_FIELDS:
            raise ValueError(f"{field!r} is not a file field")
        if self.record.file_reference(field):
            self.last_error = Messages.Upload.ALREADY_SAVED
            logger.info(f"Rejected {filename} for {field}: a stored file is already attached")
            return False
        if len(content) > self.max_file_bytes:
            self.last_error = Messages.Upload.FILE_TOO_LARGE.format(max_mb=self.max_file_bytes // (1024 * 1024))
            logger.info(f"Rejected {filename} for {field}: {len(content)} bytes")
            return False
        formats = FILE_FORMATS.get(field)
        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        if formats and extension not in formats:
            self.last_error = Messages.Upload.WRONG_TYPE.format(formats=", ".join(f.upper() for f in formats))
            return False
        self.record.set_pending_file(field, PendingFile(filename=filename, content=content, content_type=content_type))
        self.unlinked.pop(field, None)
        self.last_error = ""
        return True

    def remove_file(self, field: str) -> None:
        self.record.clear_file(field)
        self.unlinked.pop(field, None)

    async def attach(self, field: str, bearer_token: Optional[str] = None) -> AttachmentOutcome:
        """Eager signed upload of the pending file, linked when a token is given."""
        pending = self.record.pending_file(field)
        if self.in_flight:
            return self._refuse(field, Messages.Signup.FINALIZE_BUSY)
        if field in self.attachments_in_flight:
            return self._refuse(field, Messages.Signup.ATTACHMENT_BUSY)
        if pending is None:
            return self._refuse(field, Messages.Upload.NO_FILE)

        self.attachments_in_flight.add(field)
        try:
            outcome = await self.attachments.run(field, pending, bearer_token)
        finally:
            self.attachments_in_flight.discard(field)

        if outcome.reference and (outcome.linked or bearer_token is None):
            self.record.resolve_file(field, outcome.reference)
            self.unlinked.pop(field, None)
        elif outcome.reference:
            self.unlinked[field] = outcome.reference
        self.last_error = outcome.error or ""
        return outcome

    async def link(self, field: str, bearer_token: str) -> AttachmentOutcome:
        """Retry linking a file that was uploaded but not linked."""
        reference = self.unlinked.get(field)
        if reference is None:
            return self._refuse(field, Messages.Upload.NO_FILE)
        if field in self.attachments_in_flight:
            return self._refuse(field, Messages.Signup.ATTACHMENT_BUSY)

        self.attachments_in_flight.add(field)
        try:
            outcome = await self.attachments.link(field, reference, bearer_token)
        finally:
            self.attachments_in_flight.discard(field)

        if outcome.linked:
            self.record.resolve_file(field, reference)
            self.unlinked.pop(field, None)
        self.last_error = outcome.error or ""
        return outcome

    async def finalize(self, on_complete: Optional[CompletionCallback] = None) -> bool:
        """Submit the whole record; on failure the record and pointer stay as they were."""
        if self.in_flight:
            logger.info("Finalize ignored: submission already in flight")
            return False
        if not self.is_terminal:
            logger.warning(f"Finalize called on stage {self.stage.key}")
            return False
        if self.attachments_in_flight:
            self.last_error = Messages.Signup.ATTACHMENT_BUSY
            return False
        if self.stage_validation:
            errors = self.validate_all()
            if errors:
                self.last_error = Messages.Signup.STAGES_INVALID.format(errors="\n".join(errors))
                return False

        self.in_flight = True
        self.last_error = ""
        try:
            outgoing = self.record.model_copy(deep=True)
            for field in FILE_FIELDS:
                pending = outgoing.pending_file(field)
                if pending is None or self.strategy_for(field) != AttachmentStrategy.SIGNED_UPLOAD:
                    continue
                outcome = await self.attachments.run(field, pending)
                if not outcome.ok:
                    self.last_error = outcome.error or Messages.Upload.UPLOAD_FAILED
                    return False
                outgoing.resolve_file(field, outcome.reference)

            data, files = build_signup_form(outgoing)
            result = await self.api.signup(data, files)
        except APIHTTPError as e:
            logger.error(f"Signup rejected with {e.status_code}: {e}")
            self.last_error = e.detail or Messages.Signup.FAILED
            return False
        except APINetworkError as e:
            logger.error(f"Signup failed: {e}")
            self.last_error = Messages.Common.NETWORK_ERROR
            return False
        except APIRequestError as e:
            logger.error(f"Signup failed: {e}")
            self.last_error = Messages.Signup.FAILED
            return False
        finally:
            self.in_flight = False

        logger.info(f"Signup complete for {self.record.email}")
        self.record.reset()
        self.unlinked.clear()
        self.stage_index = 0
        callback = on_complete or self.on_complete
        if callback is not None:
            await callback(result)
        return True

    def _refuse(self, field: str, error: str) -> AttachmentOutcome:
        self.last_error = error
        return AttachmentOutcome(field=field, failed_stage=AttachmentStage.VALIDATION, error=error)
