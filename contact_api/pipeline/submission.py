from dataclasses import dataclass
from datetime import datetime, timezone

from contact_api.database.messages import MessageStore
from contact_api.email.email import NotificationResult, NotificationStatus, Notifier
from contact_api.errors import InputError, StorageError
from contact_api.models.contact import SubmissionInput, SubmissionRecord
from contact_api.utils.my_logger import init_logger
from contact_api.utils.utils import create_id, iso_timestamp
from contact_api.validation.validator import validate_payload

NOTIFICATION_SENT_MESSAGE: str = "Message saved and notification sent."
NOTIFICATION_DISABLED_MESSAGE: str = "Message received and saved (email notification disabled)."
NOTIFICATION_DELAYED_MESSAGE: str = "Message received and saved. Email notification may be delayed."

pipeline_logger = init_logger("contact-pipeline")


@dataclass(frozen=True)
class SubmissionOutcome:
    """
        result of an accepted submission, storage and notification failures are soft failures
        recorded here and never change the success response
    """
    record: SubmissionRecord
    stored: bool
    notification: NotificationResult

    @property
    def message(self) -> str:
        if self.notification.status == NotificationStatus.SENT:
            return NOTIFICATION_SENT_MESSAGE
        if self.notification.status == NotificationStatus.DISABLED:
            return NOTIFICATION_DISABLED_MESSAGE
        return NOTIFICATION_DELAYED_MESSAGE


class SubmissionPipeline:
    """
    **SubmissionPipeline**
        validate -> store -> notify, each accepted submission is stored once and
        gets exactly one notification attempt
    """

    def __init__(self, store: MessageStore, notifier: Notifier):
        self.store = store
        self.notifier = notifier
        self._last_capture: datetime | None = None

    def _capture_time(self) -> datetime:
        # timestamps never go backwards within this process even if the wall clock does
        now = datetime.now(tz=timezone.utc)
        if self._last_capture is not None and now < self._last_capture:
            now = self._last_capture
        self._last_capture = now
        return now

    def create_record(self, submission: SubmissionInput, ip: str) -> SubmissionRecord:
        return SubmissionRecord(
            id=create_id(),
            name=submission.name.strip(),
            email=submission.email.strip(),
            subject=submission.subject.strip(),
            company=submission.company.strip() if submission.company else '',
            message=submission.message.strip(),
            ip=ip,
            timestamp=iso_timestamp(self._capture_time()))

    async def _store_record(self, record: SubmissionRecord) -> bool:
        try:
            total = await self.store.append(record)
        except StorageError as e:
            pipeline_logger.error(f"file save error (non-critical) for record {record.id} : {e.message}")
            return False
        pipeline_logger.info(f"message {record.id} saved, {total} messages stored")
        return True

    async def submit(self, submission: SubmissionInput | None, ip: str) -> SubmissionOutcome:
        """
        **submit**
            runs a submission through the pipeline
        :param submission: submitted fields, None when the request carried no usable payload
        :param ip: client address of the request
        :return: the outcome of an accepted submission
        :raises InputError: when validation fails
        """
        errors = validate_payload(submission)
        if errors:
            raise InputError(errors=errors)

        record = self.create_record(submission=submission, ip=ip)
        stored = await self._store_record(record)
        notification = await self.notifier.send(record)
        return SubmissionOutcome(record=record, stored=stored, notification=notification)
