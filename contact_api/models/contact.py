from typing import Any

from pydantic import BaseModel, ConfigDict

REQUIRED_FIELDS: list[str] = ['name', 'email', 'subject', 'message']
_TEXT_FIELDS: list[str] = REQUIRED_FIELDS + ['company']


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return value if isinstance(value, str) else str(value)


class SubmissionInput(BaseModel):
    """untrusted contact form fields exactly as submitted"""
    name: str | None = None
    email: str | None = None
    subject: str | None = None
    message: str | None = None
    company: str | None = None

    model_config = ConfigDict(title="Submission Input", extra="ignore")

    @classmethod
    def from_payload(cls, payload: Any) -> "SubmissionInput | None":
        """
            builds an input from a decoded json body, anything other than a json object is no payload
        :param payload:
        :return:
        """
        if not isinstance(payload, dict):
            return None
        return cls(**{field: _as_text(payload.get(field)) for field in _TEXT_FIELDS})


class SubmissionRecord(BaseModel):
    """
        **SubmissionRecord**
            a validated submission as persisted in the messages file, immutable once created
    """
    id: str
    name: str
    email: str
    subject: str
    company: str
    message: str
    ip: str
    timestamp: str

    model_config = ConfigDict(title="Submission Record", extra="forbid", frozen=True)

    def to_dict(self) -> dict[str, str]:
        return self.model_dump()
