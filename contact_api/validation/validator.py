import re

from contact_api.models.contact import SubmissionInput

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+\Z')

NAME_MIN_LENGTH: int = 2
MESSAGE_MIN_LENGTH: int = 10


def validate_payload(payload: SubmissionInput | None) -> list[str]:
    """
    **validate_payload**
        runs every rule and collects every failure, an empty list means the submission is valid
    :param payload: submitted fields or None when nothing usable was posted
    :return: human readable error messages
    """
    if payload is None:
        return ['No payload']

    errors: list[str] = []
    if not payload.name or len(payload.name.strip()) < NAME_MIN_LENGTH:
        errors.append(f'Name is required (min {NAME_MIN_LENGTH} chars).')
    if not payload.email or not EMAIL_PATTERN.match(payload.email):
        errors.append('A valid email is required.')
    if not payload.subject:
        errors.append('Subject is required.')
    if not payload.message or len(payload.message.strip()) < MESSAGE_MIN_LENGTH:
        errors.append(f'Message is required (min {MESSAGE_MIN_LENGTH} chars).')
    # company is free form and never validated
    return errors
