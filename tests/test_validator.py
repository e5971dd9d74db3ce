import pytest

from contact_api.models.contact import SubmissionInput
from contact_api.validation.validator import validate_payload

from tests.conftest import VALID_SUBMISSION


def submission(**overrides) -> SubmissionInput:
    fields = dict(VALID_SUBMISSION)
    fields.update(overrides)
    return SubmissionInput.from_payload(fields)


def test_valid_submission_has_no_errors():
    assert validate_payload(submission()) == []


def test_missing_payload_returns_single_generic_error():
    assert validate_payload(None) == ['No payload']


def test_non_object_payload_is_no_payload():
    assert SubmissionInput.from_payload(["name", "email"]) is None
    assert SubmissionInput.from_payload(None) is None


def test_all_failures_are_collected():
    errors = validate_payload(SubmissionInput.from_payload({}))
    assert errors == [
        'Name is required (min 2 chars).',
        'A valid email is required.',
        'Subject is required.',
        'Message is required (min 10 chars).',
    ]


@pytest.mark.parametrize("name", [None, "", "J", "  J  "])
def test_short_or_missing_name_is_rejected(name):
    assert validate_payload(submission(name=name)) == ['Name is required (min 2 chars).']


@pytest.mark.parametrize("email", [None, "", "plainaddress", "a@b", "a b@c.com", "a@@b.com", "@b.com",
                                   "a@b.com\n"])
def test_malformed_email_is_rejected(email):
    assert validate_payload(submission(email=email)) == ['A valid email is required.']


@pytest.mark.parametrize("email", ["a@b.com", "first.last@sub.example.co.uk", "x+tag@d.io"])
def test_well_formed_email_is_accepted(email):
    assert validate_payload(submission(email=email)) == []


def test_subject_has_no_length_rule():
    assert validate_payload(submission(subject="x")) == []
    assert validate_payload(submission(subject="")) == ['Subject is required.']


def test_message_length_counts_trimmed_text():
    assert validate_payload(submission(message="short")) == ['Message is required (min 10 chars).']
    assert validate_payload(submission(message="    123456789    ")) == ['Message is required (min 10 chars).']
    assert validate_payload(submission(message="1234567890")) == []


def test_company_is_never_validated():
    assert validate_payload(submission(company="")) == []
    assert validate_payload(submission(company="<script>")) == []


def test_non_text_values_are_coerced():
    parsed = SubmissionInput.from_payload(dict(VALID_SUBMISSION, subject=42))
    assert parsed.subject == "42"
    assert validate_payload(parsed) == []
