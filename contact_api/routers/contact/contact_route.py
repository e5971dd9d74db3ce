import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from starlette.responses import JSONResponse

from contact_api.errors import InputError, PayloadTooLarge
from contact_api.models.contact import REQUIRED_FIELDS, SubmissionInput
from contact_api.pipeline.submission import SubmissionPipeline
from contact_api.ratelimit import contact_rate_limit, rate_limit_headers
from contact_api.utils.my_logger import init_logger
from contact_api.utils.utils import get_client_ip

contact_router = APIRouter()

contact_logger = init_logger('contact-logger')

INTERNAL_ERROR_MESSAGE: str = "Internal server error. Please try again later."


async def read_json_body(request: Request) -> Any:
    """
        decodes the request body, an empty or malformed body is treated as no payload
    :param request:
    :return: decoded json or None
    """
    max_bytes = request.app.state.settings.MAX_BODY_BYTES
    content_length = request.headers.get('content-length')
    if content_length and content_length.isdigit() and int(content_length) > max_bytes:
        raise PayloadTooLarge(message="Request body too large")

    # chunked bodies carry no content-length, stop reading once past the cap
    body = b''
    async for chunk in request.stream():
        body += chunk
        if len(body) > max_bytes:
            raise PayloadTooLarge(message="Request body too large")
    if not body:
        return None
    try:
        return json.loads(body)
    except (ValueError, RecursionError):
        contact_logger.info(f"unable to decode contact submission body from {request.url.path}")
        return None


@contact_router.api_route('/api/contact', methods=['POST'])
async def create_contact(request: Request, rate_limit: dict[str, int] = Depends(contact_rate_limit)):
    """
        will validate and store a contact submission then attempt to notify the site owner
    :param request:
    :param rate_limit:
    :return:
    """
    contact_logger.info("Received contact form submission")
    submission = SubmissionInput.from_payload(await read_json_body(request))
    if submission is not None:
        contact_logger.info(f"Payload received: name={submission.name} email={submission.email} "
                            f"subject={submission.subject}")

    pipeline: SubmissionPipeline = request.app.state.pipeline
    settings = request.app.state.settings
    try:
        outcome = await pipeline.submit(submission=submission,
                                        ip=get_client_ip(request, trust_proxy=settings.TRUST_PROXY))
    except InputError as e:
        contact_logger.info(f"Validation errors: {e.errors}")
        raise e
    except Exception as e:
        contact_logger.exception(f"Server error while processing contact submission: {e}")
        return JSONResponse(content=dict(ok=False, error=INTERNAL_ERROR_MESSAGE), status_code=500,
                            headers=rate_limit_headers(rate_limit))

    _payload = dict(ok=True, message=outcome.message)
    return JSONResponse(content=_payload, status_code=200, headers=rate_limit_headers(rate_limit))


@contact_router.api_route('/api/contact', methods=['GET'])
async def describe_contact():
    return JSONResponse(content={
        'message': 'Contact endpoint is working. Use POST to submit a contact form.',
        'method': 'POST',
        'requiredFields': REQUIRED_FIELDS
    }, status_code=200)
