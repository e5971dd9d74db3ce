from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_api import __version__
from contact_api.config import config_instance, Settings
from contact_api.database.messages import MessageStore
from contact_api.email.email import Notifier, create_notifier
from contact_api.errors import ContactApiError, InputError, RateLimitExceeded
from contact_api.pipeline.submission import SubmissionPipeline
from contact_api.ratelimit import IPRateLimiter, rate_limit_headers
from contact_api.routers.contact.contact_route import contact_router
from contact_api.routers.messages.messages_route import messages_router
from contact_api.utils.my_logger import init_logger
from contact_api.utils.utils import iso_timestamp

# used to logging debug information for the application
app_logger = init_logger("contact_api")

CONFIG_STATUS_PATH: str = "/api/test-smtp"

description = """
**Contact Intake API**,

    accepts contact form submissions, validates them, appends them to a JSON messages file
    and forwards a best-effort email notification through an SMTP relay or SendGrid.
"""


def _debug_information(request: Request, error_detail, status_code: int) -> str:
    return f"""
    Debug Information
        request_url: {request.url}
        request_method: {request.method}

        error_detail: {error_detail}
        status_code: {status_code}
    """


def _with_rate_limit_headers(request: Request) -> dict[str, str] | None:
    state = getattr(request.state, 'rate_limit', None)
    return rate_limit_headers(state) if state else None


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# # # # # # # # # # # # # # ERROR HANDLERS
# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #

async def input_error_handler(request: Request, exc: InputError):
    """validation failures are reported to the caller with every failing rule"""
    app_logger.info(f"Validation Error {_debug_information(request, exc.errors, exc.status_code)}")
    return JSONResponse(status_code=exc.status_code, content={'ok': False, 'error': exc.message},
                        headers=_with_rate_limit_headers(request))


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded):
    """
    **rate_limit_error_handler**
        will handle Rate Limits Exceeded Error
    """
    app_logger.warning(f"Rate Limit Error {_debug_information(request, exc.message, exc.status_code)}")
    headers = rate_limit_headers(exc.rate_limit)
    headers['Retry-After'] = headers['RateLimit-Reset']
    return JSONResponse(status_code=exc.status_code, content={'error': exc.message}, headers=headers)


async def contact_api_error_handler(request: Request, exc: ContactApiError):
    app_logger.error(f"Contact API Error {_debug_information(request, exc.message, exc.status_code)}")
    return JSONResponse(status_code=exc.status_code, content={'error': exc.message})


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP Error Handler Will display HTTP Errors in JSON Format to the client"""
    app_logger.info(f"HTTP Exception Occurred {_debug_information(request, exc.detail, exc.status_code)}")
    # any unmatched path or method gets the same not found body
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={
            'error': 'Not Found',
            'path': request.url.path,
            'availableEndpoints': request.app.state.available_endpoints
        })
    return JSONResponse(status_code=exc.status_code, content={'error': exc.detail}, headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception):
    app_logger.exception(f"Unhandled error {_debug_information(request, exc, 500)}")
    content = {'error': 'Internal server error'}
    if request.app.state.settings.DEBUG:
        content['message'] = str(exc)
    return JSONResponse(status_code=500, content=content)


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# # # # # # # # # # # # # # MIDDLE WARES
# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #

async def add_security_headers(request: Request, call_next):
    """
        adding security headers, unhandled errors are rendered here so the 500 body
        still passes through the security headers and CORS
    """
    try:
        response = await call_next(request)
    except Exception as e:
        response = await unhandled_exception_handler(request, e)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
    response.headers["Referrer-Policy"] = "no-referrer"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return response


# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #
# # # # # # # # # # # # # # ROUTES
# # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # # #

async def service_status():
    """Health check endpoint."""
    return JSONResponse(content={
        'status': 'Backend working!',
        'timestamp': iso_timestamp(),
        'endpoints': {
            'contact': '/api/contact (POST)',
            'messages': '/api/messages (GET)'
        }
    })


async def notifier_config_status(request: Request):
    """
        reports which notification settings are present, secret values are never returned
    """
    settings: Settings = request.app.state.settings
    email_settings = settings.EMAIL_SETTINGS

    def _flag(value) -> str:
        return "✓ Set" if value else "✗ Missing"

    return JSONResponse(content={
        'message': 'SMTP Configuration Status',
        'provider': request.app.state.pipeline.notifier.provider,
        'config': {
            'host': _flag(email_settings.SMTP_HOST),
            'port': _flag(email_settings.SMTP_PORT),
            'user': _flag(email_settings.SMTP_USER),
            'pass': _flag(email_settings.SMTP_PASS),
            'sendgrid_api_key': _flag(email_settings.SENDGRID_API_KEY),
            'receiver': _flag(email_settings.RECEIVER_EMAIL)
        }
    })


def create_app(settings: Settings | None = None, store: MessageStore | None = None,
               notifier: Notifier | None = None) -> FastAPI:
    """
    **create_app**
        builds the application, store and notifier are created from settings unless supplied
    :param settings: application settings, defaults to config_instance()
    :param store: message store
    :param notifier: notification backend
    :return: the FastAPI application
    """
    settings = settings or config_instance()
    store = store or MessageStore(file_path=settings.STORAGE.MESSAGES_FILE,
                                  serialize_writes=settings.STORAGE.STORE_SERIALIZE_WRITES)
    notifier = notifier or create_notifier(settings.EMAIL_SETTINGS)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        store.initialize()
        app_logger.info(f"Contact API running on port {settings.PORT}")
        app_logger.info(f"Notification provider: {notifier.provider}")
        app_logger.info(f"Receiver Email: {settings.EMAIL_SETTINGS.RECEIVER_EMAIL or 'NOT SET'}")
        yield
        app_logger.info("Contact API shutting down")

    app = FastAPI(
        title="CONTACT-INTAKE-API",
        description=description,
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.store = store
    app.state.pipeline = SubmissionPipeline(store=store, notifier=notifier)
    app.state.rate_limiter = IPRateLimiter(max_requests=settings.RATE_LIMIT.RATE_LIMIT_MAX_REQUESTS,
                                           duration=settings.RATE_LIMIT.RATE_LIMIT_WINDOW_SECONDS,
                                           trust_proxy=settings.TRUST_PROXY)
    app.state.available_endpoints = ['/', '/api/contact', '/api/messages']

    app.add_exception_handler(InputError, input_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)
    app.add_exception_handler(ContactApiError, contact_api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.middleware("http")(add_security_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS.origins,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["Content-Type"],
        allow_credentials=False
    )

    app.add_api_route("/", service_status, methods=["GET"])
    app.include_router(contact_router)
    app.include_router(messages_router)
    if settings.EXPOSE_CONFIG_STATUS:
        app.add_api_route(CONFIG_STATUS_PATH, notifier_config_status, methods=["GET"])
        app.state.available_endpoints.append(CONFIG_STATUS_PATH)

    return app
