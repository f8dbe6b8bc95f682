from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import InterfaceError, OperationalError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI
from ninja_jwt.controller import NinjaJWTDefaultController

from accounts.controllers.account import AccountController
from common.schema import ResponseOk, VersionResponse
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from events.controllers.check_in import CheckInController
from events.controllers.events import EventController
from events.controllers.registrations import RegistrationController
from events.exceptions import RegistrationError
from notifications.controllers.notification_controller import NotificationController

from .exception_handlers import (
    handle_django_validation_error,
    handle_general_exception,
    handle_registration_error,
    handle_transient_store_error,
)

api = NinjaExtraAPI(
    title=f"{settings.SITE_NAME} API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"{settings.SITE_NAME} API {settings.VERSION}",
    app_name=f"school-events-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse})
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk})
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API."""
    return 200, ResponseOk()


api.register_controllers(
    # Auth/Account controllers
    NinjaJWTDefaultController,
    AccountController,
    # Event controllers
    EventController,
    RegistrationController,
    CheckInController,
    # Notification controllers
    NotificationController,
)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    RegistrationError: handle_registration_error,
    OperationalError: handle_transient_store_error,
    InterfaceError: handle_transient_store_error,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)
