"""API controller for the in-app notification inbox."""

from uuid import UUID

from django.db.models import QuerySet
from django.shortcuts import get_object_or_404
from ninja import Query
from ninja_extra import api_controller, route
from ninja_extra.pagination import PageNumberPaginationExtra, PaginatedResponseSchema, paginate
from ninja_jwt.authentication import JWTAuth

from common.schema import ResponseOk
from common.throttling import UserDefaultThrottle, WriteThrottle
from events.controllers.user_aware_controller import UserAwareController
from notifications.filters import NotificationFilterSchema
from notifications.models import Notification
from notifications.schema import NotificationSchema, UnreadCountSchema
from notifications.service import notification_service


@api_controller(
    "/notifications",
    tags=["Notifications"],
    auth=JWTAuth(),
    throttle=UserDefaultThrottle(),
)
class NotificationController(UserAwareController):
    """API endpoints for in-app notifications."""

    @route.get("", url_name="list_notifications", response=PaginatedResponseSchema[NotificationSchema])
    @paginate(PageNumberPaginationExtra, page_size=20)
    def list_notifications(
        self,
        params: NotificationFilterSchema = Query(...),  # type: ignore[type-arg]
    ) -> QuerySet[Notification]:
        """List the user's unexpired notifications, newest first.

        Supports filtering by unread status and notification type.
        """
        return params.filter(Notification.objects.for_user(self.user()))

    @route.get("/unread-count", url_name="notification_unread_count", response=UnreadCountSchema)
    def unread_count(self) -> dict[str, int]:
        """Get count of unread notifications for current user."""
        return {"count": notification_service.unread_count(self.user())}

    @route.post(
        "/{notification_id}/mark-read",
        url_name="mark_notification_read",
        response=NotificationSchema,
        throttle=WriteThrottle(),
    )
    def mark_read(self, notification_id: UUID) -> Notification:
        """Mark a notification as read."""
        notification = get_object_or_404(Notification, id=notification_id, recipient=self.user())
        notification.mark_read()
        return notification

    @route.post("/mark-all-read", url_name="mark_all_notifications_read", response=ResponseOk, throttle=WriteThrottle())
    def mark_all_read(self) -> ResponseOk:
        """Mark all user's notifications as read."""
        notification_service.mark_all_read(self.user())
        return ResponseOk()
