import typing as t

from django.contrib.auth.models import AnonymousUser
from ninja_extra import ControllerBase

from accounts.models import SchoolUser


class UserAwareController(ControllerBase):
    def maybe_user(self) -> SchoolUser | AnonymousUser:
        """Get the user for this request."""
        return t.cast(SchoolUser | AnonymousUser, self.context.request.user)  # type: ignore[union-attr]

    def user(self) -> SchoolUser:
        """Get the user for this request."""
        return t.cast(SchoolUser, self.context.request.user)  # type: ignore[union-attr]
