"""Controllers for the authenticated user's own account."""

import typing as t

from ninja_extra import ControllerBase, api_controller, route
from ninja_jwt.authentication import JWTAuth

from accounts.models import SchoolUser
from accounts.schema import ProfileUpdateSchema, SchoolUserSchema
from common.throttling import UserDefaultThrottle


@api_controller("/account", auth=JWTAuth(), tags=["Account"], throttle=UserDefaultThrottle())
class AccountController(ControllerBase):
    def user(self) -> SchoolUser:
        """Get the user for this request."""
        return t.cast(SchoolUser, self.context.request.user)  # type: ignore[union-attr]

    @route.get("/me", response=SchoolUserSchema, url_name="me")
    def me(self) -> SchoolUser:
        """Retrieve the authenticated user's profile, including role and school details."""
        return self.user()

    @route.put("/me", response=SchoolUserSchema, url_name="update_me")
    def update_me(self, payload: ProfileUpdateSchema) -> SchoolUser:
        """Update the editable profile fields. Role and student ID are managed by administrators."""
        user = self.user()
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        user.full_clean()
        user.save()
        return user
