"""Schema for accounts module."""

from ninja import ModelSchema, Schema
from pydantic import UUID4

from accounts.models import SchoolUser


class SchoolUserSchema(ModelSchema):
    id: UUID4
    display_name: str

    class Meta:
        model = SchoolUser
        fields = [
            "username",
            "email",
            "first_name",
            "last_name",
            "role",
            "student_id",
            "grade",
            "house",
            "phone",
            "avatar",
            "email_notifications",
        ]


class MinimalSchoolUserSchema(ModelSchema):
    id: UUID4
    display_name: str

    class Meta:
        model = SchoolUser
        fields = ["email", "first_name", "last_name", "student_id", "grade", "house"]


class ProfileUpdateSchema(Schema):
    first_name: str | None = None
    last_name: str | None = None
    grade: str | None = None
    house: SchoolUser.House | None = None
    phone: str | None = None
    avatar: str | None = None
    email_notifications: bool | None = None
