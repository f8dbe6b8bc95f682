import re
import typing as t
import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models

from accounts.validators import normalize_phone_number, validate_phone_number, validate_student_id


class SchoolUserQueryset(models.QuerySet["SchoolUser"]):
    """Queryset for SchoolUser."""

    def students(self) -> "SchoolUserQueryset":
        """Only students."""
        return self.filter(role=SchoolUser.Role.STUDENT)

    def check_in_staff(self) -> "SchoolUserQueryset":
        """Users allowed to operate the check-in desk."""
        return self.filter(
            models.Q(role__in=[SchoolUser.Role.ADMIN, SchoolUser.Role.TEACHER])
            | models.Q(is_staff=True)
            | models.Q(is_superuser=True)
        )


class SchoolUserManager(UserManager["SchoolUser"]):
    def get_queryset(self) -> SchoolUserQueryset:
        """Get queryset for SchoolUser."""
        return SchoolUserQueryset(self.model)


class SchoolUser(AbstractUser):
    class Role(models.TextChoices):
        ADMIN = "admin", "Admin"
        TEACHER = "teacher", "Teacher"
        STUDENT = "student", "Student"

    class House(models.TextChoices):
        NONE = "", "None"
        MARSH = "Marsh", "Marsh"
        REED = "Reed", "Reed"
        BOAKE = "Boake", "Boake"
        HARWARD = "Harward", "Harward"
        HARTLEY = "Hartley", "Hartley"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.STUDENT, db_index=True)
    student_id = models.CharField(
        max_length=6,
        unique=True,
        null=True,
        blank=True,
        validators=[validate_student_id],
        help_text="Six digit school student number",
    )
    grade = models.CharField(max_length=16, blank=True)
    house = models.CharField(max_length=16, choices=House.choices, default=House.NONE, blank=True)
    phone = models.CharField(max_length=20, blank=True, validators=[validate_phone_number])
    avatar = models.URLField(blank=True)
    email_notifications = models.BooleanField(default=True, help_text="Receive event emails")

    objects = SchoolUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Normalize contact fields before saving."""
        if self.phone:
            self.phone = normalize_phone_number(self.phone)
        if self.house:
            self.house = self.house.strip()
        if not self.student_id:
            self.student_id = None
        super().save(*args, **kwargs)

    @property
    def display_name(self) -> str:
        """Full name, falling back to the username."""
        return self.get_full_name() or re.sub(r"(\W|_)+", " ", self.username.split("@")[0]).title()

    @property
    def is_administrator(self) -> bool:
        return self.is_superuser or self.role == self.Role.ADMIN

    @property
    def is_check_in_staff(self) -> bool:
        return self.is_administrator or self.is_staff or self.role == self.Role.TEACHER

    @property
    def can_organize_events(self) -> bool:
        return self.is_administrator or self.role == self.Role.TEACHER
