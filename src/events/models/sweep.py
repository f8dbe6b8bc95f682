from django.db import models

from common.models import TimeStampedModel


class SweepCheckpoint(TimeStampedModel):
    """Watermark of the last fully processed window of a scheduled sweep."""

    name = models.CharField(max_length=64, unique=True)
    last_run_at = models.DateTimeField()

    def __str__(self) -> str:
        return f"{self.name} @ {self.last_run_at.isoformat()}"
