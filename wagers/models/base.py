from dataclasses import dataclass, field
from datetime import datetime

from django.utils import timezone


@dataclass(frozen=True, kw_only=True)
class BaseRecord:
    """
    Common timestamp for every immutable log record.

    Records are ordered newest first by ``created_at`` when listed.
    """

    created_at: datetime = field(default_factory=timezone.now)
