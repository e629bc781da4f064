"""
Core models for CleanCity Backend.

Contains abstract base models that provide:
- UUID primary keys (no auto-increment IDs)
- Timestamp tracking

Reports and their transition history are never deleted, so there is no
soft-delete layer here: rows only ever move forward through the workflow.
"""

import uuid
from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model providing UUID primary key and timestamps.

    All CleanCity models inherit from this class so that:
    1. Primary keys are UUIDs (no enumerable IDs in API responses)
    2. Creation time is recorded once and indexed for date-range queries
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier (UUID v4)"
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when record was created"
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when record was last updated"
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']
