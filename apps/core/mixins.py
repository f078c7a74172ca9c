"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Reusable model mixins for UUID keys, timestamps
             and modified-by audit fields.
-------------------------------------------------------------------------
"""
import uuid
from typing import Optional

from django.db import models


class UUIDMixin(models.Model):
    """
    Abstract mixin that makes a UUID the primary key.

    Projects, positions, resources and the other records shared with the
    frontend are addressed by GUID, so the key itself is the public id.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        verbose_name="ID",
    )

    class Meta:
        abstract = True


class TimeStampedMixin(UUIDMixin):
    """
    Abstract mixin that adds created_at and updated_at timestamps.

    Attributes:
        created_at: Timestamp when the record was created.
        updated_at: Timestamp when the record was last modified.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
        help_text="Timestamp when this record was created."
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
        help_text="Timestamp when this record was last modified."
    )

    class Meta:
        abstract = True


class ModifiedByMixin(models.Model):
    """
    Abstract mixin that records who last touched a row.

    Users are identified by their directory email rather than a local
    account, so the audit field is plain text.
    """

    modified_by = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name="Modified By",
        help_text="Email (or 'System') of whoever last changed this record."
    )

    class Meta:
        abstract = True

    def save_with_user(self, email: Optional[str] = None, *args, **kwargs) -> None:
        """
        Save the model while setting the audit field.

        Args:
            email: The email of the user performing the save operation.
            *args: Additional positional arguments for save().
            **kwargs: Additional keyword arguments for save().
        """
        self.modified_by = email or 'System'
        self.save(*args, **kwargs)
