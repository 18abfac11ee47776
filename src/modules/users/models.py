"""Custom user model carrying the role and account status.

The identity provider is the source of truth for who the caller is; this
model keeps the local projection the order engine authorizes against.
"""

from __future__ import annotations

import uuid6
from django.contrib.auth.models import AbstractUser
from django.db import models

from modules.users.constants import UserRole, UserStatus


class User(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    role = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.BUYER,
    )
    status = models.CharField(
        max_length=20,
        choices=UserStatus.choices,
        default=UserStatus.PENDING,
    )
    auth0_sub = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        default=None,
    )

    class Meta:
        db_table = "users"

    @property
    def is_approved(self) -> bool:
        return self.status == UserStatus.APPROVED

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"
