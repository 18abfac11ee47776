"""User role and account-status choices."""

from django.db import models


class UserRole(models.TextChoices):
    BUYER = "buyer", "Buyer"
    MANAGER = "manager", "Manager"
    ADMIN = "admin", "Admin"


class UserStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    SUSPENDED = "suspended", "Suspended"
