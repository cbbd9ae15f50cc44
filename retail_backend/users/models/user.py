"""
PATH: users/models/user.py

CUSTOM USER MODEL

- username is the login identity; email is optional contact data
- role drives branch scoping (admin may act on any branch)
- branch is the user's home branch (nullable for admins)
"""

from __future__ import annotations

import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager
from django.core.exceptions import ValidationError
from django.db import models


# ---------------- USER MANAGER ----------------
class UserManager(BaseUserManager):
    def create_user(self, username=None, password=None, **extra_fields):
        username = (username or "").strip()
        if not username:
            raise ValueError("Users must have a username")

        email = (extra_fields.pop("email", "") or "").strip()
        extra_fields.setdefault("is_active", True)

        user = self.model(
            username=username,
            email=self.normalize_email(email) if email else "",
            **extra_fields,
        )

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.full_clean()
        user.save(using=self._db)
        return user

    def create_superuser(self, username=None, password=None, **extra_fields):
        if not password:
            raise ValueError("Superuser must have a password")

        extra_fields.setdefault("role", User.Role.ADMIN)
        extra_fields.setdefault("is_staff", True)

        if extra_fields.get("role") != User.Role.ADMIN:
            raise ValueError("Superuser must have role=admin")

        return self.create_user(username=username, password=password, **extra_fields)


# ---------------- USER MODEL ----------------
class User(AbstractBaseUser):
    class Role(models.TextChoices):
        ADMIN = "admin", "Admin"
        MANAGER = "manager", "Manager"
        CASHIER = "cashier", "Cashier"
        STOCK_KEEPER = "stock_keeper", "Stock keeper"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    username = models.CharField(max_length=150, unique=True)
    email = models.EmailField(blank=True)
    full_name = models.CharField(max_length=200, blank=True)

    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CASHIER)

    branch = models.ForeignKey(
        "branches.Branch",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="users",
    )

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "username"
    REQUIRED_FIELDS = []

    class Meta:
        ordering = ["-created_at"]

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN

    def clean(self):
        self.username = (self.username or "").strip()
        if not self.username:
            raise ValidationError({"username": "username is required"})

        if self.role != self.Role.ADMIN and self.branch_id is None:
            raise ValidationError({"branch": "Non-admin users must belong to a branch"})

    def __str__(self):
        return f"{self.username} ({self.role})"
