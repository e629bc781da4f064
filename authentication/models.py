"""
Authentication models for CleanCity Backend.

Contains:
- Custom User model with role-based access control

Roles:
- citizen: submits waste-incident reports
- admin: assigns, rejects and monitors reports; reads analytics
- driver: works assigned reports through to completion
"""

from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin

from core.models import BaseModel


class UserRole:
    """User role constants."""
    CITIZEN = 'citizen'
    ADMIN = 'admin'
    DRIVER = 'driver'

    CHOICES = [
        (CITIZEN, 'Citizen'),
        (ADMIN, 'Administrator'),
        (DRIVER, 'Collection Driver'),
    ]

    # Roles allowed to change a report's status
    STAFF_ROLES = [ADMIN, DRIVER]


class UserManager(BaseUserManager):
    """
    Custom user manager for the CleanCity User model.
    """

    def create_user(self, identifier, password=None, **extra_fields):
        """
        Create and return a regular user.

        Args:
            identifier: Unique identifier (email or phone)
            password: User password
            **extra_fields: Additional fields
        """
        if not identifier:
            raise ValueError('User must have an identifier')

        user = self.model(identifier=identifier, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_driver(self, identifier, password, **extra_fields):
        """Create a collection driver account."""
        extra_fields['role'] = UserRole.DRIVER
        return self.create_user(identifier, password, **extra_fields)

    def create_superuser(self, identifier, password, **extra_fields):
        """Create a superuser for admin access."""
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', UserRole.ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self.create_user(identifier, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin, BaseModel):
    """
    Custom User model for CleanCity.

    Uses a UUID primary key (inherited from BaseModel) and an
    `identifier` field instead of a username.
    """

    identifier = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique identifier (email or phone)"
    )

    full_name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Display name"
    )

    role = models.CharField(
        max_length=20,
        choices=UserRole.CHOICES,
        default=UserRole.CITIZEN,
        db_index=True,
        help_text="User role determining access level"
    )

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    objects = UserManager()

    USERNAME_FIELD = 'identifier'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['identifier']

    def __str__(self):
        return f"{self.identifier} ({self.role})"

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    @property
    def is_driver(self):
        return self.role == UserRole.DRIVER
