"""
ArmoryOps user and session models
"""

from django.db import models


class User(models.Model):
    class RoleChoices(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        SUPERVISOR = "SUPERVISOR", "Supervisor"
        ASSEMBLER = "ASSEMBLER", "Assembler"
        INSPECTOR = "INSPECTOR", "Inspector"
        VIEWER = "VIEWER", "Viewer"

    class UserStatus(models.TextChoices):
        ACTIVE = "ACTIVE", "Active"
        SUSPENDED = "SUSPENDED", "Suspended"

    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50, blank=True, default='')
    email = models.EmailField(unique=True)
    password = models.CharField(max_length=128)

    role = models.CharField(
        max_length=12,
        choices=RoleChoices.choices,
        default=RoleChoices.ASSEMBLER
    )

    status = models.CharField(
        max_length=10,
        choices=UserStatus.choices,
        default=UserStatus.ACTIVE
    )

    last_login_at = models.DateTimeField(null=True, blank=True)
    last_login_api = models.CharField(max_length=45, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["first_name", "last_name"]

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.email

    def __str__(self):
        return self.full_name


class Session(models.Model):
    """One row per issued token; deleting it revokes the token."""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="sessions")
    ip_address = models.CharField(max_length=45)
    user_agent = models.CharField(max_length=255, null=True, blank=True, default='')
    payload = models.CharField(max_length=20, db_index=True)
    last_activity = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user} @ {self.ip_address}"
