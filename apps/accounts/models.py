from django.contrib.auth.models import AbstractUser
from django.db import models

from apps.common.models import BaseModel


class Role(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    ADMINISTRATOR = "administrator", "Administrator"


class User(BaseModel, AbstractUser):
    """Café account.

    ``username`` is the login handle and is unique at the database level.
    ``role`` decides what the bearer token grants; it is embedded in every
    token issued for the user.
    """

    email = models.EmailField("email address")
    phone = models.CharField(max_length=40)
    address = models.CharField(max_length=400, blank=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CUSTOMER, db_index=True)

    def save(self, *args, **kwargs):
        if self.email:
            self.email = str(self.email).strip().lower()
        if self.username:
            self.username = self.username.strip()
        return super().save(*args, **kwargs)

    @property
    def is_administrator(self) -> bool:
        return self.role == Role.ADMINISTRATOR
