from django.db import models
from django.contrib.auth.models import AbstractUser
from phonenumber_field.modelfields import PhoneNumberField


class CustomUser(AbstractUser):
    ROLE_CHOICES = (
        ('user', 'Parking User'),
        ('owner', 'Parking Lot Owner'),
        ('admin', 'Administrator'),
    )

    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='user', db_index=True)
    phone_number = PhoneNumberField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def display_name(self):
        return self.get_full_name() or self.username
