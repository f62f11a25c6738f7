from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Account identified by email; the username mirrors it."""
    email = models.EmailField(unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def __str__(self):
        return self.email

    class Meta:
        ordering = ['-created_at']
