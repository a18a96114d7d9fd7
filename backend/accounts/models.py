from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Extended user model for clients (travelers) and partners (drivers)"""
    CLIENT = 'client'
    PARTNER = 'partner'
    USER_TYPE_CHOICES = [
        (CLIENT, 'Client'),
        (PARTNER, 'Partner'),
    ]

    VERIFICATION_NONE = 'none'
    VERIFICATION_PENDING = 'pending'
    VERIFICATION_APPROVED = 'approved'
    VERIFICATION_REJECTED = 'rejected'
    VERIFICATION_CHOICES = [
        (VERIFICATION_NONE, 'Not required'),
        (VERIFICATION_PENDING, 'Pending'),
        (VERIFICATION_APPROVED, 'Approved'),
        (VERIFICATION_REJECTED, 'Rejected'),
    ]

    # Role & basic info
    user_type = models.CharField(max_length=10, choices=USER_TYPE_CHOICES)
    email = models.EmailField(unique=True)
    phone_number = models.CharField(max_length=20, blank=True)
    profile_picture = models.ImageField(upload_to='profile_pictures/', null=True, blank=True)
    languages = models.JSONField(default=list, blank=True)
    completed_trips = models.IntegerField(default=0)

    # Mean of all received reviews; null until the first review
    rating = models.FloatField(null=True, blank=True)

    # Partner onboarding
    is_verified = models.BooleanField(default=False)
    verification_status = models.CharField(
        max_length=10,
        choices=VERIFICATION_CHOICES,
        default=VERIFICATION_NONE,
    )
    cin = models.CharField(max_length=30, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['user_type'], name='users_user_type_idx'),
            models.Index(fields=['verification_status'], name='users_verification_idx'),
        ]

    def __str__(self):
        return f"{self.username} ({self.get_user_type_display()})"

    @property
    def is_client(self):
        return self.user_type == self.CLIENT

    @property
    def is_partner(self):
        return self.user_type == self.PARTNER

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()
