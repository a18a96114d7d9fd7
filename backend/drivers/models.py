from django.db import models
from django.utils import timezone
from django.conf import settings

User = settings.AUTH_USER_MODEL


class DriverProfile(models.Model):
    """Partner availability status and live position (telemetry for matching)"""
    AVAILABLE = 'available'
    BUSY = 'busy'
    OFFLINE = 'offline'
    STATUS_CHOICES = [
        (AVAILABLE, 'Available'),
        (BUSY, 'Busy'),
        (OFFLINE, 'Offline'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='driver_profile')

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=OFFLINE)
    current_latitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    current_longitude = models.DecimalField(max_digits=10, decimal_places=6, null=True, blank=True)
    last_location_update = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'driver_profiles'

    def __str__(self):
        return f"{self.user.username} - {self.status}"

    @property
    def has_location(self):
        return self.current_latitude is not None and self.current_longitude is not None
