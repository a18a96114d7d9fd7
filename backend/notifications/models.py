from django.db import models
from django.conf import settings


class Notification(models.Model):
    """Persisted in-app notification; the realtime push is a best-effort copy"""

    TRIP = 'trip'
    MESSAGE = 'message'
    PAYMENT = 'payment'
    SYSTEM = 'system'
    TYPE_CHOICES = [
        (TRIP, 'Trip'),
        (MESSAGE, 'Message'),
        (PAYMENT, 'Payment'),
        (SYSTEM, 'System'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    title = models.CharField(max_length=255)
    message = models.TextField()
    # Id of the trip / message the notification points at
    related_id = models.CharField(max_length=64, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'read'], name='notifications_user_read_idx'),
        ]

    def __str__(self):
        return f"{self.title} -> {self.user}"
