from django.db import models
from django.conf import settings
from django.utils import timezone
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator, MaxValueValidator


class Trip(models.Model):
    """A booked transport request from pickup to dropoff"""

    WAITING_APPROVAL = 'waiting_approval'
    ACCEPTED = 'accepted'
    DRIVER_ON_THE_WAY = 'driver_on_the_way'
    ARRIVED_AT_PICKUP = 'arrived_at_pickup'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (WAITING_APPROVAL, 'Waiting Approval'),
        (ACCEPTED, 'Accepted'),
        (DRIVER_ON_THE_WAY, 'Driver On The Way'),
        (ARRIVED_AT_PICKUP, 'Arrived At Pickup'),
        (IN_PROGRESS, 'In Progress'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    ]

    # Forward order of the lifecycle; cancelled is reachable from any non-terminal state
    PROGRESSION = [
        WAITING_APPROVAL,
        ACCEPTED,
        DRIVER_ON_THE_WAY,
        ARRIVED_AT_PICKUP,
        IN_PROGRESS,
        COMPLETED,
    ]
    TERMINAL_STATUSES = [COMPLETED, CANCELLED]
    ACTIVE_STATUSES = [ACCEPTED, DRIVER_ON_THE_WAY, ARRIVED_AT_PICKUP, IN_PROGRESS]

    PAYMENT_CHOICES = [
        ('card', 'Card'),
        ('cash', 'Cash'),
        ('mobile', 'Mobile'),
    ]

    CANCELLED_BY_CHOICES = [
        ('client', 'Client'),
        ('partner', 'Partner'),
    ]

    # Participants
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='client_trips'
    )
    # Both null until acceptance
    partner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='partner_trips'
    )
    vehicle = models.ForeignKey(
        'vehicles.Vehicle',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='trips'
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=WAITING_APPROVAL)

    # Pickup
    pickup_address = models.TextField()
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_place_name = models.CharField(max_length=255, blank=True)

    # Dropoff
    dropoff_address = models.TextField()
    dropoff_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    dropoff_longitude = models.DecimalField(max_digits=9, decimal_places=6)
    dropoff_place_name = models.CharField(max_length=255, blank=True)

    # Trip details
    passengers = models.PositiveIntegerField(default=1)
    luggage = models.PositiveIntegerField(default=0)
    special_requests = models.TextField(blank=True)

    # Timing
    is_scheduled = models.BooleanField(default=False)
    departure_at = models.DateTimeField(null=True, blank=True)
    arrival_at = models.DateTimeField(null=True, blank=True)

    estimated_duration = models.FloatField(null=True, blank=True)  # minutes
    estimated_distance = models.FloatField(null=True, blank=True)  # km
    estimated_arrival_minutes = models.FloatField(null=True, blank=True)

    # {base_fare, distance_fare, taxes, total, currency}
    pricing = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    payment_method = models.CharField(max_length=10, choices=PAYMENT_CHOICES, blank=True)

    cancellation_reason = models.TextField(blank=True)
    cancelled_by = models.CharField(max_length=10, choices=CANCELLED_BY_CHOICES, blank=True)

    # Reminder thresholds (minutes) already emitted for this trip
    reminders_sent = models.JSONField(default=list, blank=True)

    # Timestamps; set explicitly by the lifecycle operations
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)
    accepted_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'trips'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='trips_status_idx'),
            models.Index(fields=['is_scheduled', 'status'], name='trips_scheduled_idx'),
        ]

    def __str__(self):
        return f"Trip #{self.id} - {self.client} - {self.status}"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def is_participant(self, user) -> bool:
        return user.pk in (self.client_id, self.partner_id)


class TripDecline(models.Model):
    """A partner refused a trip; it is no longer offered to them."""

    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name='declines')
    partner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='declined_trips'
    )
    reason = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trip_declines'
        constraints = [
            models.UniqueConstraint(
                fields=['trip', 'partner'],
                name='unique_trip_partner_decline'
            )
        ]

    def __str__(self):
        return f"Trip {self.trip_id} declined by {self.partner}"


class Review(models.Model):
    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name='reviews')
    reviewer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews_given'
    )
    reviewee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='reviews_received'
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'reviews'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['trip', 'reviewer'],
                name='unique_trip_reviewer'
            )
        ]

    def __str__(self):
        return f"Review {self.rating}/5 for {self.reviewee} (trip {self.trip_id})"


class Message(models.Model):
    trip = models.ForeignKey(Trip, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_messages'
    )
    content = models.TextField()
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trip_messages'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Message #{self.id} on trip {self.trip_id}"
