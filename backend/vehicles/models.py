from django.db import models
from django.conf import settings


class Vehicle(models.Model):
    """A partner-owned vehicle offered for trips"""

    STANDARD = 'standard'
    PREMIUM = 'premium'
    LUXURY = 'luxury'
    VAN = 'van'
    CATEGORY_CHOICES = [
        (STANDARD, 'Standard'),
        (PREMIUM, 'Premium'),
        (LUXURY, 'Luxury'),
        (VAN, 'Van'),
    ]

    ACTIVE = 'active'
    INACTIVE = 'inactive'
    MAINTENANCE = 'maintenance'
    STATUS_CHOICES = [
        (ACTIVE, 'Active'),
        (INACTIVE, 'Inactive'),
        (MAINTENANCE, 'Maintenance'),
    ]

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='vehicles',
        limit_choices_to={'user_type': 'partner'},
    )

    brand = models.CharField(max_length=50)
    model = models.CharField(max_length=50)
    year = models.CharField(max_length=4)
    license_plate = models.CharField(max_length=20, unique=True)
    color = models.CharField(max_length=30, blank=True)
    capacity = models.PositiveIntegerField()

    # Storage references, resolved to URLs on read
    images = models.JSONField(default=list, blank=True)
    features = models.JSONField(default=list, blank=True)

    price_per_km = models.DecimalField(max_digits=8, decimal_places=2)
    base_fare = models.DecimalField(max_digits=8, decimal_places=2)

    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default=STANDARD)
    # Inactive until documents are verified
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=INACTIVE)
    featured = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'vehicles'
        ordering = ['id']

    def __str__(self):
        return f"{self.brand} {self.model} ({self.license_plate})"

    @property
    def display_name(self):
        return f"{self.brand} {self.model}"


class Document(models.Model):
    """Onboarding document; at most one per (owner, type)"""

    TYPE_CHOICES = [
        ('cin_front', 'ID card (front)'),
        ('cin_back', 'ID card (back)'),
        ('driver_license', 'Driver license'),
        ('tourism_license', 'Tourism license'),
        ('vehicle_registration', 'Vehicle registration'),
        ('vehicle_insurance', 'Vehicle insurance'),
        ('vehicle_technical_inspection', 'Technical inspection'),
        ('other', 'Other'),
    ]

    VALID = 'valid'
    EXPIRED = 'expired'
    STATUS_CHOICES = [
        (VALID, 'Valid'),
        (EXPIRED, 'Expired'),
    ]

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='documents',
    )
    vehicle = models.ForeignKey(
        Vehicle,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='documents',
    )

    type = models.CharField(max_length=40, choices=TYPE_CHOICES)
    file = models.FileField(upload_to='documents/')
    expiry_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=VALID)
    is_verified = models.BooleanField(default=False)
    verified_at = models.DateTimeField(null=True, blank=True)

    uploaded_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'documents'
        constraints = [
            models.UniqueConstraint(
                fields=['owner', 'type'],
                name='unique_owner_document_type'
            )
        ]

    def __str__(self):
        return f"{self.get_type_display()} - {self.owner}"
