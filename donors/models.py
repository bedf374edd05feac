from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator, RegexValidator

from algorithms.blood_compatibility import BLOOD_TYPE_CHOICES
from algorithms import eligibility


STATE_CHOICES = [
    ('Maharashtra', 'Maharashtra'),
    ('Delhi', 'Delhi'),
    ('Karnataka', 'Karnataka'),
    ('Tamil Nadu', 'Tamil Nadu'),
    ('Gujarat', 'Gujarat'),
    ('Rajasthan', 'Rajasthan'),
    ('Uttar Pradesh', 'Uttar Pradesh'),
    ('West Bengal', 'West Bengal'),
]

pincode_validator = RegexValidator(r'^[0-9]{6}$', 'Enter a 6-digit PIN code.')


# ---------------------------
# Donor Profile
# ---------------------------
class DonorProfile(models.Model):
    full_name = models.CharField(max_length=200)
    age = models.PositiveIntegerField(
        validators=[MinValueValidator(18), MaxValueValidator(65)]
    )
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES, db_index=True)

    # Contact
    phone = models.CharField(max_length=15, unique=True)
    email = models.EmailField()
    emergency_contact = models.CharField(max_length=15, blank=True)

    # Location
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, db_index=True)
    state = models.CharField(max_length=50, choices=STATE_CHOICES)
    pincode = models.CharField(max_length=6, validators=[pincode_validator])

    # Donation tracking
    donation_count = models.PositiveIntegerField(default=0)
    last_donation_date = models.DateField(null=True, blank=True)
    is_available = models.BooleanField(default=True)
    on_cooldown = models.BooleanField(default=False, help_text="Unavailable only because of a recent donation")
    available_for_emergency = models.BooleanField(default=False)

    medical_conditions = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def can_donate(self) -> bool:
        return eligibility.can_donate(self)

    @property
    def days_until_available(self) -> int:
        return eligibility.days_until_available(self.last_donation_date)

    def __str__(self):
        return f"{self.full_name} ({self.blood_type})"

    class Meta:
        verbose_name = "Donor Profile"
        verbose_name_plural = "Donor Profiles"
        ordering = ['-created_at']


class DonorNotification(models.Model):
    STATUS_CHOICES = [
        ('pending',   'Pending'),
        ('notified',  'Notified'),
        ('accepted',  'Accepted'),
        ('declined',  'Declined'),
        ('cancelled', 'Cancelled'),
    ]

    donor = models.ForeignKey(
        DonorProfile,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    emergency_request = models.ForeignKey(
        'hospitals.EmergencyRequest',
        on_delete=models.CASCADE,
        related_name='donor_notifications'
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    is_read = models.BooleanField(default=False)
    sent_at = models.DateTimeField(auto_now_add=True)
    notified_at = models.DateTimeField(null=True, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)
    response_notes = models.TextField(blank=True)

    def __str__(self):
        return f"Notification → {self.donor.full_name} | Request #{self.emergency_request_id}"

    class Meta:
        ordering = ['-sent_at']
        constraints = [
            models.UniqueConstraint(
                fields=['donor', 'emergency_request'],
                name='unique_donor_per_emergency_request',
            ),
        ]
        indexes = [
            models.Index(fields=['emergency_request', 'status'], name='donor_notif_req_status_idx'),
        ]


class DonationHistory(models.Model):
    donor = models.ForeignKey(
        DonorProfile,
        on_delete=models.CASCADE,
        related_name='donation_history'
    )
    hospital = models.ForeignKey(
        'hospitals.Hospital',
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )
    emergency_request = models.ForeignKey(
        'hospitals.EmergencyRequest',
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )

    date_donated = models.DateField()
    units_donated = models.PositiveIntegerField(default=1)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.donor.full_name} | {self.date_donated}"

    class Meta:
        ordering = ['-date_donated']
        verbose_name = "Donation History"
        verbose_name_plural = "Donation Histories"
