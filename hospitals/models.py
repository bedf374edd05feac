# hospitals/models.py
from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator

from algorithms.blood_compatibility import BLOOD_TYPE_CHOICES


class Hospital(models.Model):
    """Entry in the hospital directory used for autocomplete"""
    name = models.CharField(max_length=200, unique=True)
    address = models.TextField()
    phone = models.CharField(max_length=15, blank=True)

    # Stored for display only
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        ordering = ['name']
        verbose_name = 'Hospital'
        verbose_name_plural = 'Hospitals'


class EmergencyRequestQuerySet(models.QuerySet):
    def open(self):
        return self.filter(status='open')

    def by_urgency(self):
        urgency_rank = models.Case(
            *[models.When(urgency_level=level, then=models.Value(rank))
              for rank, (level, _) in enumerate(EmergencyRequest.URGENCY_CHOICES)],
            default=models.Value(len(EmergencyRequest.URGENCY_CHOICES)),
            output_field=models.IntegerField(),
        )
        return self.annotate(urgency_rank=urgency_rank).order_by('urgency_rank', '-created_at')


class EmergencyRequest(models.Model):
    URGENCY_CHOICES = [
        ('critical', 'Critical (Life-threatening)'),
        ('urgent', 'Urgent (Within 6 hours)'),
        ('moderate', 'Moderate (Within 24 hours)'),
    ]

    STATUS_CHOICES = [
        ('open', 'Open'),
        ('fulfilled', 'Fulfilled'),
        ('cancelled', 'Cancelled'),
    ]

    # Patient
    patient_name = models.CharField(max_length=200)
    blood_type = models.CharField(max_length=3, choices=BLOOD_TYPE_CHOICES)
    units_needed = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(10)]
    )
    urgency_level = models.CharField(max_length=10, choices=URGENCY_CHOICES, default='critical')
    medical_condition = models.TextField(help_text="e.g., Accident, Surgery, Thalassemia")

    # Hospital (picked from the directory or typed in)
    hospital = models.ForeignKey(
        Hospital, on_delete=models.SET_NULL, null=True, blank=True, related_name='emergency_requests'
    )
    hospital_name = models.CharField(max_length=200)
    hospital_address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)

    # Contact
    contact_person = models.CharField(max_length=200)
    contact_phone = models.CharField(max_length=15)
    additional_notes = models.TextField(blank=True)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='open')

    # Broadcast outcome
    donors_notified = models.PositiveIntegerField(default=0)
    hospitals_notified = models.PositiveIntegerField(default=0)
    broadcast_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EmergencyRequestQuerySet.as_manager()

    def __str__(self):
        return f"{self.hospital_name} - {self.blood_type} ({self.urgency_level})"

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Emergency Request'
        verbose_name_plural = 'Emergency Requests'
