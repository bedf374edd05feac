import logging
from datetime import date, timedelta

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from donors.models import DonorProfile, DonorNotification, DonationHistory
from algorithms.blood_compatibility import compatible_donors, parse_blood_type
from algorithms.eligibility import get_cooldown_days

# Logger setup
logger = logging.getLogger(__name__)


def eligible_donors_queryset(today=None):
    """Available donors whose cooldown since their last donation has elapsed"""
    today = today or date.today()
    cutoff = today - timedelta(days=get_cooldown_days())
    return DonorProfile.objects.filter(is_available=True).filter(
        Q(last_donation_date__isnull=True) | Q(last_donation_date__lte=cutoff)
    )


def search_donors(blood_type, city='', state='', compatible=False):
    """
    Find available donors by blood type and location.

    Args:
        blood_type: Blood type being searched for
        city: Optional city, matched case-insensitively as a substring
        state: Optional state, matched exactly
        compatible: Widen the search to every donor type compatible with blood_type

    Returns:
        QuerySet of DonorProfile, newest first
    """
    code = parse_blood_type(blood_type)

    if compatible:
        queryset = DonorProfile.objects.filter(blood_type__in=compatible_donors(code))
    else:
        queryset = DonorProfile.objects.filter(blood_type=code)

    queryset = queryset.filter(is_available=True)

    city = (city or '').strip()
    if city:
        queryset = queryset.filter(city__icontains=city)

    state = (state or '').strip()
    if state:
        queryset = queryset.filter(state=state)

    return queryset.order_by('-created_at')


def match_donors(emergency_request):
    """
    Donors to reach for an emergency request.
    Compatible, eligible, opted in to emergency alerts, and in the request's city if it has one.
    """
    donors = eligible_donors_queryset().filter(
        available_for_emergency=True,
        blood_type__in=compatible_donors(emergency_request.blood_type),
    )

    city = (emergency_request.city or '').strip()
    if city:
        donors = donors.filter(city__iexact=city)

    return donors.order_by('created_at')


def send_emergency_notification(notification):
    """Email a donor about an emergency request. Returns True if a mail went out."""
    donor = notification.donor
    emergency_request = notification.emergency_request

    if not donor.email:
        return False

    message = f"""
URGENT BLOOD NEEDED

Patient: {emergency_request.patient_name}
Blood Type: {emergency_request.blood_type}
Units: {emergency_request.units_needed}
Urgency: {emergency_request.get_urgency_level_display()}
Hospital: {emergency_request.hospital_name}
Address: {emergency_request.hospital_address or 'N/A'}

Contact: {emergency_request.contact_person} ({emergency_request.contact_phone})

Your blood type ({donor.blood_type}) is compatible with this request.
Please contact the hospital directly if you can donate.

Details: {settings.SITE_URL}/api/emergency-requests/{emergency_request.id}/

Thank you for being a lifesaver!
LifeFlow
    """.strip()

    send_mail(
        subject=f"URGENT: {emergency_request.blood_type} blood needed at {emergency_request.hospital_name}",
        message=message,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[donor.email],
        fail_silently=False,
    )
    return True


def notify_donors(emergency_request, donors):
    """
    Create a notification for each donor not yet reached for this request and email them.

    Returns:
        Number of donors newly notified
    """
    already_notified = set(
        emergency_request.donor_notifications.values_list('donor_id', flat=True)
    )

    notified = 0
    for donor in donors:
        if donor.id in already_notified:
            continue

        notification = DonorNotification.objects.create(
            donor=donor,
            emergency_request=emergency_request,
            status='notified',
            notified_at=timezone.now(),
        )

        try:
            send_emergency_notification(notification)
        except Exception:
            logger.exception(f"Email to donor {donor.id} failed for request {emergency_request.id}")

        notified += 1
        logger.info(f"Notification sent to {donor.full_name} ({donor.phone})")

    return notified


@transaction.atomic
def record_donation(donor, hospital=None, emergency_request=None, units=1, notes='', today=None):
    """
    Record that a donor has just given blood.
    Starts the cooldown: the donor is unavailable until restore_donor_availability runs.
    """
    today = today or date.today()

    DonationHistory.objects.create(
        donor=donor,
        hospital=hospital,
        emergency_request=emergency_request,
        date_donated=today,
        units_donated=units,
        notes=notes,
    )

    donor.last_donation_date = today
    donor.is_available = False
    donor.on_cooldown = True
    donor.donation_count = donor.donation_history.count()
    donor.save(update_fields=[
        'last_donation_date', 'is_available', 'on_cooldown', 'donation_count', 'updated_at'
    ])

    logger.info(f"Donation recorded for {donor.full_name} on {today}")
    return donor


def restore_available_donors(today=None, queryset=None):
    """
    Mark donors available again once their cooldown has elapsed.
    Limited to `queryset` when one is given. Returns the number updated.
    """
    today = today or date.today()
    cutoff = today - timedelta(days=get_cooldown_days())

    donors = DonorProfile.objects.all() if queryset is None else queryset
    updated = donors.filter(
        on_cooldown=True,
        last_donation_date__lte=cutoff,
    ).update(is_available=True, on_cooldown=False, updated_at=timezone.now())

    if updated:
        logger.info(f"{updated} donors available again after cooldown")
    return updated


def toggle_availability(donor):
    donor.is_available = not donor.is_available
    donor.on_cooldown = False
    donor.save(update_fields=['is_available', 'on_cooldown', 'updated_at'])
    logger.info(f"{donor.full_name} is now {'available' if donor.is_available else 'unavailable'}")
    return donor
