import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from hospitals.models import Hospital, EmergencyRequest

MIN_SEARCH_LENGTH = 2

# Logger setup
logger = logging.getLogger(__name__)


# Delhi government hospitals loaded by `manage.py import_hospitals`
DELHI_HOSPITALS = [
    {
        'name': "All India Institute of Medical Sciences (AIIMS)",
        'address': "Sri Aurobindo Marg, Ansari Nagar, New Delhi - 110029",
        'latitude': 28.5672, 'longitude': 77.2100,
    },
    {
        'name': "Safdarjung Hospital",
        'address': "Safdarjung Enclave, New Delhi - 110029",
        'latitude': 28.5665, 'longitude': 77.2063,
    },
    {
        'name': "Ram Manohar Lohia Hospital",
        'address': "Park Street, New Delhi - 110001",
        'latitude': 28.6358, 'longitude': 77.2245,
    },
    {
        'name': "Guru Teg Bahadur Hospital",
        'address': "Dilshad Garden, New Delhi - 110095",
        'latitude': 28.6897, 'longitude': 77.3206,
    },
    {
        'name': "Lok Nayak Hospital",
        'address': "Jawahar Lal Nehru Marg, New Delhi - 110002",
        'latitude': 28.6433, 'longitude': 77.2267,
    },
    {
        'name': "Lady Hardinge Medical College & Hospital",
        'address': "Shaheed Bhagat Singh Marg, New Delhi - 110001",
        'latitude': 28.6389, 'longitude': 77.2219,
    },
    {
        'name': "Maulana Azad Medical College & Hospital",
        'address': "Bahadur Shah Zafar Marg, New Delhi - 110002",
        'latitude': 28.6408, 'longitude': 77.2394,
    },
    {
        'name': "Hindu Rao Hospital",
        'address': "Malka Ganj, New Delhi - 110007",
        'latitude': 28.6667, 'longitude': 77.2167,
    },
    {
        'name': "Delhi Heart & Lung Institute",
        'address': "Panchkuian Road, New Delhi - 110055",
        'latitude': 28.6333, 'longitude': 77.2167,
    },
    {
        'name': "Rajiv Gandhi Super Speciality Hospital",
        'address': "Tahirpur, New Delhi - 110093",
        'latitude': 28.7167, 'longitude': 77.2500,
    },
    {
        'name': "Guru Nanak Eye Centre",
        'address': "Maharaja Ranjit Singh Marg, New Delhi - 110002",
        'latitude': 28.6467, 'longitude': 77.2333,
    },
    {
        'name': "Dr. Baba Saheb Ambedkar Hospital",
        'address': "Sector 6, Rohini, New Delhi - 110085",
        'latitude': 28.7333, 'longitude': 77.1167,
    },
    {
        'name': "Deen Dayal Upadhyay Hospital",
        'address': "Hari Nagar, New Delhi - 110064",
        'latitude': 28.6167, 'longitude': 77.1000,
    },
    {
        'name': "Sanjay Gandhi Memorial Hospital",
        'address': "Mangolpuri, New Delhi - 110083",
        'latitude': 28.6833, 'longitude': 77.0667,
    },
    {
        'name': "Bhagwan Mahavir Hospital",
        'address': "Pitampura, New Delhi - 110088",
        'latitude': 28.7000, 'longitude': 77.1333,
    },
]


def search_hospitals(term):
    """
    Autocomplete over the hospital directory.

    Args:
        term: Text typed so far; matched against name and address

    Returns:
        QuerySet of active hospitals ordered by name (empty for terms under 2 characters)
    """
    term = (term or '').strip()
    if len(term) < MIN_SEARCH_LENGTH:
        return Hospital.objects.none()

    return Hospital.objects.filter(is_active=True).filter(
        Q(name__icontains=term) | Q(address__icontains=term)
    ).order_by('name')


def upsert_hospitals(rows):
    """
    Create or update directory entries keyed by name.

    Returns:
        (created_count, updated_count)
    """
    created_count = 0
    updated_count = 0

    with transaction.atomic():
        for row in rows:
            name = (row.get('name') or '').strip()
            if not name:
                continue
            defaults = {
                'address': row.get('address', ''),
                'phone': row.get('phone') or '',
                'latitude': row.get('latitude'),
                'longitude': row.get('longitude'),
                'is_active': True,
            }
            _, created = Hospital.objects.update_or_create(name=name, defaults=defaults)
            if created:
                created_count += 1
            else:
                updated_count += 1

    logger.info(f"Hospital directory: {created_count} created, {updated_count} updated")
    return created_count, updated_count


class RequestClosed(Exception):
    """Raised when changing the status of a request that is no longer open"""


@transaction.atomic
def close_emergency_request(emergency_request, status):
    """
    Move an open emergency request to 'fulfilled' or 'cancelled'.
    Donor notifications still waiting on a reply are cancelled.
    """
    if status not in ('fulfilled', 'cancelled'):
        raise ValueError(f"Cannot close a request as {status!r}")

    # Status check and write happen in one UPDATE
    closed = EmergencyRequest.objects.filter(pk=emergency_request.pk, status='open').update(
        status=status, updated_at=timezone.now()
    )
    if not closed:
        emergency_request.refresh_from_db(fields=['status', 'updated_at'])
        raise RequestClosed(f"Request #{emergency_request.id} is already {emergency_request.status}")

    emergency_request.refresh_from_db(fields=['status', 'updated_at'])

    cancelled = emergency_request.donor_notifications.filter(
        status__in=['pending', 'notified']
    ).update(status='cancelled')

    logger.info(f"Emergency request {emergency_request.id} marked {status}; {cancelled} notifications cancelled")
    return emergency_request
