import logging
from datetime import date

from django.conf import settings

from algorithms.blood_compatibility import is_compatible

# Constants
DONATION_COOLDOWN_DAYS = 30

# Logger
logger = logging.getLogger(__name__)


def get_cooldown_days() -> int:
    return int(getattr(settings, 'LIFEFLOW_DONATION_COOLDOWN_DAYS', DONATION_COOLDOWN_DAYS))


def days_until_available(last_donation_date, today=None) -> int:
    """Days left before a donor may give blood again (0 if never donated)"""
    if not last_donation_date:
        return 0
    today = today or date.today()
    days_since = (today - last_donation_date).days
    return max(0, get_cooldown_days() - days_since)


def can_donate(donor, today=None) -> bool:
    return days_until_available(donor.last_donation_date, today) == 0


def is_donor_eligible(donor, blood_request, today=None) -> bool:
    """
    Check if a donor is eligible for a given emergency request.

    Criteria:
    - Donor is available
    - Donor's cooldown since last donation has elapsed
    - Donor blood type compatible with request

    Args:
        donor (DonorProfile): Donor object
        blood_request: EmergencyRequest object
        today (date): Reference date, defaults to today

    Returns:
        bool: True if eligible, False otherwise
    """
    if not donor.is_available:
        return False

    if not can_donate(donor, today):
        return False

    if not is_compatible(donor.blood_type, blood_request.blood_type):
        logger.debug(f"Donor {donor.pk} ({donor.blood_type}) incompatible with request {blood_request.pk}")
        return False

    return True
