# donors/tasks.py
"""
Celery tasks for emergency broadcasts and donor availability
"""
import logging

from celery import shared_task
from django.utils import timezone

from donors.utils import match_donors, notify_donors, restore_available_donors
from hospitals.models import EmergencyRequest, Hospital

logger = logging.getLogger(__name__)


@shared_task
def broadcast_emergency_request(emergency_request_id):
    """
    Alert every compatible donor about an emergency request.
    Called right after an EmergencyRequest is committed; safe to re-run.
    """
    try:
        emergency_request = EmergencyRequest.objects.get(id=emergency_request_id)
    except EmergencyRequest.DoesNotExist:
        logger.warning(f"Emergency request {emergency_request_id} not found")
        return f"Emergency request {emergency_request_id} not found"

    if emergency_request.status != 'open':
        return f"Request {emergency_request_id} is {emergency_request.status}"

    donors = match_donors(emergency_request)
    newly_notified = notify_donors(emergency_request, donors)

    emergency_request.donors_notified = emergency_request.donor_notifications.count()
    emergency_request.hospitals_notified = Hospital.objects.filter(is_active=True).count()
    emergency_request.broadcast_at = timezone.now()
    emergency_request.save(update_fields=[
        'donors_notified', 'hospitals_notified', 'broadcast_at', 'updated_at'
    ])

    logger.info(
        f"Emergency request {emergency_request.id} ({emergency_request.blood_type}) broadcast to "
        f"{emergency_request.donors_notified} donors and {emergency_request.hospitals_notified} hospitals"
    )
    if not emergency_request.donors_notified:
        logger.warning(f"No eligible donors for emergency request {emergency_request.id}")

    return f"Notified {newly_notified} donors for request {emergency_request.id}"


@shared_task
def restore_donor_availability():
    """Periodic: put donors back in the pool once their cooldown is over"""
    updated = restore_available_donors()
    return f"{updated} donors available again"
