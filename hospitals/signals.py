# hospitals/signals.py
"""
Signals to automatically broadcast emergency requests to donors
"""
import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from hospitals.models import EmergencyRequest
from donors.tasks import broadcast_emergency_request

logger = logging.getLogger(__name__)


@receiver(post_save, sender=EmergencyRequest)
def auto_broadcast_emergency_request(sender, instance, created, **kwargs):
    """
    Queue the donor broadcast once a new emergency request is committed
    """
    if created and instance.status == 'open':
        transaction.on_commit(lambda: broadcast_emergency_request.delay(instance.id))
        logger.info(f"Broadcast queued for EmergencyRequest #{instance.id}")
