import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from accounts.models import UserProfile

from . import ledger

logger = logging.getLogger(__name__)


@receiver(post_save, sender=UserProfile)
def open_wallet(sender, instance, created, **kwargs):
    if not created:
        return

    ledger.get_wallet(instance.user)

    opening = getattr(settings, 'WALLET_OPENING_BALANCE', 0)
    if instance.role == UserProfile.PLAYER and opening:
        ledger.credit(instance.user, opening, "Initial wallet balance - Welcome bonus")
