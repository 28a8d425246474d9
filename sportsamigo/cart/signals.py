from django.contrib.auth.signals import user_logged_in
from django.dispatch import receiver

from .context import claim_cart


@receiver(user_logged_in)
def claim_guest_cart(sender, request, user, **kwargs):
    if request is None or not hasattr(request, 'session'):
        return
    claim_cart(request, user)
