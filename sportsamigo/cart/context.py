import logging
from dataclasses import dataclass
from functools import wraps

from django.db import IntegrityError, transaction

from .models import Cart

logger = logging.getLogger(__name__)

CART_SESSION_KEY = 'cart_id'


@dataclass
class ShopContext:
    """What a shop view needs to know about the current shopper."""

    user: object
    cart: Cart

    @property
    def is_authenticated(self):
        return bool(self.user and self.user.is_authenticated)


def _guest_cart(request):
    cart_id = request.session.get(CART_SESSION_KEY)
    if not cart_id:
        return None
    return Cart.objects.filter(pk=cart_id, user__isnull=True).first()


def _user_cart(user):
    try:
        with transaction.atomic():
            cart, _ = Cart.objects.get_or_create(user=user)
    except IntegrityError:
        # another request created it first
        cart = Cart.objects.get(user=user)
    return cart


def get_cart(request):
    """Returns the cart of this browser, creating it on first access."""
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        guest = _guest_cart(request)
        cart = _user_cart(user)
        if guest is not None:
            cart.absorb(guest)
    else:
        cart = _guest_cart(request)
        if cart is None:
            cart = Cart.objects.create()
    request.session[CART_SESSION_KEY] = cart.pk
    return cart


def claim_cart(request, user):
    """Stamps the browser's guest cart onto ``user`` right after a login."""
    guest = _guest_cart(request)
    existing = Cart.objects.filter(user=user).first()

    if guest is None:
        cart = existing or _user_cart(user)
    elif existing is None:
        guest.user = user
        guest.save(update_fields=['user', 'updated_at'])
        cart = guest
        logger.info("Guest cart %s claimed by %s", guest.pk, user.username)
    else:
        cart = existing.absorb(guest)
        logger.info("Guest cart merged into cart %s of %s", cart.pk, user.username)

    request.session[CART_SESSION_KEY] = cart.pk
    return cart


def preserve_cart(request, cart):
    """Hands ``cart`` to the (new, anonymous) session after logout.

    The cart is detached from the user; logging back in claims it again.
    """
    if cart is None or cart.is_empty():
        return None
    cart.user = None
    cart.save(update_fields=['user', 'updated_at'])
    request.session[CART_SESSION_KEY] = cart.pk
    return cart


def with_shop_context(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        ctx = ShopContext(user=request.user, cart=get_cart(request))
        return view(request, ctx, *args, **kwargs)
    return wrapper
