"""Turns a cart into a confirmed order.

Everything after validation runs in one database transaction: the order
rows, the stock decrement, the wallet debit and emptying the cart either all
commit or none do.
"""
import logging
from decimal import Decimal

from django.db import transaction

from accounts.models import UserProfile, user_role
from store.exceptions import InsufficientStock
from store.models import Product
from wallet import ledger
from wallet.exceptions import InsufficientFunds

from .exceptions import (
    EmptyCart,
    IncompleteShippingInfo,
    InsufficientWalletBalance,
    InvalidPaymentMethod,
    WalletNotAllowed,
)
from .models import Order, OrderItem

logger = logging.getLogger(__name__)

SHIPPING_REQUIRED = ('full_name', 'phone', 'street', 'area', 'city', 'state')


def validate_shipping(shipping):
    shipping = {key: (value or '').strip() for key, value in (shipping or {}).items()}
    if any(not shipping.get(field) for field in SHIPPING_REQUIRED):
        raise IncompleteShippingInfo()
    return shipping


def can_use_wallet(user):
    if user_role(user) != UserProfile.PLAYER:
        return False
    return ledger.get_wallet(user).balance > 0


def reduce_stock(order):
    for item in order.items.select_related('product'):
        if item.product_id is None:
            continue
        if not Product.objects.reduce_stock(item.product_id, item.quantity):
            product = Product.objects.get(pk=item.product_id)
            raise InsufficientStock(product, product.stock)


def checkout(cart, shipping, payment_method, user, revision=None):
    lines = list(cart.items.select_related('product'))
    if not lines:
        raise EmptyCart()

    shipping = validate_shipping(shipping)
    if payment_method not in (Order.WALLET, Order.COD):
        raise InvalidPaymentMethod()

    total = sum((line.subtotal for line in lines), Decimal('0.00'))
    paying_by_wallet = payment_method == Order.WALLET

    if paying_by_wallet:
        if user_role(user) != UserProfile.PLAYER:
            raise WalletNotAllowed()
        balance = ledger.get_wallet(user).balance
        if balance < total:
            logger.warning("Checkout refused for %s: wallet %s < %s", user.username, balance, total)
            raise InsufficientWalletBalance(balance, total)

    expected_revision = cart.revision if revision in (None, '') else revision

    with transaction.atomic():
        order = Order.objects.create(
            user=user,
            status=Order.PENDING,
            payment_method=payment_method,
            total_amount=total,
            item_count=sum(line.quantity for line in lines),
            email=shipping.get('email') or user.email,
            full_name=shipping['full_name'],
            phone=shipping['phone'],
            street=shipping['street'],
            area=shipping['area'],
            city=shipping['city'],
            state=shipping['state'],
            landmark=shipping.get('landmark', ''),
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=line.product,
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                image_url=line.image_url,
            )
            for line in lines
        ])

        reduce_stock(order)

        if paying_by_wallet and total > 0:
            try:
                ledger.debit(
                    user,
                    total,
                    f"Shop purchase - Order #{order.order_number}",
                    order=order,
                    reference_id=f"ORDER_{order.order_number}",
                    metadata={'payment_method': Order.WALLET},
                )
            except InsufficientFunds as e:
                raise InsufficientWalletBalance(e.balance, total)

        order.payment_status = Order.PAYMENT_PAID if paying_by_wallet else Order.PAYMENT_PENDING
        order.status = Order.CONFIRMED
        order.save(update_fields=['payment_status', 'status', 'updated_at'])

        cart.clear(revision=expected_revision)

    logger.info("Order %s placed by %s: %s via %s", order.order_number, user.username, total, payment_method)
    return order
