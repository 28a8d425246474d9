import random
import time
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator
from django.db import models


def generate_reference_id():
    """``TXN-`` + last 8 digits of epoch millis + 4 random digits."""
    millis = str(int(time.time() * 1000))
    return f"TXN-{millis[-8:]}{random.randint(0, 9999):04d}"


def format_amount(amount):
    symbol = getattr(settings, 'CURRENCY_SYMBOL', '₹')
    return f"{symbol}{Decimal(amount):,.2f}"


class Wallet(models.Model):
    ACTIVE = 'Active'
    SUSPENDED = 'Suspended'
    CLOSED = 'Closed'

    STATUS_CHOICES = (
        (ACTIVE, 'Active'),
        (SUSPENDED, 'Suspended'),
        (CLOSED, 'Closed'),
    )

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='wallet')
    # cache of the ledger: only changed together with a WalletTransaction row
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=models.Q(balance__gte=0), name='wallet_balance_non_negative'),
        ]

    def __str__(self):
        return f"{self.user.username}'s Wallet"

    @property
    def is_active(self):
        return self.status == self.ACTIVE

    @property
    def formatted_balance(self):
        return format_amount(self.balance)


class WalletTransaction(models.Model):
    CREDIT = 'Credit'
    DEBIT = 'Debit'

    TRANSACTION_TYPES = (
        (CREDIT, 'Credit'),
        (DEBIT, 'Debit'),
    )

    PENDING = 'Pending'
    COMPLETED = 'Completed'
    FAILED = 'Failed'
    CANCELLED = 'Cancelled'

    STATUS_CHOICES = (
        (PENDING, 'Pending'),
        (COMPLETED, 'Completed'),
        (FAILED, 'Failed'),
        (CANCELLED, 'Cancelled'),
    )

    wallet = models.ForeignKey(Wallet, on_delete=models.CASCADE, related_name='transactions')
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    transaction_type = models.CharField(max_length=6, choices=TRANSACTION_TYPES)
    description = models.CharField(max_length=200)
    order = models.ForeignKey('orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='wallet_transactions')
    balance_after = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    reference_id = models.CharField(max_length=64, unique=True)

    # payment metadata
    payment_method = models.CharField(max_length=50, blank=True)
    gateway = models.CharField(max_length=50, blank=True)
    transaction_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=COMPLETED)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['wallet', '-created_at'], name='wallet_txn_wallet_date_idx'),
            models.Index(fields=['transaction_type', '-created_at'], name='wallet_txn_type_date_idx'),
            models.Index(fields=['status'], name='wallet_txn_status_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self.reference_id:
            self.reference_id = generate_reference_id()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.transaction_type} {self.get_formatted_amount()} - {self.wallet.user.username}"

    def get_formatted_amount(self):
        return format_amount(self.amount)

    def to_dict(self):
        return {
            'referenceId': self.reference_id,
            'transactionType': self.transaction_type,
            'amount': float(self.amount),
            'formattedAmount': self.get_formatted_amount(),
            'description': self.description,
            'orderId': self.order.order_number if self.order_id else None,
            'balanceAfter': float(self.balance_after),
            'status': self.status,
            'metadata': {
                'paymentMethod': self.payment_method,
                'gateway': self.gateway,
                'transactionFee': float(self.transaction_fee),
            },
            'timestamp': self.created_at.isoformat() if self.created_at else None,
        }
