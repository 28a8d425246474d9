"""Wallet ledger operations.

The stored ``Wallet.balance`` and the ``WalletTransaction`` rows are always
written in the same database transaction. Debits go through a conditional
``UPDATE ... WHERE balance >= amount`` so two concurrent purchases can never
both spend the same money.
"""
import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F, Q, Sum

from .exceptions import InsufficientFunds, InvalidAmount, TransactionNotFound, WalletInactive
from .models import Wallet, WalletTransaction, format_amount, generate_reference_id

logger = logging.getLogger(__name__)

REFERENCE_ATTEMPTS = 5
CENTS = Decimal('0.01')
# ledger columns hold 12 digits, 2 after the point
MAX_AMOUNT = Decimal(10) ** 10


def _parse_decimal(value):
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount()
    if not amount.is_finite():
        raise InvalidAmount()
    return amount


def to_amount(value):
    """Parses a positive money amount or raises ``InvalidAmount``.

    Amounts are rounded to paise first, so anything that rounds to zero is
    rejected, as is anything too large for the ledger columns.
    """
    amount = _parse_decimal(value)
    if abs(amount) >= MAX_AMOUNT:
        raise InvalidAmount()
    amount = amount.quantize(CENTS)
    if amount <= 0 or amount >= MAX_AMOUNT:
        raise InvalidAmount()
    return amount


def _limit(amount):
    symbol = getattr(settings, 'CURRENCY_SYMBOL', '₹')
    if amount == amount.to_integral_value():
        return f"{symbol}{amount:,.0f}"
    return format_amount(amount)


def check_topup_amount(value):
    minimum = settings.WALLET_MIN_TOPUP
    maximum = settings.WALLET_MAX_TOPUP
    if _parse_decimal(value) > maximum:
        raise InvalidAmount(f"Maximum top-up amount is {_limit(maximum)} per transaction.")
    amount = to_amount(value)
    if amount < minimum:
        raise InvalidAmount(f"Minimum top-up amount is {_limit(minimum)}.")
    return amount


def get_wallet(user):
    wallet, created = Wallet.objects.get_or_create(user=user)
    if created:
        logger.info("Created wallet for %s", user.username)
    return wallet


def _active_wallet(user):
    wallet = get_wallet(user)
    if not wallet.is_active:
        raise WalletInactive()
    return wallet


def _append_transaction(wallet, transaction_type, amount, description, reference_id=None, order=None, metadata=None):
    metadata = metadata or {}
    explicit = bool(reference_id)
    for attempt in range(REFERENCE_ATTEMPTS):
        txn = WalletTransaction(
            wallet=wallet,
            amount=amount,
            transaction_type=transaction_type,
            description=description[:200],
            order=order,
            balance_after=wallet.balance,
            reference_id=reference_id if explicit else generate_reference_id(),
            payment_method=metadata.get('payment_method', ''),
            gateway=metadata.get('gateway', ''),
            transaction_fee=metadata.get('transaction_fee', Decimal('0.00')),
            status=WalletTransaction.COMPLETED,
        )
        try:
            with transaction.atomic():
                txn.save()
            return txn
        except IntegrityError:
            if explicit or attempt == REFERENCE_ATTEMPTS - 1:
                raise
            logger.warning("Reference id %s already used, retrying", txn.reference_id)


@transaction.atomic
def credit(user, amount, description, reference_id=None, order=None, metadata=None):
    """Adds ``amount`` without top-up limits. Used for bonuses and refunds."""
    amount = to_amount(amount)
    wallet = _active_wallet(user)

    Wallet.objects.filter(pk=wallet.pk).update(balance=F('balance') + amount)
    wallet.refresh_from_db(fields=['balance', 'updated_at'])

    txn = _append_transaction(wallet, WalletTransaction.CREDIT, amount, description,
                              reference_id=reference_id, order=order, metadata=metadata)
    logger.info("Credited %s to %s (%s)", amount, user.username, txn.reference_id)
    return wallet, txn


def add_funds(user, amount, description="Funds Added", metadata=None):
    amount = check_topup_amount(amount)
    return credit(user, amount, description, metadata=metadata)


@transaction.atomic
def debit(user, amount, description="Purchase", order=None, reference_id=None, metadata=None):
    amount = to_amount(amount)
    wallet = _active_wallet(user)

    updated = Wallet.objects.filter(pk=wallet.pk, balance__gte=amount).update(balance=F('balance') - amount)
    if not updated:
        wallet.refresh_from_db(fields=['balance'])
        logger.warning("Debit of %s refused for %s, balance %s", amount, user.username, wallet.balance)
        raise InsufficientFunds(balance=wallet.balance, required=amount)
    wallet.refresh_from_db(fields=['balance', 'updated_at'])

    txn = _append_transaction(wallet, WalletTransaction.DEBIT, amount, description,
                              reference_id=reference_id, order=order, metadata=metadata)
    logger.info("Debited %s from %s (%s)", amount, user.username, txn.reference_id)
    return wallet, txn


def _totals(wallet):
    """``(credits, debits)`` over the completed ledger rows of ``wallet``."""
    completed = wallet.transactions.filter(status=WalletTransaction.COMPLETED)
    totals = completed.aggregate(
        credits=Sum('amount', filter=Q(transaction_type=WalletTransaction.CREDIT)),
        debits=Sum('amount', filter=Q(transaction_type=WalletTransaction.DEBIT)),
    )
    return totals['credits'] or Decimal('0.00'), totals['debits'] or Decimal('0.00')


def _ledger_balance(wallet):
    credits, debits = _totals(wallet)
    return max(credits - debits, Decimal('0.00'))


def calculate_balance(user):
    """Balance derived from completed ledger rows, never below zero."""
    return _ledger_balance(get_wallet(user))


def get_wallet_summary(user):
    wallet = get_wallet(user)
    credits, debits = _totals(wallet)

    return {
        'currentBalance': float(wallet.balance),
        'formattedBalance': wallet.formatted_balance,
        'totalCredits': float(credits),
        'totalDebits': float(debits),
        'transactionCount': wallet.transactions.count(),
        'recentTransactions': [txn.to_dict() for txn in wallet.transactions.select_related('order')[:10]],
    }


def get_player_transactions(user, limit=50):
    wallet = get_wallet(user)
    return list(wallet.transactions.select_related('order')[:limit])


def get_transactions_by_type(user, transaction_type, limit=20):
    wallet = get_wallet(user)
    return list(wallet.transactions.filter(transaction_type=transaction_type).select_related('order')[:limit])


def get_transaction_by_reference(user, reference_id):
    txn = (WalletTransaction.objects
           .select_related('order', 'wallet')
           .filter(wallet__user=user, reference_id=reference_id)
           .first())
    if txn is None:
        raise TransactionNotFound()
    return txn


def validate_payment(user, amount):
    required = to_amount(amount)
    balance = get_wallet(user).balance
    has_enough = balance >= required
    shortfall = Decimal('0.00') if has_enough else required - balance

    if has_enough:
        message = "Sufficient balance"
    else:
        message = f"Insufficient balance. You need {format_amount(shortfall)} more."

    return {
        'hasEnoughBalance': has_enough,
        'currentBalance': float(balance),
        'requiredAmount': float(required),
        'shortfall': float(shortfall),
        'message': message,
    }


def reconcile(wallet, fix=False):
    """Compares the stored balance with the ledger; returns ``(stored, derived)``."""
    derived = _ledger_balance(wallet)
    stored = wallet.balance
    if stored != derived and fix:
        Wallet.objects.filter(pk=wallet.pk).update(balance=derived)
        wallet.balance = derived
        logger.warning("Reset %s's wallet balance from %s to %s", wallet.user.username, stored, derived)
    return stored, derived
