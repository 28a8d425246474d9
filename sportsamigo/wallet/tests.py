import re
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.contrib.auth.models import User
from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase, TransactionTestCase, override_settings
from django.urls import reverse

from accounts.models import UserProfile

from . import ledger
from .exceptions import InsufficientFunds, InvalidAmount, TransactionNotFound, WalletInactive
from .models import Wallet, WalletTransaction, generate_reference_id


def make_user(email="player@example.com", role=UserProfile.PLAYER):
    user = User.objects.create_user(username=email, email=email, password="pass12345")
    UserProfile.objects.create(user=user, role=role)
    return user


class OpeningBalanceTest(TestCase):

    @override_settings(WALLET_OPENING_BALANCE=Decimal('1000'))
    def test_player_gets_welcome_bonus(self):
        user = make_user()

        wallet = Wallet.objects.get(user=user)
        self.assertEqual(wallet.balance, Decimal('1000.00'))
        txn = wallet.transactions.get()
        self.assertEqual(txn.description, "Initial wallet balance - Welcome bonus")
        self.assertEqual(txn.balance_after, Decimal('1000.00'))

    @override_settings(WALLET_OPENING_BALANCE=Decimal('1000'))
    def test_other_roles_start_empty(self):
        user = make_user("organizer@example.com", role=UserProfile.ORGANIZER)

        wallet = Wallet.objects.get(user=user)
        self.assertEqual(wallet.balance, Decimal('0.00'))
        self.assertFalse(wallet.transactions.exists())


@override_settings(WALLET_OPENING_BALANCE=0)
class LedgerTest(TestCase):

    def setUp(self):
        self.user = make_user()

    def test_new_wallet_is_empty(self):
        wallet = ledger.get_wallet(self.user)
        self.assertEqual(wallet.balance, Decimal('0.00'))
        self.assertEqual(ledger.calculate_balance(self.user), Decimal('0.00'))

    def test_add_funds_writes_ledger_row(self):
        wallet, txn = ledger.add_funds(self.user, "500")

        self.assertEqual(wallet.balance, Decimal('500.00'))
        self.assertEqual(txn.transaction_type, WalletTransaction.CREDIT)
        self.assertEqual(txn.balance_after, Decimal('500.00'))
        self.assertEqual(txn.description, "Funds Added")
        self.assertEqual(txn.status, WalletTransaction.COMPLETED)

    def test_balance_after_tracks_each_step(self):
        ledger.add_funds(self.user, 500)
        ledger.debit(self.user, 120)
        wallet, txn = ledger.add_funds(self.user, "30.50")

        self.assertEqual(txn.balance_after, Decimal('410.50'))
        afters = list(wallet.transactions.order_by('id').values_list('balance_after', flat=True))
        self.assertEqual(afters, [Decimal('500.00'), Decimal('380.00'), Decimal('410.50')])
        self.assertEqual(ledger.calculate_balance(self.user), wallet.balance)

    def test_debit_more_than_balance(self):
        ledger.add_funds(self.user, 100)

        with self.assertRaises(InsufficientFunds):
            ledger.debit(self.user, "100.01")

        wallet = ledger.get_wallet(self.user)
        self.assertEqual(wallet.balance, Decimal('100.00'))
        self.assertEqual(wallet.transactions.count(), 1)

    def test_sequential_double_spend(self):
        ledger.add_funds(self.user, 100)
        ledger.debit(self.user, 80, reference_id="ORDER_A")

        with self.assertRaises(InsufficientFunds):
            ledger.debit(self.user, 80, reference_id="ORDER_B")

        wallet = ledger.get_wallet(self.user)
        self.assertEqual(wallet.balance, Decimal('20.00'))
        self.assertFalse(WalletTransaction.objects.filter(reference_id="ORDER_B").exists())

    def test_debit_exact_balance(self):
        ledger.add_funds(self.user, 75)
        wallet, txn = ledger.debit(self.user, 75)

        self.assertEqual(wallet.balance, Decimal('0.00'))
        self.assertEqual(txn.balance_after, Decimal('0.00'))

    def test_invalid_amounts(self):
        for value in ("abc", "-5", "0", "", None, "NaN", "Infinity", "-1e30", "0.004"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidAmount):
                    ledger.add_funds(self.user, value)

    def test_topup_limits(self):
        with self.assertRaises(InvalidAmount) as raised:
            ledger.add_funds(self.user, "0.50")
        self.assertEqual(raised.exception.message, "Minimum top-up amount is ₹1.")

        with self.assertRaises(InvalidAmount) as raised:
            ledger.add_funds(self.user, "50000.01")
        self.assertEqual(raised.exception.message, "Maximum top-up amount is ₹50,000 per transaction.")

        wallet, _ = ledger.add_funds(self.user, 50000)
        self.assertEqual(wallet.balance, Decimal('50000.00'))

    def test_huge_topup_hits_maximum(self):
        with self.assertRaises(InvalidAmount) as raised:
            ledger.add_funds(self.user, "1e30")
        self.assertEqual(raised.exception.message, "Maximum top-up amount is ₹50,000 per transaction.")

        with self.assertRaises(InvalidAmount):
            ledger.validate_payment(self.user, "1e30")
        with self.assertRaises(InvalidAmount):
            ledger.credit(self.user, "1e30", "Refund")

    def test_amounts_rounding_to_zero_are_rejected(self):
        ledger.add_funds(self.user, 10)

        with self.assertRaises(InvalidAmount):
            ledger.debit(self.user, "0.001")
        with self.assertRaises(InvalidAmount):
            ledger.credit(self.user, "0.004", "Refund")

        wallet = ledger.get_wallet(self.user)
        self.assertEqual(wallet.balance, Decimal('10.00'))
        self.assertEqual(wallet.transactions.count(), 1)
        self.assertFalse(WalletTransaction.objects.filter(amount__lte=0).exists())

    def test_sub_paisa_amounts_round(self):
        ledger.add_funds(self.user, 10)
        wallet, txn = ledger.debit(self.user, "0.006")

        self.assertEqual(txn.amount, Decimal('0.01'))
        self.assertEqual(wallet.balance, Decimal('9.99'))

    def test_internal_credit_skips_topup_limits(self):
        wallet, _ = ledger.credit(self.user, 75000, "Refund")
        self.assertEqual(wallet.balance, Decimal('75000.00'))

    def test_reference_id_format(self):
        self.assertRegex(generate_reference_id(), r'^TXN-\d{12}$')
        _, txn = ledger.add_funds(self.user, 10)
        self.assertTrue(re.fullmatch(r'TXN-\d{12}', txn.reference_id))

    def test_duplicate_explicit_reference_is_rejected(self):
        ledger.add_funds(self.user, 100)
        ledger.debit(self.user, 10, reference_id="ORDER_SA-1")

        with self.assertRaises(IntegrityError):
            ledger.debit(self.user, 10, reference_id="ORDER_SA-1")

        self.assertEqual(ledger.get_wallet(self.user).balance, Decimal('90.00'))

    def test_suspended_wallet_cannot_move_money(self):
        ledger.add_funds(self.user, 100)
        Wallet.objects.filter(user=self.user).update(status=Wallet.SUSPENDED)

        with self.assertRaises(WalletInactive):
            ledger.debit(self.user, 10)
        with self.assertRaises(WalletInactive):
            ledger.add_funds(self.user, 10)

    def test_summary_and_history(self):
        ledger.add_funds(self.user, 300)
        ledger.debit(self.user, 50)
        ledger.debit(self.user, 25)

        summary = ledger.get_wallet_summary(self.user)
        self.assertEqual(summary['currentBalance'], 225.0)
        self.assertEqual(summary['totalCredits'], 300.0)
        self.assertEqual(summary['totalDebits'], 75.0)
        self.assertEqual(summary['transactionCount'], 3)
        self.assertEqual(summary['recentTransactions'][0]['amount'], 25.0)

        debits = ledger.get_transactions_by_type(self.user, WalletTransaction.DEBIT)
        self.assertEqual(len(debits), 2)
        self.assertEqual(len(ledger.get_player_transactions(self.user, limit=2)), 2)

    def test_validate_payment(self):
        ledger.add_funds(self.user, 100)

        result = ledger.validate_payment(self.user, 150)
        self.assertFalse(result['hasEnoughBalance'])
        self.assertEqual(result['shortfall'], 50.0)

        result = ledger.validate_payment(self.user, 100)
        self.assertTrue(result['hasEnoughBalance'])
        self.assertEqual(result['shortfall'], 0.0)

    def test_transaction_lookup_is_owner_only(self):
        _, txn = ledger.add_funds(self.user, 10)
        stranger = make_user("other@example.com")

        self.assertEqual(ledger.get_transaction_by_reference(self.user, txn.reference_id), txn)
        with self.assertRaises(TransactionNotFound):
            ledger.get_transaction_by_reference(stranger, txn.reference_id)


@override_settings(WALLET_OPENING_BALANCE=0)
class ConcurrentDebitTest(TransactionTestCase):

    def test_debit_from_stale_read_cannot_overspend(self):
        user = make_user()
        ledger.add_funds(user, 60)
        # both purchases read the wallet at 60 before either debits
        stale = Wallet.objects.get(user=user)

        ledger.debit(user, 50, reference_id="ORDER_A")

        self.assertEqual(stale.balance, Decimal('60.00'))
        with mock.patch.object(ledger, '_active_wallet', return_value=stale):
            with self.assertRaises(InsufficientFunds):
                ledger.debit(user, 50, reference_id="ORDER_B")

        wallet = Wallet.objects.get(user=user)
        self.assertEqual(wallet.balance, Decimal('10.00'))
        debits = wallet.transactions.filter(transaction_type=WalletTransaction.DEBIT)
        self.assertEqual(list(debits.values_list('reference_id', flat=True)), ["ORDER_A"])
        self.assertEqual(ledger.calculate_balance(user), wallet.balance)


@override_settings(WALLET_OPENING_BALANCE=0)
class WalletViewsTest(TestCase):

    def setUp(self):
        self.user = make_user()
        self.client.force_login(self.user)

    def test_requires_login(self):
        self.client.logout()
        response = self.client.get(reverse('wallet:balance'))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], "Authentication required")

    def test_players_only(self):
        manager = make_user("manager@example.com", role=UserProfile.MANAGER)
        self.client.force_login(manager)

        response = self.client.get(reverse('wallet:balance'))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error'], "Access denied. Players only.")

    def test_add_funds(self):
        response = self.client.post(reverse('wallet:add_funds'), {'amount': '250'})

        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['newBalance'], 250.0)
        self.assertEqual(body['formattedBalance'], "₹250.00")
        self.assertEqual(body['transaction']['transactionType'], "Credit")

        response = self.client.get(reverse('wallet:balance'))
        self.assertEqual(response.json()['calculatedBalance'], 250.0)

    def test_add_funds_rejects_bad_amount(self):
        response = self.client.post(reverse('wallet:add_funds'), {'amount': '-10'})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], "Invalid amount. Please enter a positive number.")

        response = self.client.post(reverse('wallet:add_funds'), {'amount': '1e30'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], "Maximum top-up amount is ₹50,000 per transaction.")

        response = self.client.post(reverse('wallet:validate_payment'), {'amount': '1e30'})
        self.assertEqual(response.status_code, 400)

    def test_transactions_filter_and_paging(self):
        ledger.add_funds(self.user, 100)
        ledger.add_funds(self.user, 100)
        ledger.debit(self.user, 30)

        response = self.client.get(reverse('wallet:transactions'), {'type': 'credit', 'limit': 1})
        body = response.json()
        self.assertEqual(body['total'], 2)
        self.assertEqual(len(body['transactions']), 1)
        self.assertTrue(body['hasMore'])

        response = self.client.get(reverse('wallet:transactions'), {'page': 9})
        self.assertEqual(response.json()['transactions'], [])

    def test_transaction_detail(self):
        _, txn = ledger.add_funds(self.user, 10)

        response = self.client.get(reverse('wallet:transaction_detail', args=[txn.reference_id]))
        self.assertEqual(response.json()['transaction']['referenceId'], txn.reference_id)

        response = self.client.get(reverse('wallet:transaction_detail', args=['TXN-000000000000']))
        self.assertEqual(response.status_code, 404)

    def test_validate_payment_view(self):
        response = self.client.post(
            reverse('wallet:validate_payment'),
            data={'amount': 20},
            content_type='application/json',
        )
        self.assertFalse(response.json()['hasEnoughBalance'])


@override_settings(WALLET_OPENING_BALANCE=0)
class WalletCommandsTest(TestCase):

    def test_seed_wallets_uses_role_credit_once(self):
        player = make_user()
        organizer = make_user("org@example.com", role=UserProfile.ORGANIZER)

        call_command('seed_wallets', stdout=StringIO())
        call_command('seed_wallets', stdout=StringIO())

        self.assertEqual(ledger.get_wallet(player).balance, Decimal('1000.00'))
        self.assertEqual(ledger.get_wallet(organizer).balance, Decimal('5000.00'))
        self.assertTrue(WalletTransaction.objects.filter(reference_id=f"WELCOME_{player.pk}").exists())

    def test_reconcile_reports_and_fixes(self):
        user = make_user()
        ledger.add_funds(user, 100)
        Wallet.objects.filter(user=user).update(balance=Decimal('70.00'))

        out = StringIO()
        call_command('reconcile_wallets', stdout=out)
        self.assertIn("stored 70.00, ledger 100.00", out.getvalue())
        self.assertEqual(ledger.get_wallet(user).balance, Decimal('70.00'))

        call_command('reconcile_wallets', '--fix', stdout=StringIO())
        self.assertEqual(ledger.get_wallet(user).balance, Decimal('100.00'))
