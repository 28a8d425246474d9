import re
from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.models import UserProfile
from cart.models import Cart
from store.exceptions import InsufficientStock
from store.models import Product
from wallet import ledger
from wallet.exceptions import InsufficientFunds
from wallet.models import WalletTransaction

from .checkout import checkout
from .exceptions import (
    EmptyCart,
    IncompleteShippingInfo,
    InsufficientWalletBalance,
    InvalidPaymentMethod,
    WalletNotAllowed,
)
from .models import Order

SHIPPING = {
    'full_name': 'Asha Rao',
    'phone': '9876543210',
    'email': '',
    'street': '12 MG Road',
    'area': 'Indiranagar',
    'city': 'Bengaluru',
    'state': 'Karnataka',
    'landmark': '',
}

CHECKOUT_POST = {
    'fullName': 'Asha Rao',
    'phone': '9876543210',
    'street': '12 MG Road',
    'area': 'Indiranagar',
    'city': 'Bengaluru',
    'state': 'Karnataka',
}


def make_user(email="player@example.com", role=UserProfile.PLAYER):
    user = User.objects.create_user(username=email, email=email, password="pass12345")
    UserProfile.objects.create(user=user, role=role)
    return user


def make_product(name="Football", price="45.99", stock=10):
    return Product.objects.create(
        name=name, description=f"{name} for training", price=Decimal(price), category='Equipment', stock=stock,
    )


@override_settings(WALLET_OPENING_BALANCE=0)
class CheckoutServiceTest(TestCase):

    def setUp(self):
        self.user = make_user()
        self.ball = make_product("Football", "45.99", stock=5)
        self.bottle = make_product("Water Bottle", "12.99", stock=100)
        self.cart = Cart.objects.create(user=self.user)

    def test_empty_cart(self):
        with self.assertRaises(EmptyCart):
            checkout(self.cart, SHIPPING, Order.COD, self.user)
        self.assertFalse(Order.objects.exists())

    def test_incomplete_shipping(self):
        self.cart.add_item(self.ball, 1)
        for field in ('full_name', 'phone', 'street', 'area', 'city', 'state'):
            with self.subTest(field=field):
                with self.assertRaises(IncompleteShippingInfo):
                    checkout(self.cart, {**SHIPPING, field: '  '}, Order.COD, self.user)
        self.assertFalse(Order.objects.exists())

    def test_invalid_payment_method(self):
        self.cart.add_item(self.ball, 1)
        with self.assertRaises(InvalidPaymentMethod):
            checkout(self.cart, SHIPPING, 'Bitcoin', self.user)

    def test_cod_order(self):
        self.cart.add_item(self.ball, 2)
        self.cart.add_item(self.bottle, 1)

        order = checkout(self.cart, SHIPPING, Order.COD, self.user)

        self.assertTrue(re.fullmatch(r'SA-\d{9}', order.order_number))
        self.assertEqual(order.status, Order.CONFIRMED)
        self.assertEqual(order.payment_status, Order.PAYMENT_PENDING)
        self.assertEqual(order.total_amount, Decimal('104.97'))
        self.assertEqual(order.item_count, 3)
        self.assertEqual(order.email, self.user.email)
        self.assertEqual(order.items.count(), 2)
        self.assertIsNotNone(order.expected_delivery)

        self.ball.refresh_from_db()
        self.assertEqual(self.ball.stock, 3)
        self.cart.refresh_from_db()
        self.assertEqual(self.cart.item_count, 0)
        self.assertFalse(WalletTransaction.objects.exists())

    def test_wallet_order(self):
        ledger.add_funds(self.user, 100)
        self.cart.add_item(self.ball, 2)

        order = checkout(self.cart, SHIPPING, Order.WALLET, self.user)

        self.assertEqual(order.payment_status, Order.PAYMENT_PAID)
        wallet = ledger.get_wallet(self.user)
        self.assertEqual(wallet.balance, Decimal('8.02'))

        txn = WalletTransaction.objects.get(order=order)
        self.assertEqual(txn.reference_id, f"ORDER_{order.order_number}")
        self.assertEqual(txn.transaction_type, WalletTransaction.DEBIT)
        self.assertEqual(txn.description, f"Shop purchase - Order #{order.order_number}")
        self.assertEqual(txn.balance_after, Decimal('8.02'))

    def test_insufficient_wallet_balance_changes_nothing(self):
        ledger.add_funds(self.user, 50)
        self.cart.add_item(self.ball, 2)

        with self.assertRaises(InsufficientWalletBalance) as raised:
            checkout(self.cart, SHIPPING, Order.WALLET, self.user)

        self.assertIsInstance(raised.exception, InsufficientFunds)
        self.assertEqual(
            raised.exception.message,
            "Insufficient wallet balance. You have ₹50.00, but need ₹91.98",
        )
        self.assertFalse(Order.objects.exists())
        self.ball.refresh_from_db()
        self.assertEqual(self.ball.stock, 5)
        self.assertEqual(self.cart.items.count(), 1)
        self.assertEqual(ledger.get_wallet(self.user).balance, Decimal('50.00'))

    def test_sold_out_meanwhile_rolls_back(self):
        ledger.add_funds(self.user, 500)
        self.cart.add_item(self.ball, 3)
        Product.objects.filter(pk=self.ball.pk).update(stock=2)

        with self.assertRaises(InsufficientStock):
            checkout(self.cart, SHIPPING, Order.WALLET, self.user)

        self.assertFalse(Order.objects.exists())
        self.assertEqual(ledger.get_wallet(self.user).balance, Decimal('500.00'))
        self.assertEqual(self.cart.items.count(), 1)

    def test_wallet_only_for_players(self):
        manager = make_user("manager@example.com", role=UserProfile.MANAGER)
        cart = Cart.objects.create(user=manager)
        cart.add_item(self.ball, 1)

        with self.assertRaises(WalletNotAllowed):
            checkout(cart, SHIPPING, Order.WALLET, manager)

    def test_second_checkout_cannot_double_spend(self):
        ledger.add_funds(self.user, 100)
        self.cart.add_item(self.ball, 2)
        checkout(self.cart, SHIPPING, Order.WALLET, self.user)

        self.cart.add_item(self.ball, 1)
        self.cart.add_item(self.bottle, 1)
        with self.assertRaises(InsufficientWalletBalance):
            checkout(self.cart, SHIPPING, Order.WALLET, self.user)

        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(ledger.get_wallet(self.user).balance, Decimal('8.02'))


@override_settings(WALLET_OPENING_BALANCE=0)
class CheckoutViewsTest(TestCase):

    def setUp(self):
        self.user = make_user()
        self.product = make_product(stock=10)

    def test_anonymous_is_sent_to_shop_login(self):
        response = self.client.get(reverse('orders:checkout'))
        self.assertRedirects(response, '/shop-login/?returnUrl=%2Fcheckout%2F', fetch_redirect_response=False)

    def test_empty_cart_goes_back_to_cart(self):
        self.client.force_login(self.user)
        response = self.client.get(reverse('orders:checkout'))
        self.assertRedirects(response, '/cart/?error=empty', fetch_redirect_response=False)

    def test_checkout_page(self):
        ledger.add_funds(self.user, 20)
        self.client.force_login(self.user)
        self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 1})

        body = self.client.get(reverse('orders:checkout')).json()
        self.assertEqual(body['walletBalance'], 20.0)
        self.assertTrue(body['canUseWallet'])
        self.assertEqual(body['cart']['itemCount'], 1)

    def test_place_cod_order(self):
        self.client.force_login(self.user)
        self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 2})

        response = self.client.post(reverse('orders:checkout'), {**CHECKOUT_POST, 'paymentMethod': 'COD'})

        body = response.json()
        self.assertTrue(body['success'])
        order = Order.objects.get(order_number=body['orderId'])
        self.assertEqual(order.payment_method, Order.COD)
        self.assertEqual(body['redirectUrl'], reverse('orders:order_success', args=[order.order_number]))

        detail = self.client.get(reverse('orders:order_detail', args=[order.order_number])).json()
        self.assertEqual(detail['order']['itemCount'], 2)
        self.assertEqual(self.client.get(reverse('orders:orders_list')).json()['total'], 1)

    def test_missing_fields(self):
        self.client.force_login(self.user)
        self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 1})

        response = self.client.post(reverse('orders:checkout'), {'fullName': 'Asha', 'paymentMethod': 'COD'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], "Please fill in all required fields")

    def test_empty_cart_post(self):
        self.client.force_login(self.user)
        response = self.client.post(reverse('orders:checkout'), {**CHECKOUT_POST, 'paymentMethod': 'COD'})
        self.assertEqual(response.json()['error'], "Cart is empty")

    def test_post_requires_login(self):
        response = self.client.post(reverse('orders:checkout'), CHECKOUT_POST)
        self.assertEqual(response.status_code, 401)

    def test_orders_are_private(self):
        other = make_user("other@example.com")
        cart = Cart.objects.create(user=other)
        cart.add_item(self.product, 1)
        order = checkout(cart, SHIPPING, Order.COD, other)

        self.client.force_login(self.user)
        response = self.client.get(reverse('orders:order_detail', args=[order.order_number]))
        self.assertEqual(response.status_code, 404)

    def test_cancel_and_reorder_are_not_available(self):
        self.client.force_login(self.user)
        cart = Cart.objects.get(user=self.user)
        cart.add_item(self.product, 1)
        order = checkout(cart, SHIPPING, Order.COD, self.user)

        for name in ('orders:cancel_order', 'orders:reorder_items'):
            body = self.client.post(reverse(name, args=[order.order_number])).json()
            self.assertFalse(body['success'])

        order.refresh_from_db()
        self.assertEqual(order.status, Order.CONFIRMED)

    def test_invoice_pdf(self):
        self.client.force_login(self.user)
        cart = Cart.objects.get(user=self.user)
        cart.add_item(self.product, 2)
        order = checkout(cart, SHIPPING, Order.COD, self.user)

        response = self.client.get(reverse('orders:download_invoice', args=[order.order_number]))

        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertIn(f'Invoice_{order.order_number}.pdf', response['Content-Disposition'])
        self.assertTrue(response.content.startswith(b'%PDF'))
