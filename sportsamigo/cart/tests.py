from decimal import Decimal

from django.contrib.auth.models import User
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.models import UserProfile
from store.exceptions import InsufficientStock, ProductNotFound, ProductUnavailable
from store.models import Product

from .context import CART_SESSION_KEY
from .exceptions import CartConflict, InvalidQuantity, InvalidRevision, ItemNotInCart
from .models import Cart


def make_product(name="Football", price="45.99", stock=10, **kwargs):
    return Product.objects.create(
        name=name,
        description=f"{name} for training",
        price=Decimal(price),
        category=kwargs.pop('category', 'Equipment'),
        stock=stock,
        **kwargs,
    )


def make_player(email="player@example.com", role=UserProfile.PLAYER):
    user = User.objects.create_user(username=email, email=email, password="pass12345")
    UserProfile.objects.create(user=user, role=role)
    return user


class CartTotalsTest(TestCase):

    def setUp(self):
        self.ball = make_product("Football", "45.99", stock=25)
        self.jersey = make_product("Jersey", "35.00", stock=50, category='Apparel')
        self.cart = Cart.objects.create()

    def assertTotalsMatchLines(self, cart):
        cart.refresh_from_db()
        lines = list(cart.items.all())
        self.assertEqual(cart.item_count, sum(line.quantity for line in lines))
        self.assertEqual(cart.total_amount, sum((line.price * line.quantity for line in lines), Decimal('0')))

    def test_add_same_product_merges_line(self):
        self.cart.add_item(self.ball, 1)
        self.cart.add_item(self.ball.pk, 2)

        self.assertEqual(self.cart.items.count(), 1)
        self.assertEqual(self.cart.items.get().quantity, 3)
        self.assertEqual(self.cart.item_count, 3)
        self.assertEqual(self.cart.total_amount, Decimal('137.97'))
        self.assertTotalsMatchLines(self.cart)

    def test_totals_follow_add_update_remove(self):
        self.cart.add_item(self.ball, 2)
        self.cart.add_item(self.jersey, 1)
        self.assertTotalsMatchLines(self.cart)

        self.cart.update_quantity(self.jersey.pk, 4)
        self.assertEqual(self.cart.item_count, 6)
        self.assertTotalsMatchLines(self.cart)

        self.cart.remove_item(self.ball.pk)
        self.assertEqual(self.cart.item_count, 4)
        self.assertEqual(self.cart.total_amount, Decimal('140.00'))
        self.assertTotalsMatchLines(self.cart)

    def test_update_to_zero_removes_line(self):
        self.cart.add_item(self.ball, 2)
        self.cart.update_quantity(self.ball.pk, 0)

        self.assertTrue(self.cart.is_empty())
        self.assertEqual(self.cart.item_count, 0)
        self.assertEqual(self.cart.total_amount, Decimal('0'))

    def test_negative_quantity_rejected(self):
        self.cart.add_item(self.ball, 1)
        with self.assertRaises(InvalidQuantity):
            self.cart.update_quantity(self.ball.pk, -1)
        with self.assertRaises(InvalidQuantity):
            self.cart.add_item(self.ball, 0)

    def test_price_is_snapshot_at_add_time(self):
        self.cart.add_item(self.ball, 1)
        Product.objects.filter(pk=self.ball.pk).update(price=Decimal('99.00'))
        self.cart.add_item(self.jersey, 1)

        self.assertEqual(self.cart.items.get(product=self.ball).price, Decimal('45.99'))

    def test_clear_empties_cart(self):
        self.cart.add_item(self.ball, 2)
        self.cart.clear()

        self.assertTrue(self.cart.is_empty())
        self.assertEqual(self.cart.to_dict()['items'], [])

    def test_remove_missing_line(self):
        with self.assertRaises(ItemNotInCart):
            self.cart.remove_item(self.ball.pk)


class CartStockTest(TestCase):

    def setUp(self):
        self.cart = Cart.objects.create()

    def test_cannot_exceed_stock(self):
        product = make_product(stock=3)
        self.cart.add_item(product, 2)

        with self.assertRaises(InsufficientStock) as raised:
            self.cart.add_item(product, 2)
        self.assertEqual(raised.exception.message, "Only 3 left for Football.")
        self.assertEqual(self.cart.items.get().quantity, 2)

    @override_settings(MAX_CART_QTY=5)
    def test_per_product_limit(self):
        product = make_product(stock=20)
        with self.assertRaises(InvalidQuantity) as raised:
            self.cart.add_item(product, 6)
        self.assertEqual(raised.exception.message, "Maximum 5 per product allowed!")

    def test_unknown_product(self):
        with self.assertRaises(ProductNotFound):
            self.cart.add_item(999999, 1)

    def test_inactive_product(self):
        product = make_product(is_active=False)
        with self.assertRaises(ProductUnavailable):
            self.cart.add_item(product, 1)


class CartRevisionTest(TestCase):

    def setUp(self):
        self.product = make_product(stock=10)
        self.cart = Cart.objects.create()

    def test_each_mutation_bumps_revision(self):
        self.cart.add_item(self.product, 1, revision=0)
        self.cart.update_quantity(self.product.pk, 2, revision=1)

        self.cart.refresh_from_db()
        self.assertEqual(self.cart.revision, 2)

    def test_stale_revision_conflicts(self):
        other_copy = Cart.objects.get(pk=self.cart.pk)
        self.cart.add_item(self.product, 1)

        with self.assertRaises(CartConflict):
            other_copy.add_item(self.product, 1)

        self.cart.refresh_from_db()
        self.assertEqual(self.cart.item_count, 1)
        self.assertEqual(other_copy.revision, 0)

    def test_failed_mutation_keeps_revision(self):
        self.cart.add_item(self.product, 1)
        with self.assertRaises(InsufficientStock):
            self.cart.add_item(self.product, 50)

        self.assertEqual(self.cart.revision, 1)
        self.cart.refresh_from_db()
        self.assertEqual(self.cart.revision, 1)

    def test_malformed_revision(self):
        with self.assertRaises(InvalidRevision):
            self.cart.add_item(self.product, 1, revision="abc")

        self.cart.refresh_from_db()
        self.assertEqual(self.cart.revision, 0)
        self.assertEqual(self.cart.item_count, 0)


class CartViewsTest(TestCase):

    def setUp(self):
        self.product = make_product(stock=5)

    def test_guest_can_add_and_count(self):
        response = self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 2})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['count'], 2)
        self.assertEqual(body['cart']['items'][0]['itemId'], self.product.pk)

        response = self.client.get(reverse('cart:cart_count'))
        self.assertEqual(response.json()['count'], 2)

    def test_add_over_stock_is_rejected(self):
        response = self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 9})

        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_stale_revision_gets_409(self):
        self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 1})
        response = self.client.post(
            reverse('cart:update_cart_quantity'),
            {'itemId': self.product.pk, 'quantity': 2, 'revision': 0},
        )

        self.assertEqual(response.status_code, 409)

    def test_malformed_revision_gets_400(self):
        self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 1})
        response = self.client.post(
            reverse('cart:update_cart_quantity'),
            {'itemId': self.product.pk, 'quantity': 2, 'revision': 'latest'},
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], "Invalid cart revision")

    def test_update_requires_item_id(self):
        response = self.client.post(reverse('cart:update_cart_quantity'), {'quantity': 2})
        self.assertEqual(response.json()['error'], "Item ID is required")

    def test_json_body_is_accepted(self):
        response = self.client.post(
            reverse('cart:add_to_cart', args=[self.product.pk]),
            data={'quantity': 3},
            content_type='application/json',
        )
        self.assertEqual(response.json()['count'], 3)

    def test_empty_cart_message(self):
        response = self.client.get(reverse('cart:cart') + '?error=empty')
        self.assertIn("Your cart is empty", response.json()['error'])


class CartLoginTest(TestCase):

    def setUp(self):
        self.product = make_product(stock=10)
        self.user = make_player()

    def test_guest_cart_is_claimed_on_login(self):
        self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 2})
        guest_id = self.client.session[CART_SESSION_KEY]

        response = self.client.post(reverse('accounts:login'), {'email': self.user.email, 'password': 'pass12345'})
        self.assertEqual(response.status_code, 302)

        cart = Cart.objects.get(user=self.user)
        self.assertEqual(cart.pk, guest_id)
        self.assertEqual(cart.item_count, 2)

    def test_guest_cart_merges_into_existing_user_cart(self):
        existing = Cart.objects.create(user=self.user)
        existing.add_item(self.product, 1)

        self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 2})
        self.client.post(reverse('accounts:login'), {'email': self.user.email, 'password': 'pass12345'})

        existing.refresh_from_db()
        self.assertEqual(existing.item_count, 3)
        self.assertEqual(Cart.objects.filter(user__isnull=True).count(), 0)

    def test_cart_survives_logout(self):
        self.client.force_login(self.user)
        self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 2})

        self.client.post(reverse('accounts:logout'))

        response = self.client.get(reverse('cart:cart'))
        body = response.json()
        self.assertFalse(body['authenticated'])
        self.assertEqual(body['cart']['itemCount'], 2)
        self.assertIsNone(body['cart']['userId'])

    def test_logout_then_login_keeps_quantities(self):
        self.client.post(reverse('accounts:login'), {'email': self.user.email, 'password': 'pass12345'})
        self.client.post(reverse('cart:add_to_cart', args=[self.product.pk]), {'quantity': 2})

        self.client.post(reverse('accounts:logout'))
        self.client.post(reverse('accounts:login'), {'email': self.user.email, 'password': 'pass12345'})

        body = self.client.get(reverse('cart:cart')).json()
        self.assertEqual(body['cart']['itemCount'], 2)
        self.assertEqual(body['cart']['items'][0]['quantity'], 2)
        self.assertEqual(Cart.objects.count(), 1)
