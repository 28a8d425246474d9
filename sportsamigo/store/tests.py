from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse

from .exceptions import ProductNotFound
from .models import Product


def make_product(name, category='Equipment', stock=10, featured=False, description=None, **kwargs):
    return Product.objects.create(
        name=name,
        description=description or f"{name} for everyday training",
        price=Decimal(kwargs.pop('price', '20.00')),
        category=category,
        stock=stock,
        featured=featured,
        **kwargs,
    )


class CatalogQueryTest(TestCase):

    def setUp(self):
        self.football = make_product("Football", featured=True)
        self.jersey = make_product("Team Jersey", category='Apparel', featured=True,
                                   description="Moisture-wicking polyester")
        self.cap = make_product("Baseball Cap", category='Accessories', stock=0)
        self.hidden = make_product("Old Racket", is_active=False)

    def test_get_all_items_filters(self):
        self.assertNotIn(self.hidden, Product.objects.get_all_items())
        self.assertEqual(list(Product.objects.get_all_items(category='Apparel')), [self.jersey])
        self.assertNotIn(self.cap, Product.objects.get_all_items(in_stock=True))
        self.assertEqual(set(Product.objects.get_all_items(featured=True)), {self.football, self.jersey})

    def test_newest_first(self):
        self.assertEqual(Product.objects.get_all_items().first(), self.cap)

    def test_search_is_case_insensitive_over_fields(self):
        self.assertEqual(list(Product.objects.search_items("FOOT")), [self.football])
        self.assertEqual(list(Product.objects.search_items("polyester")), [self.jersey])
        self.assertEqual(list(Product.objects.search_items("accessories")), [self.cap])
        self.assertEqual(list(Product.objects.search_items("   ")), [])

    def test_search_ordered_by_name(self):
        names = [p.name for p in Product.objects.search_items("training")]
        self.assertEqual(names, sorted(names))

    def test_get_item(self):
        self.assertEqual(Product.objects.get_item(self.football.pk), self.football)
        with self.assertRaises(ProductNotFound):
            Product.objects.get_item(self.hidden.pk)

    def test_reduce_stock_is_conditional(self):
        self.assertTrue(Product.objects.reduce_stock(self.football.pk, 4))
        self.assertFalse(Product.objects.reduce_stock(self.football.pk, 7))
        self.football.refresh_from_db()
        self.assertEqual(self.football.stock, 6)

    def test_default_image(self):
        self.assertEqual(self.football.image_url, '/static/images/shop/default-product.jpg')


class CatalogViewsTest(TestCase):

    def setUp(self):
        self.football = make_product("Football", featured=True, stock=5)
        self.cap = make_product("Baseball Cap", category='Accessories', stock=0)
        self.long = make_product("Tennis Racket", description="x" * 300)

    def test_shop_lists_in_stock_items(self):
        body = self.client.get(reverse('store:shop')).json()
        names = {p['name'] for p in body['products']}
        self.assertEqual(names, {"Football", "Tennis Racket"})
        self.assertIn('Sports Gear', body['categories'])

    def test_shop_search_and_category(self):
        body = self.client.get(reverse('store:shop'), {'search': 'ball'}).json()
        self.assertEqual([p['name'] for p in body['products']], ["Football"])

        body = self.client.get(reverse('store:shop'), {'category': 'Accessories'}).json()
        self.assertEqual(body['products'], [])

    def test_search_term_too_short(self):
        response = self.client.get(reverse('store:search'), {'q': 'b'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Search term too short')

    def test_search_truncates_description(self):
        body = self.client.get(reverse('store:search'), {'q': 'racket'}).json()
        self.assertEqual(len(body['products'][0]['description']), 103)

    def test_featured_and_category(self):
        body = self.client.get(reverse('store:featured')).json()
        self.assertEqual([p['name'] for p in body['products']], ["Football"])

        body = self.client.get(reverse('store:category', args=['Accessories'])).json()
        self.assertEqual([p['name'] for p in body['products']], ["Baseball Cap"])

    def test_product_detail(self):
        response = self.client.get(reverse('store:product', args=[self.football.pk]))
        self.assertEqual(response.json()['product']['price'], 20.0)

        response = self.client.get(reverse('store:product', args=[999999]))
        self.assertEqual(response.status_code, 404)

    def test_add_to_cart(self):
        response = self.client.post(reverse('store:add_to_cart', args=[self.football.pk]), {'quantity': 2})
        self.assertEqual(response.json()['count'], 2)

        response = self.client.post(reverse('store:add_to_cart', args=[self.cap.pk]), {'quantity': 1})
        self.assertFalse(response.json()['success'])

    def test_checkout_redirect(self):
        response = self.client.get(reverse('store:checkout'))
        self.assertRedirects(response, reverse('orders:checkout'), fetch_redirect_response=False)

    def test_orders_need_login(self):
        response = self.client.get(reverse('store:orders'))
        self.assertEqual(response.status_code, 401)


class SeedShopTest(TestCase):

    def test_seed_is_idempotent(self):
        call_command('seed_shop', stdout=StringIO())
        count = Product.objects.count()
        call_command('seed_shop', stdout=StringIO())

        self.assertEqual(Product.objects.count(), count)
        self.assertGreaterEqual(Product.objects.get_featured_items().count(), 4)
        self.assertEqual(Product.objects.get(name="Professional Football").price, Decimal('45.99'))
