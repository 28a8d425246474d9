import json

from django.test import RequestFactory, SimpleTestCase

from cart.exceptions import CartConflict
from store.exceptions import ProductNotFound

from .exceptions import ShopError, error_response
from .http import is_ajax, request_data
from .middleware import ShopErrorMiddleware


class ErrorResponseTest(SimpleTestCase):

    def test_status_and_message(self):
        response = error_response(CartConflict())
        self.assertEqual(response.status_code, 409)
        self.assertFalse(json.loads(response.content)['success'])

        response = error_response(ProductNotFound())
        self.assertEqual(response.status_code, 404)
        self.assertEqual(json.loads(response.content)['error'], "Product not found")

    def test_custom_message(self):
        self.assertEqual(ShopError("Nope").message, "Nope")


class ShopErrorMiddlewareTest(SimpleTestCase):

    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = ShopErrorMiddleware(lambda request: None)

    def test_shop_error_becomes_json(self):
        request = self.factory.get('/cart/')
        response = self.middleware.process_exception(request, ShopError("Out of luck"))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(json.loads(response.content)['error'], "Out of luck")

    def test_unexpected_error_on_json_endpoint(self):
        request = self.factory.get('/wallet/balance/', HTTP_ACCEPT='application/json')
        with self.assertLogs('sportsamigo.middleware', level='ERROR'):
            response = self.middleware.process_exception(request, RuntimeError("boom"))

        self.assertEqual(response.status_code, 500)
        self.assertNotIn("boom", response.content.decode())

    def test_page_errors_fall_through(self):
        request = self.factory.get('/shop/')
        self.assertIsNone(self.middleware.process_exception(request, RuntimeError("boom")))


class RequestDataTest(SimpleTestCase):

    def setUp(self):
        self.factory = RequestFactory()

    def test_json_body(self):
        request = self.factory.post('/cart/update/', data={'itemId': 3}, content_type='application/json')
        self.assertEqual(request_data(request)['itemId'], 3)
        self.assertTrue(is_ajax(request))

    def test_bad_json_is_empty(self):
        request = self.factory.post('/cart/update/', data='{not json', content_type='application/json')
        self.assertEqual(request_data(request), {})

    def test_form_body(self):
        request = self.factory.post('/cart/update/', {'itemId': '3'})
        self.assertEqual(request_data(request)['itemId'], '3')
        self.assertFalse(is_ajax(request))
