import logging
from contextlib import contextmanager
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import User
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone

from store.exceptions import InsufficientStock, ProductNotFound, ProductUnavailable
from store.models import Product

from .exceptions import CartConflict, InvalidQuantity, InvalidRevision, ItemNotInCart

logger = logging.getLogger(__name__)


def parse_quantity(value, default=None):
    if value in (None, '') and default is not None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidQuantity()


def parse_revision(value):
    try:
        revision = int(value)
    except (TypeError, ValueError):
        raise InvalidRevision()
    if revision < 0:
        raise InvalidRevision()
    return revision


class Cart(models.Model):
    """A shopper's cart.

    Guest carts have no user and are found through the id kept in the
    session; logging in stamps the user onto them. Every mutation claims
    the next ``revision`` with a compare-and-swap, so two writers holding
    the same revision cannot both commit.
    """

    user = models.OneToOneField(User, on_delete=models.CASCADE, null=True, blank=True, related_name='cart')
    revision = models.PositiveIntegerField(default=0)
    item_count = models.PositiveIntegerField(default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        if self.user:
            return f"{self.user.username}'s Cart"
        return f"Guest Cart #{self.pk}"

    # ---------------- mutations ----------------

    @contextmanager
    def _mutation(self, revision):
        previous = self.revision
        try:
            with transaction.atomic():
                self._claim_revision(revision)
                yield
                self.recalculate()
        except Exception:
            self.revision = previous
            raise

    def add_item(self, product, quantity=1, revision=None):
        quantity = parse_quantity(quantity)
        if quantity < 1:
            raise InvalidQuantity()

        with self._mutation(revision):
            product = self._fresh_product(product)
            line = self.items.filter(product=product).first()
            requested = quantity + (line.quantity if line else 0)
            self._check_quantity(product, requested)

            if line:
                line.quantity = requested
                line.save(update_fields=['quantity'])
            else:
                CartItem.objects.create(
                    cart=self,
                    product=product,
                    name=product.name,
                    price=product.price,
                    quantity=quantity,
                    image_url=product.image_url,
                )
        return self

    def update_quantity(self, item_id, quantity, revision=None):
        quantity = parse_quantity(quantity)
        if quantity < 0:
            raise InvalidQuantity("Quantity cannot be negative.")

        with self._mutation(revision):
            line = self._line(item_id)
            if quantity == 0:
                line.delete()
            else:
                self._check_quantity(self._fresh_product(line.product), quantity)
                line.quantity = quantity
                line.save(update_fields=['quantity'])
        return self

    def remove_item(self, item_id, revision=None):
        with self._mutation(revision):
            self._line(item_id).delete()
        return self

    def clear(self, revision=None):
        with self._mutation(revision):
            self.items.all().delete()
        return self

    def absorb(self, other):
        """Moves the lines of another (guest) cart into this one.

        Quantities of matching products are summed and capped at the stock
        on hand; the other cart is deleted.
        """
        with self._mutation(None):
            for line in other.items.select_related('product'):
                existing = self.items.filter(product=line.product).first()
                wanted = line.quantity + (existing.quantity if existing else 0)
                quantity = min(wanted, line.product.stock, self.max_quantity() or wanted)
                if quantity <= 0:
                    continue
                if existing:
                    existing.quantity = quantity
                    existing.save(update_fields=['quantity'])
                else:
                    line.pk = None
                    line.cart = self
                    line.quantity = quantity
                    line.save()
            other.delete()
        return self

    # ---------------- bookkeeping ----------------

    def recalculate(self):
        lines = list(self.items.all())
        self.item_count = sum(line.quantity for line in lines)
        self.total_amount = sum((line.subtotal for line in lines), Decimal('0.00'))
        self.save(update_fields=['item_count', 'total_amount', 'updated_at'])

    def _claim_revision(self, revision):
        expected = self.revision if revision in (None, '') else parse_revision(revision)
        claimed = Cart.objects.filter(pk=self.pk, revision=expected).update(
            revision=F('revision') + 1,
            updated_at=timezone.now(),
        )
        if not claimed:
            logger.warning("Cart %s revision conflict (expected %s)", self.pk, expected)
            raise CartConflict()
        self.revision = expected + 1

    def _line(self, item_id):
        try:
            return self.items.select_related('product').get(product_id=int(item_id))
        except (CartItem.DoesNotExist, TypeError, ValueError):
            raise ItemNotInCart()

    def _fresh_product(self, product):
        product_id = product.pk if isinstance(product, Product) else product
        try:
            product = Product.objects.get(pk=product_id)
        except (Product.DoesNotExist, TypeError, ValueError):
            raise ProductNotFound()
        if not product.is_active:
            raise ProductUnavailable()
        return product

    @staticmethod
    def max_quantity():
        return getattr(settings, 'MAX_CART_QTY', 10)

    def _check_quantity(self, product, quantity):
        if quantity > product.stock:
            raise InsufficientStock(product, product.stock)
        limit = self.max_quantity()
        if limit and quantity > limit:
            raise InvalidQuantity(f"Maximum {limit} per product allowed!")

    def is_empty(self):
        return not self.items.exists()

    def to_dict(self):
        return {
            'id': self.pk,
            'userId': self.user_id,
            'revision': self.revision,
            'items': [line.to_dict() for line in self.items.all()],
            'itemCount': self.item_count,
            'totalAmount': float(self.total_amount),
        }


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, related_name='items', on_delete=models.CASCADE)
    product = models.ForeignKey(Product, on_delete=models.CASCADE)
    name = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    image_url = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['cart', 'product'], name='unique_cart_product'),
        ]

    @property
    def subtotal(self):
        return self.price * self.quantity

    def __str__(self):
        return f"{self.name} x {self.quantity}"

    def to_dict(self):
        return {
            'itemId': self.product_id,
            'name': self.name,
            'price': float(self.price),
            'quantity': self.quantity,
            'imageUrl': self.image_url,
            'subtotal': float(self.subtotal),
        }
