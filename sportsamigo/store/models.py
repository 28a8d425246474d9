from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator, MaxLengthValidator
from django.db import models
from django.db.models import F, Q

from .exceptions import ProductNotFound


# PRODUCT

class ProductQuerySet(models.QuerySet):

    def active(self):
        return self.filter(is_active=True)

    def in_stock(self):
        return self.filter(stock__gt=0)

    def get_all_items(self, category=None, featured=False, in_stock=False):
        products = self.active()
        if category:
            products = products.filter(category=category)
        if featured:
            products = products.filter(featured=True)
        if in_stock:
            products = products.in_stock()
        return products.order_by('-created_at', '-id')

    def search_items(self, term):
        term = (term or '').strip()
        if not term:
            return self.none()
        return self.active().filter(
            Q(name__icontains=term) |
            Q(description__icontains=term) |
            Q(category__icontains=term)
        ).order_by('name')

    def get_item(self, product_id):
        try:
            return self.active().get(pk=product_id)
        except (self.model.DoesNotExist, TypeError, ValueError):
            raise ProductNotFound()

    def get_featured_items(self, limit=6):
        return self.get_all_items(featured=True, in_stock=True)[:limit]

    def get_items_by_category(self, category):
        return self.get_all_items(category=category)

    def reduce_stock(self, product_id, quantity):
        """Takes ``quantity`` units off the shelf in one conditional UPDATE.

        Returns False, touching nothing, when fewer units are left.
        """
        updated = self.filter(pk=product_id, stock__gte=quantity).update(stock=F('stock') - quantity)
        return updated == 1


class Product(models.Model):
    CATEGORY_CHOICES = [
        ('Apparel', 'Apparel'),
        ('Equipment', 'Equipment'),
        ('Accessories', 'Accessories'),
        ('Footwear', 'Footwear'),
        ('Sports Gear', 'Sports Gear'),
    ]

    name = models.CharField(max_length=100)
    description = models.TextField(validators=[MaxLengthValidator(500)])
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    image = models.ImageField(upload_to='products/', blank=True, null=True)
    stock = models.PositiveIntegerField(default=10)
    featured = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category'], name='product_category_idx'),
            models.Index(fields=['price'], name='product_price_idx'),
        ]

    def __str__(self):
        return self.name

    @property
    def image_url(self):
        if self.image:
            return self.image.url
        return getattr(settings, 'DEFAULT_PRODUCT_IMAGE', '/static/images/shop/default-product.jpg')

    @property
    def is_in_stock(self):
        return self.stock > 0

    def to_dict(self, short=False):
        description = self.description
        if short and len(description) > 100:
            description = description[:100] + '...'
        return {
            'id': self.id,
            'name': self.name,
            'price': float(self.price),
            'category': self.category,
            'imageUrl': self.image_url,
            'stock': self.stock,
            'featured': self.featured,
            'description': description,
        }
