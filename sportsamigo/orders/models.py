import random
import time
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from store.models import Product


def generate_order_number():
    millis = str(int(time.time() * 1000))
    return f"SA-{millis[-6:]}{random.randint(0, 999):03d}"


# ORDER

class Order(models.Model):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CONFIRMED, 'Confirmed'),
        (CANCELLED, 'Cancelled'),
    ]

    WALLET = 'Wallet'
    COD = 'Cash on Delivery'

    PAYMENT_CHOICES = [
        (WALLET, 'Wallet'),
        (COD, 'Cash on Delivery'),
    ]

    PAYMENT_PENDING = 'Pending'
    PAYMENT_PAID = 'Paid'
    PAYMENT_FAILED = 'Failed'
    PAYMENT_REFUNDED = 'Refunded'

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_FAILED, 'Failed'),
        (PAYMENT_REFUNDED, 'Refunded'),
    ]

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='orders')
    order_number = models.CharField(max_length=20, unique=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_CHOICES, default=COD)
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'),
                                       validators=[MinValueValidator(Decimal('0.00'))])
    item_count = models.PositiveIntegerField(default=0)

    # shipping
    full_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=15)
    email = models.EmailField(blank=True)
    street = models.CharField(max_length=255)
    area = models.CharField(max_length=100)
    city = models.CharField(max_length=50)
    state = models.CharField(max_length=50)
    landmark = models.CharField(max_length=100, blank=True)

    expected_delivery = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = generate_order_number()
        if not self.expected_delivery:
            self.expected_delivery = timezone.now() + timedelta(days=random.randint(2, 5))
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.order_number} - {self.user.username}"

    @property
    def shipping_address(self):
        parts = [self.street, self.area, self.landmark, self.city, self.state]
        return ", ".join(part for part in parts if part)

    def to_dict(self, with_items=True):
        symbol = getattr(settings, 'CURRENCY_SYMBOL', '₹')
        data = {
            'orderNumber': self.order_number,
            'status': self.status,
            'paymentMethod': self.payment_method,
            'paymentStatus': self.payment_status,
            'totalAmount': float(self.total_amount),
            'formattedTotal': f"{symbol}{self.total_amount:,.2f}",
            'itemCount': self.item_count,
            'customerInfo': {
                'name': self.full_name,
                'phone': self.phone,
                'email': self.email,
            },
            'shippingAddress': self.shipping_address,
            'expectedDelivery': self.expected_delivery.isoformat() if self.expected_delivery else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if with_items:
            data['items'] = [item.to_dict() for item in self.items.all()]
        return data


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True)
    name = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    image_url = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity} x {self.name}"

    @property
    def total_price(self):
        return self.price * self.quantity

    def to_dict(self):
        return {
            'productId': self.product_id,
            'name': self.name,
            'price': float(self.price),
            'quantity': self.quantity,
            'imageUrl': self.image_url,
            'subtotal': float(self.total_price),
        }
