from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from store.models import Product

SAMPLE_ITEMS = [
    ("Professional Football", "45.99", "Equipment", 25, True,
     "Official size and weight football perfect for professional matches and training sessions."),
    ("Sports Team Jersey", "35.00", "Apparel", 50, True,
     "High-quality polyester team jersey with moisture-wicking technology. Available in multiple sizes."),
    ("Athletic Running Shoes", "89.99", "Footwear", 30, True,
     "Lightweight running shoes with advanced cushioning and breathable mesh upper for maximum comfort."),
    ("Sports Water Bottle", "12.99", "Accessories", 100, False,
     "BPA-free sports water bottle with easy-squeeze design and measurement markers."),
    ("Basketball", "29.99", "Equipment", 20, False,
     "Official size basketball with superior grip and bounce. Perfect for indoor and outdoor play."),
    ("Training Shorts", "24.99", "Apparel", 40, False,
     "Comfortable training shorts with elastic waistband and side pockets. Quick-dry fabric."),
    ("Soccer Cleats", "79.99", "Footwear", 25, False,
     "Professional soccer cleats with molded studs for optimal traction on grass fields."),
    ("Sports Headband", "8.99", "Accessories", 75, False,
     "Moisture-wicking sports headband to keep sweat out of your eyes during intense workouts."),
    ("Cricket Bat", "65.00", "Equipment", 15, False,
     "Professional grade cricket bat made from premium willow wood with comfortable grip."),
    ("Compression T-Shirt", "32.99", "Apparel", 35, True,
     "Performance compression t-shirt that supports muscles and enhances blood circulation."),
    ("Tennis Racket", "95.00", "Equipment", 12, False,
     "Lightweight tennis racket with oversized head for increased sweet spot and power."),
    ("Gym Gloves", "18.99", "Accessories", 60, False,
     "Padded gym gloves with wrist support for weightlifting and cross-training exercises."),
    ("Track Pants", "42.00", "Apparel", 28, False,
     "Comfortable track pants with tapered fit and zip pockets. Perfect for training and casual wear."),
    ("Baseball Cap", "16.99", "Accessories", 50, False,
     "Adjustable baseball cap with team logo embroidery and UV protection."),
    ("Yoga Mat", "35.99", "Equipment", 22, False,
     "Non-slip yoga mat with extra thickness for comfort and stability during practice."),
    ("Sports Socks (3-Pack)", "14.99", "Apparel", 80, False,
     "Cushioned athletic socks with moisture-wicking technology. Pack of 3 pairs."),
    ("Resistance Bands Set", "24.99", "Equipment", 30, False,
     "Complete set of resistance bands with different tension levels for strength training."),
    ("Sports Towel", "11.99", "Accessories", 65, False,
     "Quick-dry microfiber sports towel that's lightweight and highly absorbent."),
]


class Command(BaseCommand):
    help = 'Load the sample shop catalog'

    def add_arguments(self, parser):
        parser.add_argument('--clear', action='store_true', help='Delete existing products first')

    @transaction.atomic
    def handle(self, *args, **options):
        if options['clear']:
            deleted, _ = Product.objects.all().delete()
            self.stdout.write(self.style.WARNING(f"Cleared {deleted} existing row(s)"))

        created = 0
        for name, price, category, stock, featured, description in SAMPLE_ITEMS:
            product, was_created = Product.objects.get_or_create(
                name=name,
                defaults={
                    'price': Decimal(price),
                    'category': category,
                    'stock': stock,
                    'featured': featured,
                    'description': description,
                },
            )
            if was_created:
                created += 1
                self.stdout.write(f"{created}. {product.name} - {price} (Stock: {stock})")

        self.stdout.write(self.style.SUCCESS(f"Seeded {created} shop item(s)"))
