"""
Management command to add a starter catalog of raw materials
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from marketplace.catalog.models import Product


STARTER_PRODUCTS = [
    # name, category, unit, base price, bulk threshold, bulk discount %
    ('Onions', 'Vegetables', 'kg', '32.00', 25, '8.00'),
    ('Potatoes', 'Vegetables', 'kg', '28.00', 25, '8.00'),
    ('Tomatoes', 'Vegetables', 'kg', '40.00', 20, '5.00'),
    ('Green Chillies', 'Vegetables', 'kg', '60.00', 10, '5.00'),
    ('Coriander', 'Herbs', 'bunch', '10.00', 50, '10.00'),
    ('Refined Oil', 'Oils', 'L', '145.00', 15, '6.00'),
    ('Mustard Oil', 'Oils', 'L', '170.00', 15, '6.00'),
    ('Besan', 'Flours', 'kg', '90.00', 10, '7.50'),
    ('Maida', 'Flours', 'kg', '42.00', 25, '5.00'),
    ('Paneer', 'Dairy', 'kg', '340.00', 5, '4.00'),
    ('Chaat Masala', 'Spices', 'kg', '420.00', 0, '0.00'),
    ('Paper Plates', 'Packaging', 'pieces', '1.20', 500, '12.00'),
]


class Command(BaseCommand):
    help = "Adds a starter catalog of raw materials for vendors"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Deactivate all existing products before seeding',
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write(self.style.WARNING("Deactivating existing products..."))
            Product.objects.update(is_active=False)

        created_count = 0
        skipped_count = 0

        for name, category, unit, base_price, threshold, percentage in STARTER_PRODUCTS:
            product, created = Product.objects.get_or_create(
                name=name,
                defaults={
                    'category': category,
                    'unit': unit,
                    'base_price': Decimal(base_price),
                    'bulk_discount_threshold': threshold,
                    'bulk_discount_percentage': Decimal(percentage),
                    'is_active': True,
                }
            )

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"  Created: {name}"))
            else:
                if not product.is_active:
                    product.is_active = True
                    product.save(update_fields=['is_active', 'updated_at'])
                skipped_count += 1
                self.stdout.write(self.style.WARNING(f"  Skipped (already exists): {name}"))

        self.stdout.write(f"Products created: {created_count}")
        self.stdout.write(f"Products skipped (already exist): {skipped_count}")
        self.stdout.write(self.style.SUCCESS(f"Active products in catalog: {Product.objects.filter(is_active=True).count()}"))
