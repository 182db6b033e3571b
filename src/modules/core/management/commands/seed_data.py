from __future__ import annotations

import random
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from modules.catalog.models import Product, ProductStatus, ProductVariant

SIZES = ("S", "M", "L", "XL")


class Command(BaseCommand):
    help = "Seed database with development users and catalog data."

    def handle(self, *args, **options):
        if not settings.DEBUG:
            raise CommandError("Seeding is only allowed with DEBUG=True.")

        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        products = self._seed_products()
        variants_created = self._seed_variants(products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"products={len(products)}, "
                f"variants={variants_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser(
                "admin", email="admin@example.com", password="admin123"
            )
            created += 1
        if not User.objects.filter(username="manager").exists():
            User.objects.create_user(
                "manager",
                email="manager@example.com",
                password="manager123",
                is_staff=True,
            )
            created += 1
        if not User.objects.filter(username="shopper").exists():
            User.objects.create_user(
                "shopper", email="shopper@example.com", password="shopper123"
            )
            created += 1
        return created

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("Wireless Earbuds", "Electronics", Decimal("45000.00")),
            ("Smart Watch", "Electronics", Decimal("120000.00")),
            ("Bluetooth Speaker", "Electronics", Decimal("38500.00")),
            ("Cotton T-Shirt", "Clothing", Decimal("8500.00")),
            ("Denim Jacket", "Clothing", Decimal("32000.00")),
            ("Linen Trousers", "Clothing", Decimal("21000.00")),
            ("Semolina 5kg", "Grocery", Decimal("6200.00")),
            ("Ground Coffee 500g", "Grocery", Decimal("7800.00")),
        ]
        for title, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                title=title,
                defaults={
                    "description": category,
                    "price": price,
                    "stock_quantity": random.randint(10, 200),
                    "status": ProductStatus.ACTIVE,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_variants(self, products: list[Product]) -> int:
        """Clothing is sold per size; everything else uses the product counter."""
        self.stdout.write("Creating variants...")
        created = 0
        for product in products:
            if product.description != "Clothing":
                continue
            prefix = "".join(word[0] for word in product.title.split()).upper()
            for size in SIZES:
                _, was_created = ProductVariant.objects.get_or_create(
                    product=product,
                    sku=f"{prefix}-{size}",
                    defaults={
                        "size": size,
                        "color": "Black",
                        "price": product.price,
                        "stock_quantity": random.randint(0, 40),
                    },
                )
                created += int(was_created)
        self.stdout.write(self.style.SUCCESS("Creating variants... Done!"))
        return created
