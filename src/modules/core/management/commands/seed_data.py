from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from modules.core.policies import Principal
from modules.orders.dtos import CreateOrderDTO
from modules.orders.services import build_order_service
from modules.payments.constants import PaymentMethod
from modules.products.constants import ProductCategory
from modules.products.models import Product
from modules.users.constants import UserRole, UserStatus


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=30)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        with transaction.atomic():
            users = self._seed_users()
            products = self._seed_products(users["manager"])
        orders_created = self._seed_orders(users, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> dict:
        User = get_user_model()
        seed_users = [
            ("admin", UserRole.ADMIN, "admin123"),
            ("manager", UserRole.MANAGER, "manager123"),
            ("buyer", UserRole.BUYER, "buyer123"),
            ("buyer2", UserRole.BUYER, "buyer123"),
        ]
        users = {}
        for username, role, password in seed_users:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(
                    username,
                    email=f"{username}@example.com",
                    password=password,
                    role=role,
                    status=UserStatus.APPROVED,
                    is_staff=role == UserRole.ADMIN,
                    is_superuser=role == UserRole.ADMIN,
                )
            users[username] = user
        return users

    def _seed_products(self, manager) -> list[Product]:
        self.stdout.write("Creating products...")
        both = [PaymentMethod.CASH_ON_DELIVERY.value, PaymentMethod.STRIPE.value]
        catalog = [
            ("Oxford Shirt", ProductCategory.SHIRT, Decimal("18.50"), 20, both),
            ("Chino Pant", ProductCategory.PANT, Decimal("24.00"), 10, both),
            ("Denim Jacket", ProductCategory.JACKET, Decimal("49.90"), 5, both),
            ("Two-piece Suit", ProductCategory.SUITS, Decimal("129.00"), 2, both),
            ("Leather Belt", ProductCategory.ACCESSORIES, Decimal("9.90"), 50, None),
            ("Summer Dress", ProductCategory.DRESS, Decimal("32.00"), 10, both),
            ("Pleated Skirt", ProductCategory.SKIRT, Decimal("21.00"), 10, None),
            ("Basic Tee", ProductCategory.T_SHIRT, Decimal("6.50"), 100, both),
        ]
        products: list[Product] = []
        for name, category, price, minimum, payment_options in catalog:
            defaults = {
                "category": category,
                "price": price,
                "minimum_order_quantity": minimum,
                "available_quantity": random.randint(5, 40) * minimum,
                "created_by": manager,
            }
            if payment_options:
                defaults["payment_options"] = payment_options
            product, _ = Product.objects.get_or_create(name=name, defaults=defaults)
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, users: dict, products: list[Product], count: int) -> int:
        """Place orders through ``OrderService`` so stock and history stay consistent."""
        self.stdout.write("Creating orders...")
        service = build_order_service()
        buyers = [Principal.from_user(users["buyer"]), Principal.from_user(users["buyer2"])]
        manager = Principal.from_user(users["manager"])

        created = 0
        for i in range(count):
            product = random.choice(products)
            product.refresh_from_db()
            quantity = product.minimum_order_quantity * random.randint(1, 2)
            if quantity > product.available_quantity:
                continue

            buyer = random.choice(buyers)
            order = service.create_order(
                buyer,
                CreateOrderDTO(
                    product_id=product.id,
                    quantity=quantity,
                    first_name="Seed",
                    last_name=f"Buyer {i + 1}",
                    contact_number="+1 555 0100",
                    delivery_address={
                        "street": f"{100 + i} Main St",
                        "city": "Springfield",
                        "state": "IL",
                        "zip_code": "62701",
                        "country": "USA",
                    },
                    payment_method=random.choice(product.payment_options),
                    email=f"seed{i + 1}@example.com",
                ),
            )
            created += 1

            outcome = random.random()
            if outcome < 0.4:
                service.approve_order(manager, order.id)
            elif outcome < 0.55:
                service.reject_order(manager, order.id, notes="Seed rejection")
            elif outcome < 0.65:
                service.cancel_order(buyer, order.id)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
