from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.orders.dtos import AddressDTO, PlaceOrderDTO, PlaceOrderItemDTO
from modules.orders.exceptions import OrderError
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Category, Product

CATEGORY_TREE = [
    ("Casual", ["Polo", "Jeans", "T-shirts"]),
    ("Semi Formal", ["Blazer", "Chinos"]),
    ("Accessories", ["Belts", "Caps"]),
]

CATALOG = [
    ("POL-001", "Classic Polo Shirt", "Polo", Decimal("49.90"), Decimal("39.90")),
    ("POL-002", "Striped Polo Shirt", "Polo", Decimal("54.90"), None),
    ("JEA-001", "Slim Fit Jeans", "Jeans", Decimal("89.00"), None),
    ("JEA-002", "Relaxed Jeans", "Jeans", Decimal("79.00"), Decimal("59.00")),
    ("TSH-001", "Basic White T-shirt", "T-shirts", Decimal("19.90"), None),
    ("TSH-002", "Graphic T-shirt", "T-shirts", Decimal("24.90"), None),
    ("BLZ-001", "Navy Blazer", "Blazer", Decimal("199.00"), Decimal("169.00")),
    ("CHI-001", "Beige Chinos", "Chinos", Decimal("69.90"), None),
    ("BLT-001", "Leather Belt", "Belts", Decimal("34.90"), None),
    ("CAP-001", "Baseball Cap", "Caps", Decimal("14.90"), None),
]

SEED_ADDRESS = {
    "name": "Jordan Example",
    "email": "jordan@example.com",
    "phone": "+15555550100",
    "street": "100 Market Street",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "US",
}


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=20)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        categories = self._seed_categories()
        products = self._seed_products(categories)
        orders_created = self._seed_orders(products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"categories={len(categories)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        if User.objects.filter(username="admin").exists():
            return 0
        User.objects.create_superuser("admin", password="admin123")
        return 1

    def _seed_categories(self) -> dict[str, Category]:
        self.stdout.write("Creating categories...")
        categories: dict[str, Category] = {}
        for position, (parent_name, children) in enumerate(CATEGORY_TREE, start=1):
            parent, _ = Category.objects.get_or_create(
                name=parent_name, defaults={"sort_order": position}
            )
            categories[parent_name] = parent
            for child_position, child_name in enumerate(children, start=1):
                child, _ = Category.objects.get_or_create(
                    name=child_name,
                    defaults={"parent": parent, "sort_order": child_position},
                )
                categories[child_name] = child
        self.stdout.write(self.style.SUCCESS("Creating categories... Done!"))
        return categories

    def _seed_products(self, categories: dict[str, Category]) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        for sku, name, category, price, sale_price in CATALOG:
            product = Product.objects.filter(sku=sku).first()
            if product is None:
                product = Product(
                    sku=sku,
                    name=name,
                    description=f"{name} from the {category} collection.",
                    short_description=name,
                    price=price,
                    sale_price=sale_price,
                    stock_quantity=random.randint(10, 200),
                    category=categories[category],
                )
                product.save()
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, products: list[Product], count: int) -> int:
        self.stdout.write("Creating orders...")
        service = OrderService(order_repository=OrderDjangoRepository())
        address = AddressDTO(**SEED_ADDRESS)
        created = 0

        for i in range(count):
            picked = random.sample(products, k=min(random.randint(1, 3), len(products)))
            dto = PlaceOrderDTO(
                items=[
                    PlaceOrderItemDTO(product_id=p.id, quantity=random.randint(1, 3))
                    for p in picked
                ],
                billing_address=address,
                notes=f"Seed order {i + 1}",
            )
            try:
                service.place_order(dto)
            except OrderError as exc:
                self.stdout.write(self.style.WARNING(f"Skipped order {i + 1}: {exc}"))
                continue
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
