# fills an empty database with a small demo catalog through the services
from db.repo import Repo
from services.orders import OrderInput, OrderItemInput, OrderService
from services.products import ProductInput, ProductService
from services.users import UserInput, UserService
from utils.logger import get_logger

_logger = get_logger(__name__)

DEMO_PRODUCTS = [
    ("Wireless Mouse", "2.4 GHz, silent clicks", 19.99, 120),
    ("Mechanical Keyboard", "Hot-swappable, brown switches", 89.0, 40),
    ("USB-C Cable", "1m, braided", 7.5, 300),
    ("27in Monitor", "QHD IPS panel", 259.0, 15),
    ("Laptop Stand", "Aluminium, adjustable", 34.9, 60),
    ("Bluetooth Speaker", "Waterproof, 12h battery", 49.0, 25),
]


async def seed_demo_data(repo: Repo) -> bool:
    """Seed only when there are no users yet. Returns True if data was added."""
    if (await repo.users.get_statistics()).total > 0:
        return False

    _logger.info("Seeding demo data...")
    users = UserService(repo)
    admin = await users.create_user(
        UserInput(
            name="Admin",
            email="admin@example.com",
            password="admin123",
            phone="0900000001",
            role="ADMIN",
        )
    )
    guest = await users.create_user(
        UserInput(
            name="Jane Guest",
            email="guest@example.com",
            password="guest123",
            phone="0900000002",
        )
    )

    products = ProductService(repo)
    created = [
        await products.create_product(
            ProductInput(
                title=title,
                description=descr,
                price=price,
                quantity=qty,
                user_id=admin.id,
            )
        )
        for title, descr, price, qty in DEMO_PRODUCTS
    ]

    await OrderService(repo).place_order(
        OrderInput(
            user_id=guest.id,
            note="First order",
            items=[
                OrderItemInput(product_id=created[0].id, quantity=2),
                OrderItemInput(product_id=created[2].id, quantity=3, discount=0.1),
            ],
        )
    )
    return True
