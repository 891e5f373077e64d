import os
import sys

from dotenv import load_dotenv

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

load_dotenv()

# Database models and setup
from database import SessionLocal, init_db
from models.product import Product
from models.users import User
from utils.hashing import get_password_hash

# Configuration
ADMIN_NAME = os.getenv("ADMIN_NAME", "Store Admin")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@quickmart.com").lower()
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

SAMPLE_PRODUCTS = [
    # name, category, price, stock, description
    ("Bananas (1 kg)", "Fruits", 1.49, 120, "Ripe Cavendish bananas."),
    ("Gala Apples (1 kg)", "Fruits", 2.99, 80, "Crisp and sweet."),
    ("Strawberries (250 g)", "Fruits", 3.49, 40, "Fresh local strawberries."),
    ("Carrots (1 kg)", "Vegetables", 0.99, 150, "Washed carrots."),
    ("Broccoli", "Vegetables", 1.79, 60, "One head of broccoli."),
    ("Cherry Tomatoes (500 g)", "Vegetables", 2.49, 70, "Vine ripened."),
    ("Whole Milk (1 l)", "Dairy", 1.19, 200, "3.5% fat."),
    ("Greek Yogurt (500 g)", "Dairy", 2.29, 90, "Plain, strained."),
    ("Cheddar (200 g)", "Dairy", 3.99, 50, "Mature cheddar."),
    ("Sourdough Bread", "Bakery", 3.20, 30, "Baked daily."),
    ("Croissants (4 pcs)", "Bakery", 2.80, 25, "Butter croissants."),
    ("Basmati Rice (1 kg)", "Pantry", 2.60, 100, "Long grain rice."),
    ("Olive Oil (500 ml)", "Pantry", 6.49, 45, "Extra virgin."),
    ("Orange Juice (1 l)", "Beverages", 2.19, 75, "Not from concentrate."),
    ("Sparkling Water (6 x 1.5 l)", "Beverages", 3.50, 60, "Lightly carbonated."),
]
# End Configuration


def ensure_admin(session):
    admin = session.query(User).filter(User.email == ADMIN_EMAIL).first()
    if admin:
        print(f"Admin {ADMIN_EMAIL} already exists.")
        return admin
    admin = User(
        name=ADMIN_NAME,
        email=ADMIN_EMAIL,
        password_hash=get_password_hash(ADMIN_PASSWORD),
        role="admin",
    )
    session.add(admin)
    session.commit()
    print(f"Created admin {ADMIN_EMAIL}.")
    return admin


def load_products(session):
    if session.query(Product).count():
        print("Products already present, skipping catalogue import.")
        return

    print(f"Inserting {len(SAMPLE_PRODUCTS)} products...")
    for name, category, price, stock, description in SAMPLE_PRODUCTS:
        slug = name.split(" (")[0].lower().replace(" ", "-")
        session.add(Product(
            name=name,
            category=category,
            price=price,
            quantity=stock,
            description=description,
            image=f"https://picsum.photos/seed/{slug}/300/300",
        ))
    session.commit()


def main():
    init_db()
    session = SessionLocal()
    try:
        ensure_admin(session)
        load_products(session)
    finally:
        session.close()
    print("Done.")


if __name__ == "__main__":
    main()
