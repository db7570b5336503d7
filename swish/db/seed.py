# swish/db/seed.py
import asyncio
import random
from datetime import timezone
from decimal import Decimal

from faker import Faker
from tqdm import tqdm

from swish.core.security import hash_password
from swish.db import session as db
from swish.db.registry import Card, Purchase, PurchaseStatus, User
from swish.schemas.payment_schema import PaymentMethodIn
from swish.services.payment_vault import dump_payment_methods, encrypt_payment_method
from swish.services.purchase_state import COMPLETION_STATUSES

fake = Faker("en_US")

NUM_USERS = 50
MIN_CARDS_PER_USER = 3
MAX_CARDS_PER_USER = 15
FOR_SALE_RATIO = 0.4
NUM_PURCHASES = 200
SEED_PASSWORD = "swish1234"

PLAYERS = [
    ("Michael Jordan", "Chicago Bulls"),
    ("LeBron James", "Los Angeles Lakers"),
    ("Kobe Bryant", "Los Angeles Lakers"),
    ("Stephen Curry", "Golden State Warriors"),
    ("Victor Wembanyama", "San Antonio Spurs"),
    ("Luka Doncic", "Dallas Mavericks"),
    ("Giannis Antetokounmpo", "Milwaukee Bucks"),
    ("Nikola Jokic", "Denver Nuggets"),
    ("Tim Duncan", "San Antonio Spurs"),
    ("Larry Bird", "Boston Celtics"),
]
BRANDS = ["Panini", "Topps", "Upper Deck", "Fleer", "Donruss"]
CONDITIONS = ["Mint", "Near Mint", "Excellent", "Very Good", "Good", "PSA 10", "BGS 9.5"]
RARITIES = ["Common", "Uncommon", "Rare", "Ultra Rare", "Rookie", "Autograph"]


def fake_payment_method() -> PaymentMethodIn:
    expiry = fake.credit_card_expire(date_format="%m/%y")
    month, year = expiry.split("/")
    return PaymentMethodIn(
        card_number=fake.credit_card_number(card_type="visa16"),
        cardholder_name=fake.name(),
        expiry_month=month,
        expiry_year=year,
        cvv=fake.credit_card_security_code(card_type="visa16"),
        card_brand="visa",
        nickname=random.choice([None, "Personal", "Work"]),
    )


def fake_card(owner_id: int) -> Card:
    player, team = random.choice(PLAYERS)
    year = random.randint(1986, 2025)
    brand = random.choice(BRANDS)
    for_sale = random.random() < FOR_SALE_RATIO
    return Card(
        name=f"{year} {brand} {player}",
        player=player,
        team=team,
        year=year,
        brand=brand,
        card_number=str(random.randint(1, 300)),
        condition=random.choice(CONDITIONS),
        rarity=random.choice(RARITIES),
        description=fake.sentence(nb_words=10),
        is_for_trade=random.random() < 0.2,
        is_for_sale=for_sale,
        price=Decimal(random.randint(500, 500_000)) / 100 if for_sale else None,
        owner_id=owner_id,
    )


def fake_address(user: User) -> dict:
    return {
        "name": user.full_name,
        "phone": fake.phone_number(),
        "streetAddress": fake.street_address(),
        "city": fake.city(),
        "state": fake.state(),
        "postalCode": fake.postcode(),
        "country": "United States",
    }


def fake_purchase(card: Card, buyer: User, status: PurchaseStatus | None = None) -> Purchase:
    status = status or random.choices(
        [PurchaseStatus.PAID, PurchaseStatus.SHIPPED, PurchaseStatus.DELIVERED, PurchaseStatus.COMPLETED],
        weights=[0.3, 0.3, 0.2, 0.2],
    )[0]
    completed_at = None
    if status in COMPLETION_STATUSES:
        completed_at = fake.date_time_between(start_date="-60d", end_date="now", tzinfo=timezone.utc)
    return Purchase(
        buyer_id=buyer.id,
        seller_id=card.owner_id,
        card_id=card.id,
        price=card.price,
        status=status,
        payment_method=f"seed:txn_{random.randint(10**8, 10**9)}",
        shipping_address=fake_address(buyer),
        tracking_number=None if status == PurchaseStatus.PAID else f"1Z{random.randint(10**9, 10**10)}",
        completed_at=completed_at,
    )


async def seed():
    await db.connect_db_pool()
    hashed = hash_password(SEED_PASSWORD)

    async with db.async_session.begin() as session:
        print("🧍 Creating users...")
        users = []
        for _ in tqdm(range(NUM_USERS), desc="Users"):
            user = User(
                email=fake.unique.email(),
                full_name=fake.name(),
                hashed_password=hashed,
                is_active=True,
                payment_methods=dump_payment_methods([encrypt_payment_method(fake_payment_method())]),
            )
            user.shipping_address = fake_address(user)
            users.append(user)
        session.add_all(users)
        await session.flush()

        print("🃏 Creating cards...")
        cards = []
        for user in tqdm(users, desc="Cards"):
            for _ in range(random.randint(MIN_CARDS_PER_USER, MAX_CARDS_PER_USER)):
                cards.append(fake_card(user.id))
        session.add_all(cards)
        await session.flush()

        print("🛒 Creating purchases...")
        listed = [c for c in cards if c.is_for_sale]
        random.shuffle(listed)
        for card in tqdm(listed[:NUM_PURCHASES], desc="Purchases"):
            buyer = random.choice([u for u in users if u.id != card.owner_id])
            session.add(fake_purchase(card, buyer))
            card.is_for_sale = False
            card.price = None
            card.owner_id = buyer.id

    print("✅ Seed complete.")
    await db.close_db_pool()


if __name__ == "__main__":
    asyncio.run(seed())
