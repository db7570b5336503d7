# Importing this module registers every mapped class on Base.metadata.
from swish.db.base import Base
from swish.db.models.user_model import User, UserRole
from swish.db.models.card_model import Card
from swish.db.models.purchase_model import Purchase, PurchaseStatus
from swish.db.models.cart_model import Cart, CartItem
from swish.db.models.collection_model import Collection

__all__ = [
    "Base", "User", "UserRole", "Card", "Purchase", "PurchaseStatus", "Cart", "CartItem", "Collection",
]
