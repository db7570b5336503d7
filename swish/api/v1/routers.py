# swish/api/v1/routers.py
from fastapi import APIRouter
from swish.api.v1.endpoints import auth, cards, cart, collections, payment_methods, purchases, users

router = APIRouter()

router.include_router(auth.router)
router.include_router(cards.router)
router.include_router(cart.router)
router.include_router(purchases.router)
router.include_router(users.router)
router.include_router(payment_methods.router)
router.include_router(collections.router)
