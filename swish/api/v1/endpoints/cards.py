import logging
import traceback
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from swish.api.v1.deps import get_current_user
from swish.core.exceptions import DOMAIN_ERRORS, domain_error_to_http
from swish.db.models.user_model import User
from swish.db.session import get_db_session
from swish.schemas.card_schema import CardCreate, CardOperationIn, CardOut, CardWithOwnerOut
from swish.services.card_service import CardService

router = APIRouter(prefix="/api/v1/cards", tags=["cards"])


def get_card_service(session: AsyncSession = Depends(get_db_session)) -> CardService:
    return CardService(session)


@router.get("/", response_model=List[CardOut])
async def list_user_cards(
    current_user: User = Depends(get_current_user),
    card_svc: CardService = Depends(get_card_service),
):
    cards = await card_svc.list_cards(current_user.id)
    return [CardOut.model_validate(card) for card in cards]


@router.post("/", response_model=CardOut, status_code=status.HTTP_201_CREATED)
async def create_card(
    body: CardCreate,
    current_user: User = Depends(get_current_user),
    card_svc: CardService = Depends(get_card_service),
):
    card = await card_svc.create_card(current_user.id, body)
    return CardOut.model_validate(card)


@router.get("/{card_id}", response_model=CardWithOwnerOut)
async def get_card(
    card_id: int,
    current_user: User = Depends(get_current_user),
    card_svc: CardService = Depends(get_card_service),
):
    try:
        card = await card_svc.get_card(card_id)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return CardWithOwnerOut.model_validate(card)


@router.post("/{card_id}/operations", response_model=CardOut)
async def card_operation(
    card_id: int,
    body: CardOperationIn,
    current_user: User = Depends(get_current_user),
    card_svc: CardService = Depends(get_card_service),
):
    try:
        card = await card_svc.apply_operation(card_id, current_user.id, body.action, body.price)
        return CardOut.model_validate(card)

    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)

    except Exception as e:
        logging.error(f"Internal Server Error in card_operation: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="An unknown error occurred.")
