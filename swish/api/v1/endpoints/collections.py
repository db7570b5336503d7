from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from swish.api.v1.deps import get_current_user
from swish.core.exceptions import DOMAIN_ERRORS, domain_error_to_http
from swish.db.models.user_model import User
from swish.db.session import get_db_session
from swish.schemas.collection_schema import CollectionCreate, CollectionOut
from swish.schemas.common import MessageOut, PinIn
from swish.services.collection_service import CollectionService

router = APIRouter(prefix="/api/v1/collections", tags=["collections"])


def get_collection_service(session: AsyncSession = Depends(get_db_session)) -> CollectionService:
    return CollectionService(session)


@router.post("/", response_model=CollectionOut, status_code=status.HTTP_201_CREATED)
async def create_collection(
        body: CollectionCreate,
        current_user: User = Depends(get_current_user),
        collection_svc: CollectionService = Depends(get_collection_service),
):
    collection = await collection_svc.create(current_user.id, body)
    return CollectionOut.model_validate(collection)


@router.get("/", response_model=List[CollectionOut])
async def list_collections(
        current_user: User = Depends(get_current_user),
        collection_svc: CollectionService = Depends(get_collection_service),
):
    return [CollectionOut.model_validate(c) for c in await collection_svc.list_for_user(current_user.id)]


@router.delete("/{collection_id}", response_model=MessageOut)
async def delete_collection(
        collection_id: int,
        body: Optional[PinIn] = None,
        current_user: User = Depends(get_current_user),
        collection_svc: CollectionService = Depends(get_collection_service),
):
    try:
        await collection_svc.delete(collection_id, current_user, body.pin if body else None)
    except DOMAIN_ERRORS as e:
        raise domain_error_to_http(e)
    return MessageOut(message="Collection deleted successfully")
