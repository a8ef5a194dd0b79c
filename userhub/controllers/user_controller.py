from fastapi import APIRouter, Depends
from userhub.dependencies import get_database
from userhub.errors import NotFoundError
from userhub.repositories import DocumentRepository
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{user_id}")
async def get_user(user_id: str, database=Depends(get_database)):
    """Fetch a single user, without credential fields"""
    repository = DocumentRepository(database, "users", hidden_fields=("password",))
    user = await repository.find_by_id(user_id)
    if user is None:
        raise NotFoundError(f"No user found with id {user_id}")
    return {"status": "success", "data": {"user": user}}
