from fastapi import APIRouter, Depends
from userhub.dependencies import get_database
from userhub.errors import NotFoundError
from userhub.repositories import DocumentRepository

router = APIRouter()


@router.get("/{profile_id}")
async def get_profile(profile_id: str, database=Depends(get_database)):
    profile = await DocumentRepository(database, "profiles").find_by_id(profile_id)
    if profile is None:
        raise NotFoundError(f"No profile found with id {profile_id}")
    return {"status": "success", "data": {"profile": profile}}
