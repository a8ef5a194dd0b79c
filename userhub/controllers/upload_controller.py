from fastapi import APIRouter, Depends
from userhub.dependencies import get_database
from userhub.errors import NotFoundError
from userhub.repositories import DocumentRepository

router = APIRouter()


@router.get("/{file_id}")
async def get_upload(file_id: str, database=Depends(get_database)):
    """Fetch the metadata of one uploaded file"""
    upload = await DocumentRepository(database, "uploads").find_by_id(file_id)
    if upload is None:
        raise NotFoundError(f"No upload found with id {file_id}")
    return {"status": "success", "data": {"upload": upload}}
