from typing import Iterable, Optional
from bson import ObjectId
import logging

logger = logging.getLogger(__name__)


class DocumentRepository:
    """Read access to one collection of the cached database"""

    def __init__(self, database, collection_name: str, hidden_fields: Iterable[str] = ()):
        self.collection = database[collection_name]
        self.collection_name = collection_name
        self.hidden_fields = tuple(hidden_fields)

    @staticmethod
    def _id_query(document_id: str) -> dict:
        if ObjectId.is_valid(document_id):
            return {"_id": ObjectId(document_id)}
        return {"_id": document_id}

    def _serialize(self, document: dict) -> dict:
        result = {key: value for key, value in document.items() if key not in self.hidden_fields}
        result["id"] = str(result.pop("_id"))
        return result

    async def find_by_id(self, document_id: str) -> Optional[dict]:
        """Find a document by its id"""
        try:
            document = await self.collection.find_one(self._id_query(document_id))
        except Exception as e:
            logger.error(f"Error finding {self.collection_name} document {document_id}: {e}")
            raise
        if document is None:
            return None
        return self._serialize(document)
