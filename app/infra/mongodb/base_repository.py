"""
Base Repository Pattern

Base class for all MongoDB repositories.
Provides common CRUD operations and query helpers.
"""
import logging
from typing import Optional, List, Dict, Any, TypeVar, Generic
from datetime import datetime
from bson.objectid import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection

from app.infra.mongodb.connection import get_collection

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=Dict[str, Any])


def to_object_id(doc_id: str) -> Optional[ObjectId]:
    """Parse a string id, returning None when it is not a valid ObjectId."""
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        return None


class BaseRepository(Generic[T]):
    """
    Base repository with common CRUD operations.

    Subclasses should set collection_name class attribute.
    Documents are returned with "_id" converted to str.
    """

    collection_name: str = None  # Override in subclass

    def __init__(self):
        if not self.collection_name:
            raise ValueError(f"collection_name must be set in {self.__class__.__name__}")

    @property
    def collection(self) -> Collection:
        """Get the MongoDB collection."""
        return get_collection(self.collection_name)

    @staticmethod
    def _stringify(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if doc and isinstance(doc.get("_id"), ObjectId):
            doc["_id"] = str(doc["_id"])
        return doc

    def insert_one(self, document: Dict[str, Any]) -> str:
        """
        Insert a single document, stamping created_at if absent.

        Returns:
            Inserted document ID as string
        """
        document.setdefault("created_at", datetime.utcnow())
        result = self.collection.insert_one(document)
        return str(result.inserted_id)

    def find_by_id(self, doc_id: str, projection: Dict[str, int] = None) -> Optional[Dict[str, Any]]:
        """Find document by ObjectId string; None for unknown or malformed ids."""
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        return self._stringify(self.collection.find_one({"_id": oid}, projection))

    def find_one(self, query: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Find a single document matching query."""
        return self._stringify(self.collection.find_one(query))

    def find_many(
        self,
        query: Dict[str, Any] = None,
        skip: int = 0,
        limit: int = 50,
        sort: List[tuple] = None,
        projection: Dict[str, int] = None
    ) -> List[Dict[str, Any]]:
        """
        Find multiple documents.

        Args:
            query: MongoDB query dict
            skip: Number of documents to skip
            limit: Maximum documents to return (0 = no limit)
            sort: List of (field, direction) tuples
            projection: Fields to include/exclude

        Returns:
            List of documents
        """
        cursor = self.collection.find(query or {}, projection)

        if sort:
            cursor = cursor.sort(sort)

        cursor = cursor.skip(skip).limit(limit)

        return [self._stringify(doc) for doc in cursor]

    def update_by_id(self, doc_id: str, fields: Dict[str, Any]) -> bool:
        """
        $set fields on a document, stamping updated_at.

        Returns:
            True if a document matched
        """
        oid = to_object_id(doc_id)
        if oid is None:
            return False
        update = {**fields, "updated_at": datetime.utcnow()}
        result = self.collection.update_one({"_id": oid}, {"$set": update})
        return result.matched_count > 0

    def delete_by_id(self, doc_id: str) -> bool:
        """Delete a document by id. True if something was deleted."""
        oid = to_object_id(doc_id)
        if oid is None:
            return False
        result = self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    def delete_one(self, query: Dict[str, Any]) -> bool:
        """Delete a single document matching query."""
        result = self.collection.delete_one(query)
        return result.deleted_count > 0

    def count(self, query: Dict[str, Any] = None) -> int:
        """Count documents matching query."""
        return self.collection.count_documents(query or {})

    def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Run aggregation pipeline, stringifying ObjectId group keys."""
        results = list(self.collection.aggregate(pipeline))
        for doc in results:
            self._stringify(doc)
        return results
