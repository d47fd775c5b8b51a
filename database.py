"""
Database Helper Functions

MongoDB helper functions shared by the catalog and order modules.
Collections are addressed by name ("book", "order"); documents are plain dicts.
"""

from datetime import datetime, timezone
from typing import Union, Optional, Dict, Any

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import MongoClient

from config import config
from errors import StoreError

_client = None
db = None

if config.DATABASE_URL and config.DATABASE_NAME:
    _client = MongoClient(config.DATABASE_URL)
    db = _client[config.DATABASE_NAME]


def _ensure_db():
    if db is None:
        raise StoreError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")


def _object_id(doc_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        return None


def serialize_document(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return a copy of a Mongo document with _id exposed as a string id"""
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.pop("_id", None)
    if _id is not None:
        doc["id"] = str(_id)
    return doc


def create_document(collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a single document with timestamps"""
    _ensure_db()

    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = data.copy()

    now = datetime.now(timezone.utc)
    data_dict['created_at'] = now
    data_dict['updated_at'] = now

    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None, sort: Optional[list] = None):
    """Get documents from collection"""
    _ensure_db()
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def get_document_by_id(collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    """Get a single document by _id string, None for unknown or malformed ids"""
    _ensure_db()
    oid = _object_id(doc_id)
    if oid is None:
        return None
    return db[collection_name].find_one({"_id": oid})


def update_document(collection_name: str, doc_id: str, data: dict, filter_dict: Optional[dict] = None) -> bool:
    """Update a document by id (and optional extra conditions) with $set and updated_at; False when nothing matched"""
    _ensure_db()
    oid = _object_id(doc_id)
    if oid is None:
        return False
    data = data.copy()
    data['updated_at'] = datetime.now(timezone.utc)
    res = db[collection_name].update_one(dict(filter_dict or {}, _id=oid), {"$set": data})
    return res.matched_count > 0


def delete_document(collection_name: str, doc_id: str) -> bool:
    """Delete a document by id"""
    _ensure_db()
    oid = _object_id(doc_id)
    if oid is None:
        return False
    res = db[collection_name].delete_one({"_id": oid})
    return res.deleted_count > 0
