"""
Catalog store: create, read, replace and delete Book records.
"""

import logging
import shutil
import uuid
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional

from pydantic import ValidationError as SchemaError

from config import config
from database import create_document, delete_document, get_document_by_id, get_documents, serialize_document, update_document
from errors import NotFound, ValidationError
from schemas import Book, BookUpdate

logger = logging.getLogger(__name__)

COLLECTION = "book"
UPLOAD_URL_PREFIX = "/uploads"


def describe_schema_error(exc: SchemaError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"])
        parts.append(f"{field}: {err['msg']}" if field else err["msg"])
    return "; ".join(parts)


def save_cover_image(filename: Optional[str], fileobj: BinaryIO) -> str:
    """Write an uploaded cover under UPLOAD_DIR and return its public path"""
    upload_dir = Path(config.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(filename or "").suffix.lower()
    name = f"{uuid.uuid4().hex}{suffix}"
    with (upload_dir / name).open("wb") as out:
        shutil.copyfileobj(fileobj, out)
    return f"{UPLOAD_URL_PREFIX}/{name}"


def upload_path(name: str) -> Path:
    """Location of a stored cover; only plain file names inside UPLOAD_DIR resolve"""
    path = Path(config.UPLOAD_DIR) / name
    if name in ("", ".", "..") or Path(name).name != name or not path.is_file():
        raise NotFound("File not found")
    return path


def create_book(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and persist a new book. Fields may use wire (camelCase) names."""
    data = {k: v for k, v in fields.items() if v is not None}
    try:
        book = Book.model_validate(data)
    except SchemaError as e:
        raise ValidationError(describe_schema_error(e))
    new_id = create_document(COLLECTION, book)
    logger.info("Created book %s (%r)", new_id, book.title)
    return serialize_document(get_document_by_id(COLLECTION, new_id))


def list_books() -> List[Dict[str, Any]]:
    return [serialize_document(b) for b in get_documents(COLLECTION)]


def get_book(book_id: str) -> Dict[str, Any]:
    doc = get_document_by_id(COLLECTION, book_id)
    if not doc:
        raise NotFound("Book not found")
    return serialize_document(doc)


def replace_book(book_id: str, update: BookUpdate) -> Dict[str, Any]:
    """Apply the supplied non-null fields; the rest keep their stored values"""
    changes = update.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)
    if not update_document(COLLECTION, book_id, changes):
        raise NotFound("Book not found")
    logger.info("Updated book %s fields=%s", book_id, sorted(changes))
    return get_book(book_id)


def delete_book(book_id: str) -> None:
    """Delete a book. Unknown ids are not an error."""
    if delete_document(COLLECTION, book_id):
        logger.info("Deleted book %s", book_id)
