"""
Primary document store for listings, user profiles, and sessions.
Stores one JSON document per file under a collection directory and supports
per-document CRUD plus collection queries by equality and range conditions.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional
import aiofiles
import aiofiles.os
import json
import logging
import operator
import os
import re
import secrets

from app.config import settings

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")

OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class DocumentStoreError(Exception):
    """Base error for document store failures."""


class DocumentNotFoundError(DocumentStoreError):
    """Raised when a document expected to exist is missing."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"Document {collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class FieldFilter(NamedTuple):
    """A single query condition: ``field op value``."""

    field: str
    op: str
    value: Any

    def matches(self, data: Dict[str, Any]) -> bool:
        """Evaluate the condition against a document body."""
        if self.field not in data:
            return False
        try:
            return bool(OPERATORS[self.op](data[self.field], self.value))
        except TypeError:
            # Values of different types never compare equal or ordered
            return False


@dataclass
class Document:
    """A stored document: its id and its body."""

    id: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into a single mapping with the id included."""
        return {"id": self.id, **self.data}


def generate_document_id() -> str:
    """Generate a 20 character identifier for a new document."""
    return secrets.token_hex(10)


class DocumentStore:
    """
    JSON-file document store.

    Each collection is a directory and each document is ``<id>.json`` inside it.
    Writes go to a temporary file first and are moved into place with
    ``os.replace`` so a reader never sees a half-written document.
    """

    def __init__(self, root_dir: str):
        self.root = Path(root_dir)
        self.root.mkdir(parents=True, exist_ok=True)

    def _collection_dir(self, collection: str) -> Path:
        if not _NAME_PATTERN.match(collection):
            raise ValueError(f"Invalid collection name: {collection!r}")
        return self.root / collection

    def _document_path(self, collection: str, doc_id: str) -> Path:
        if not isinstance(doc_id, str) or not _NAME_PATTERN.match(doc_id):
            raise ValueError(f"Invalid document id: {doc_id!r}")
        return self._collection_dir(collection) / f"{doc_id}.json"

    async def _write(self, path: Path, data: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f".{path.name}.{secrets.token_hex(4)}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(data, ensure_ascii=False, default=str))
            os.replace(tmp_path, path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

    async def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Skipping unreadable document {path}: {e}")
            return None

    async def add(self, collection: str, data: Dict[str, Any]) -> Document:
        """
        Create a document with a store-generated id.

        Args:
            collection: Collection name
            data: Document body

        Returns:
            The stored document with its new id
        """
        doc_id = generate_document_id()
        path = self._document_path(collection, doc_id)
        while path.exists():
            doc_id = generate_document_id()
            path = self._document_path(collection, doc_id)

        await self._write(path, data)
        logger.debug(f"Added document {collection}/{doc_id}")
        return Document(id=doc_id, data=dict(data))

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Fetch a document by id, or None if it does not exist."""
        data = await self._read(self._document_path(collection, doc_id))
        if data is None:
            logger.debug(f"Document {collection}/{doc_id} not found")
            return None
        return Document(id=doc_id, data=data)

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> Document:
        """Create or fully replace the document with the given id."""
        await self._write(self._document_path(collection, doc_id), data)
        logger.debug(f"Set document {collection}/{doc_id}")
        return Document(id=doc_id, data=dict(data))

    async def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> Document:
        """
        Merge changes into an existing document.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        path = self._document_path(collection, doc_id)
        current = await self._read(path)
        if current is None:
            raise DocumentNotFoundError(collection, doc_id)

        current.update(changes)
        await self._write(path, current)
        logger.debug(f"Updated document {collection}/{doc_id}: {sorted(changes)}")
        return Document(id=doc_id, data=current)

    async def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False if it did not exist."""
        try:
            await aiofiles.os.remove(self._document_path(collection, doc_id))
        except FileNotFoundError:
            logger.debug(f"Document {collection}/{doc_id} not found for deletion")
            return False
        logger.debug(f"Deleted document {collection}/{doc_id}")
        return True

    async def query(self, collection: str, filters: Iterable[FieldFilter] = ()) -> List[Document]:
        """
        Return every document in a collection matching all conditions.

        Args:
            collection: Collection name
            filters: Conditions combined with AND; empty means the whole collection

        Returns:
            Matching documents ordered by id
        """
        conditions = list(filters)
        for condition in conditions:
            if condition.op not in OPERATORS:
                raise ValueError(f"Unsupported query operator: {condition.op!r}")

        directory = self._collection_dir(collection)
        if not directory.exists():
            return []

        documents = []
        for path in sorted(directory.glob("*.json")):
            data = await self._read(path)
            if data is None:
                continue
            if all(condition.matches(data) for condition in conditions):
                documents.append(Document(id=path.stem, data=data))

        logger.debug(f"Query on {collection} with {len(conditions)} conditions returned {len(documents)} documents")
        return documents

    def is_available(self) -> bool:
        """Check that the store root is usable."""
        return self.root.is_dir() and os.access(self.root, os.W_OK)


@lru_cache()
def get_document_store() -> DocumentStore:
    """Dependency returning the process-wide document store."""
    return DocumentStore(settings.document_store_dir)
