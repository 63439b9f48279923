"""Search/index backends storing the application documents."""

import hashlib
import logging
from dataclasses import dataclass
from typing import List, Dict, Any, Optional, Sequence

import psycopg2

from .connection import DatabaseConnection
from .queries import CatalogQueries, COLUMN_FIELDS
from ..errors import InternalError


logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


def generate_document_id(catalog_id: str) -> str:
    """Backend document id for a catalog id."""
    return hashlib.md5(catalog_id.encode('utf-8')).hexdigest()


@dataclass
class ScanPage:
    """One page of a sorted document scan."""
    records: List[Dict[str, Any]]
    next_offset: int
    total: int


class IndexBackend:
    """Document store operations the metadata index relies on.

    Scans must return documents sorted by (Namespace, ApplicationName, Tag).
    """

    def ensure_index(self):
        raise NotImplementedError

    def drop_index(self):
        raise NotImplementedError

    def put(self, doc_id: str, document: Dict[str, Any]):
        raise NotImplementedError

    def page_scan(self, terms: Dict[str, Any], offset: int, size: Optional[int] = None,
                  fields: Optional[Sequence[str]] = None) -> ScanPage:
        raise NotImplementedError

    def delete_by_query(self, terms: Dict[str, Any]) -> int:
        raise NotImplementedError

    def update_by_query(self, terms: Dict[str, Any], values: Dict[str, Any]) -> int:
        raise NotImplementedError


class PostgresIndexBackend(IndexBackend):
    """Index backend keeping the documents in a PostgreSQL table."""

    def __init__(self, db_connection: DatabaseConnection, table_name: str,
                 page_size: int = DEFAULT_PAGE_SIZE):
        self.queries = CatalogQueries(db_connection, table_name)
        self.page_size = page_size

    def ensure_index(self):
        """Create the document table if it does not exist yet."""
        try:
            if self.queries.table_exists():
                logger.debug(f"Index table {self.queries.table_name} already exists")
                return
            logger.info(f"Creating index table {self.queries.table_name}")
            self.queries.create_table()
        except psycopg2.Error as e:
            raise InternalError(f"error creating index: {e}") from e

    def drop_index(self):
        try:
            self.queries.drop_table()
        except psycopg2.Error as e:
            raise InternalError(f"error removing index: {e}") from e

    def put(self, doc_id: str, document: Dict[str, Any]):
        try:
            self.queries.upsert_document(doc_id, document)
        except psycopg2.Error as e:
            raise InternalError(f"error adding document: {e}") from e

    def page_scan(self, terms: Dict[str, Any], offset: int, size: Optional[int] = None,
                  fields: Optional[Sequence[str]] = None) -> ScanPage:
        limit = size or self.page_size
        try:
            total = self.queries.count_documents(terms)
            rows = self.queries.select_documents(terms, offset, limit, fields)
        except psycopg2.Error as e:
            raise InternalError(f"error listing documents: {e}") from e

        records = [
            {COLUMN_FIELDS[column]: value for column, value in row.items() if column in COLUMN_FIELDS}
            for row in rows
        ]
        logger.debug(f"Scanned {len(records)} documents from offset {offset}, total {total}")
        return ScanPage(records=records, next_offset=offset + len(records), total=total)

    def delete_by_query(self, terms: Dict[str, Any]) -> int:
        try:
            return self.queries.delete_documents(terms)
        except psycopg2.Error as e:
            raise InternalError(f"error removing documents: {e}") from e

    def update_by_query(self, terms: Dict[str, Any], values: Dict[str, Any]) -> int:
        try:
            return self.queries.update_documents(terms, values)
        except psycopg2.Error as e:
            raise InternalError(f"error updating documents: {e}") from e
