"""Database queries for the application document table."""

from typing import List, Dict, Any, Optional, Sequence, Tuple

from psycopg2 import sql

from .connection import DatabaseConnection
from ..models.application import (
    CATALOG_ID_FIELD,
    NAMESPACE_FIELD,
    APPLICATION_FIELD,
    TAG_FIELD,
    README_FIELD,
    METADATA_FIELD,
    METADATA_NAME_FIELD,
    PRIVATE_FIELD,
    SORT_FIELDS,
)


# document field -> table column
FIELD_COLUMNS = {
    CATALOG_ID_FIELD: 'catalog_id',
    NAMESPACE_FIELD: 'namespace',
    APPLICATION_FIELD: 'application_name',
    TAG_FIELD: 'tag',
    README_FIELD: 'readme',
    METADATA_FIELD: 'metadata',
    METADATA_NAME_FIELD: 'metadata_name',
    PRIVATE_FIELD: 'private',
}

COLUMN_FIELDS = {column: name for name, column in FIELD_COLUMNS.items()}


def _column(field_name: str) -> sql.Identifier:
    if field_name not in FIELD_COLUMNS:
        raise ValueError(f"Unknown document field: {field_name}")
    return sql.Identifier(FIELD_COLUMNS[field_name])


def build_where(terms: Dict[str, Any]) -> Tuple[sql.Composable, List[Any]]:
    """Translate term filters into a WHERE clause and its parameters."""
    if not terms:
        return sql.SQL(""), []

    conditions = [sql.SQL("{} = %s").format(_column(name)) for name in terms]
    return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions), list(terms.values())


class CatalogQueries:
    """SQL statements over the application document table."""

    def __init__(self, db_connection: DatabaseConnection, table_name: str):
        self.db = db_connection
        self.table_name = table_name

    @property
    def _table(self) -> sql.Identifier:
        return sql.Identifier(self.table_name)

    def table_exists(self) -> bool:
        """Check whether the document table has been created."""
        query = """
        SELECT EXISTS (
            SELECT 1 FROM information_schema.tables
            WHERE table_name = %s
        ) AS exists
        """

        with self.db.get_cursor() as cursor:
            cursor.execute(query, (self.table_name,))
            return bool(cursor.fetchone()['exists'])

    def create_table(self):
        """Create the document table and its sort index."""
        query = sql.SQL("""
        CREATE TABLE IF NOT EXISTS {table} (
            doc_id TEXT PRIMARY KEY,
            catalog_id TEXT NOT NULL,
            namespace TEXT NOT NULL,
            application_name TEXT NOT NULL,
            tag TEXT NOT NULL,
            readme TEXT NOT NULL DEFAULT '',
            metadata TEXT NOT NULL DEFAULT '',
            metadata_name TEXT NOT NULL DEFAULT '',
            private BOOLEAN NOT NULL DEFAULT FALSE
        );
        CREATE INDEX IF NOT EXISTS {index} ON {table} (namespace, application_name, tag);
        """).format(
            table=self._table,
            index=sql.Identifier(f"{self.table_name}_sort_idx"),
        )

        with self.db.get_cursor() as cursor:
            cursor.execute(query)

    def drop_table(self):
        query = sql.SQL("DROP TABLE IF EXISTS {}").format(self._table)

        with self.db.get_cursor() as cursor:
            cursor.execute(query)

    def upsert_document(self, doc_id: str, document: Dict[str, Any]):
        """Insert a document or overwrite the one with the same id."""
        fields = [name for name in FIELD_COLUMNS if name in document]
        columns = [_column(name) for name in fields]
        query = sql.SQL("""
        INSERT INTO {table} (doc_id, {columns})
        VALUES (%s, {values})
        ON CONFLICT (doc_id) DO UPDATE SET {updates}
        """).format(
            table=self._table,
            columns=sql.SQL(", ").join(columns),
            values=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
            updates=sql.SQL(", ").join(
                sql.SQL("{col} = EXCLUDED.{col}").format(col=column) for column in columns
            ),
        )

        with self.db.get_cursor() as cursor:
            cursor.execute(query, [doc_id] + [document[name] for name in fields])

    def count_documents(self, terms: Dict[str, Any]) -> int:
        where, params = build_where(terms)
        query = sql.SQL("SELECT COUNT(*) AS total FROM {table}").format(table=self._table) + where

        with self.db.get_cursor() as cursor:
            cursor.execute(query, params)
            return int(cursor.fetchone()['total'])

    def select_documents(self, terms: Dict[str, Any], offset: int, limit: Optional[int],
                         fields: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        """Get one page of documents sorted by namespace, application and tag."""
        where, params = build_where(terms)
        selected = fields or list(FIELD_COLUMNS)
        query = (
            sql.SQL("SELECT doc_id, {columns} FROM {table}").format(
                columns=sql.SQL(", ").join(_column(name) for name in selected),
                table=self._table,
            )
            + where
            + sql.SQL(" ORDER BY {order} LIMIT %s OFFSET %s").format(
                order=sql.SQL(", ").join(_column(name) for name in SORT_FIELDS)
            )
        )

        with self.db.get_cursor() as cursor:
            cursor.execute(query, params + [limit, offset])
            return cursor.fetchall()

    def delete_documents(self, terms: Dict[str, Any]) -> int:
        """Delete every document matching the terms, returning how many were removed."""
        where, params = build_where(terms)
        query = sql.SQL("DELETE FROM {table}").format(table=self._table) + where

        with self.db.get_cursor() as cursor:
            cursor.execute(query, params)
            return cursor.rowcount

    def update_documents(self, terms: Dict[str, Any], values: Dict[str, Any]) -> int:
        """Set the given fields on every document matching the terms."""
        where, params = build_where(terms)
        query = (
            sql.SQL("UPDATE {table} SET {assignments}").format(
                table=self._table,
                assignments=sql.SQL(", ").join(
                    sql.SQL("{} = %s").format(_column(name)) for name in values
                ),
            )
            + where
        )

        with self.db.get_cursor() as cursor:
            cursor.execute(query, list(values.values()) + params)
            return cursor.rowcount
