"""Shared fixtures for the appcatalog tests."""

from typing import Any, Dict, List, Optional, Sequence

import pytest
import yaml

from appcatalog.database.index_backend import IndexBackend, ScanPage
from appcatalog.database.metadata_index import MetadataIndex
from appcatalog.errors import InternalError
from appcatalog.models.application import FileInfo, SORT_FIELDS
from appcatalog.operations.catalog import CatalogManager
from appcatalog.storage.blob_store import LocalBlobStore


class InMemoryIndexBackend(IndexBackend):
    """Index backend keeping documents in a dict, sorted on scan."""

    def __init__(self, page_size: int = 2):
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.page_size = page_size
        self.index_created = False
        self.scan_calls = 0
        self.fail_scans = False

    def ensure_index(self):
        self.index_created = True

    def drop_index(self):
        self.documents.clear()
        self.index_created = False

    def put(self, doc_id: str, document: Dict[str, Any]):
        self.documents[doc_id] = dict(document)

    def _matching(self, terms: Dict[str, Any]) -> List[Dict[str, Any]]:
        found = [
            document for document in self.documents.values()
            if all(document.get(name) == value for name, value in terms.items())
        ]
        return sorted(found, key=lambda document: tuple(document[name] for name in SORT_FIELDS))

    def page_scan(self, terms: Dict[str, Any], offset: int, size: Optional[int] = None,
                  fields: Optional[Sequence[str]] = None) -> ScanPage:
        self.scan_calls += 1
        if self.fail_scans:
            raise InternalError("index unavailable")

        matches = self._matching(terms)
        page = matches[offset:offset + (size or self.page_size)]
        if fields:
            page = [{name: document.get(name) for name in fields} for document in page]
        else:
            page = [dict(document) for document in page]
        return ScanPage(records=page, next_offset=offset + len(page), total=len(matches))

    def delete_by_query(self, terms: Dict[str, Any]) -> int:
        doomed = [
            doc_id for doc_id, document in self.documents.items()
            if all(document.get(name) == value for name, value in terms.items())
        ]
        for doc_id in doomed:
            del self.documents[doc_id]
        return len(doomed)

    def update_by_query(self, terms: Dict[str, Any], values: Dict[str, Any]) -> int:
        updated = 0
        for document in self.documents.values():
            if all(document.get(name) == value for name, value in terms.items()):
                document.update(values)
                updated += 1
        return updated


def metadata_yaml(name: str = "Widgets", logos: Optional[List[Dict[str, str]]] = None) -> bytes:
    document = {
        "apiVersion": "core.napptive.com/v1alpha1",
        "kind": "ApplicationMetadata",
        "name": name,
        "version": "1.0",
        "description": "Sample application",
    }
    if logos:
        document["logo"] = logos
    return yaml.safe_dump(document).encode('utf-8')


def application_files(name: str = "Widgets", logos: Optional[List[Dict[str, str]]] = None) -> List[FileInfo]:
    return [
        FileInfo(path="metadata.yaml", data=metadata_yaml(name, logos)),
        FileInfo(path="README.md", data=b"# Widgets\n"),
        FileInfo(path="app/deployment.yaml", data=b"apiVersion: apps/v1\nkind: Deployment\nmetadata:\n  name: web\n"),
    ]


@pytest.fixture
def backend():
    return InMemoryIndexBackend()


@pytest.fixture
def index(backend):
    metadata_index = MetadataIndex(backend, refresh_interval=300)
    metadata_index.init()
    yield metadata_index
    metadata_index.finish()


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "repository"))


@pytest.fixture
def catalog(index, blob_store):
    return CatalogManager(index, blob_store)
