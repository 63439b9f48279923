"""Catalog operations over the metadata index and the blob store."""

import logging
from typing import Dict, List, Optional, Tuple

import yaml

from ..database.metadata_index import MetadataIndex
from ..errors import (
    CatalogError,
    FailedPreconditionError,
    InvalidFormatError,
    NotFoundError,
)
from ..models.application import (
    ApplicationID,
    ApplicationInfo,
    AppSummary,
    ExtendedApplicationMetadata,
    FileInfo,
    ListFilter,
    Summary,
)
from ..models.metadata import ApplicationMetadata
from ..models.visibility import resolve_new_tag_visibility, resolve_visibility_toggle
from ..storage.blob_store import BlobStore, normalize_file_path
from ..utils.app_id import decompose_application_id, validate_namespace
from ..utils.files import (
    check_kubernetes_yaml,
    is_metadata,
    is_readme_file,
    is_yaml_file,
    parse_metadata,
)


logger = logging.getLogger(__name__)


class CatalogManager:
    """Adds, serves and removes catalog applications.

    The metadata index is written first and the blob store second. If the
    files cannot be stored the metadata document is deleted again; a failure
    of that compensating delete is only logged.
    """

    def __init__(self, index: MetadataIndex, blob_store: BlobStore, catalog_url: Optional[str] = None):
        self.index = index
        self.blob_store = blob_store
        self.catalog_url = catalog_url

    def _decompose(self, raw_id: str) -> Tuple[Optional[str], ApplicationID]:
        catalog_url, app_id = decompose_application_id(raw_id)
        if self.catalog_url and catalog_url and catalog_url != self.catalog_url:
            raise FailedPreconditionError(
                f"application {raw_id} does not belong to catalog {self.catalog_url}"
            )
        return catalog_url, app_id

    def add(self, raw_id: str, files: List[FileInfo], is_private: bool = False,
            account_name: str = "") -> bool:
        """Add an application version and return the visibility it was stored with."""
        _, app_id = self._decompose(raw_id)
        validate_namespace(app_id.namespace)

        readme, metadata_text, metadata = self._extract_application_files(raw_id, files)

        if account_name:
            current = self.index.get_application_visibility(app_id.namespace, app_id.application_name)
            resolved = resolve_new_tag_visibility(current, is_private)
            if current is not None and resolved != is_private:
                logger.debug(f"{raw_id} adopts the application visibility private={resolved}")
            is_private = resolved

        info = ApplicationInfo(
            namespace=app_id.namespace,
            application_name=app_id.application_name,
            tag=app_id.tag,
            readme=readme,
            metadata=metadata_text,
            metadata_name=metadata.name,
            private=is_private,
        )
        self.index.add(info)

        try:
            self.blob_store.store_application(app_id.namespace, app_id.application_name, app_id.tag, files)
        except CatalogError:
            logger.error(f"Error storing application {raw_id}, removing its metadata")
            self._rollback_metadata(app_id)
            raise

        logger.info(f"{raw_id} added to catalog")
        return is_private

    def _rollback_metadata(self, app_id: ApplicationID):
        try:
            self.index.remove(app_id)
        except CatalogError as e:
            logger.error(f"Error removing metadata of {app_id.catalog_id} after a storage failure: {e}")

    def _extract_application_files(self, raw_id: str,
                                   files: List[FileInfo]) -> Tuple[str, str, ApplicationMetadata]:
        """Return the README text, the metadata text and the parsed metadata."""
        readme = ""
        metadata_text = None
        metadata = None

        for file_info in files:
            normalize_file_path(file_info.path)
            if is_readme_file(file_info.path):
                readme = file_info.data.decode('utf-8', errors='replace')
                continue
            if not is_yaml_file(file_info.path):
                continue

            try:
                found, parsed = is_metadata(file_info.data)
            except (yaml.YAMLError, ValueError, TypeError) as e:
                raise FailedPreconditionError(f"file {file_info.path} is not a valid YAML file: {e}") from e

            if found:
                if metadata is not None:
                    raise FailedPreconditionError(f"{raw_id} contains more than one metadata file")
                metadata = parsed
                metadata_text = file_info.data.decode('utf-8')
            else:
                check_kubernetes_yaml(file_info.path, file_info.data)

        if metadata is None:
            raise NotFoundError(f"{raw_id} does not contain a metadata file")
        if not metadata.name:
            raise FailedPreconditionError(f"{raw_id} metadata file must contain a name")

        return readme, metadata_text, metadata

    def download(self, raw_id: str, compressed: bool = False, is_access_allowed: bool = True) -> List[FileInfo]:
        """Return the files of an application version."""
        _, app_id = self._decompose(raw_id)

        info = self.index.get(app_id)
        self._check_visibility(info, is_access_allowed)

        return self.blob_store.get_application(app_id.namespace, app_id.application_name, app_id.tag, compressed)

    def remove(self, raw_id: str):
        """Remove an application version from the index and the blob store."""
        _, app_id = self._decompose(raw_id)

        try:
            self.index.remove(app_id)
        except CatalogError as e:
            logger.error(f"Unable to remove metadata of {raw_id}: {e}")
            raise

        try:
            self.blob_store.remove_application(app_id.namespace, app_id.application_name, app_id.tag)
        except CatalogError as e:
            logger.error(f"Unable to remove files of {raw_id}: {e}")
            raise

        logger.info(f"{raw_id} removed from catalog")

    def get(self, raw_id: str, is_access_allowed: bool = True) -> ExtendedApplicationMetadata:
        """Return an application version with its parsed metadata."""
        _, app_id = self._decompose(raw_id)

        info = self.index.get(app_id)
        self._check_visibility(info, is_access_allowed)

        return ExtendedApplicationMetadata(info=info, metadata_obj=parse_metadata(info.metadata))

    def _check_visibility(self, info: ApplicationInfo, is_access_allowed: bool):
        # private applications are reported as missing to callers without access
        if info.private and not is_access_allowed:
            logger.debug(f"Access denied to private application {info.catalog_id}")
            raise NotFoundError(f"application {info.catalog_id} not found")

    def list(self, account_visibility: Optional[Dict[str, Optional[bool]]] = None,
             include_public: bool = True) -> List[AppSummary]:
        """List application summaries.

        ``account_visibility`` maps a namespace to the visibility to list from
        it, ``None`` meaning every application of the namespace.
        """
        applications: List[AppSummary] = []
        if include_public:
            public, _ = self.index.list_summary_with_filter(ListFilter(private=False))
            applications.extend(public)

        for namespace, private in (account_visibility or {}).items():
            found, _ = self.index.list_summary_with_filter(ListFilter(namespace=namespace, private=private))
            applications.extend(found)

        return applications

    def summary(self) -> Summary:
        """Return the catalog totals."""
        return self.index.get_summary()

    def update_visibility(self, namespace: str, application_name: str, is_private: bool):
        """Toggle the visibility of every tag of an application."""
        if not namespace or not application_name:
            raise InvalidFormatError("namespace and application name must be filled")

        current = self.index.get_application_visibility(namespace, application_name)
        new_visibility = resolve_visibility_toggle(current, is_private)

        self.index.update_application_visibility(namespace, application_name, new_visibility)
        logger.info(f"{namespace}/{application_name} visibility changed to private={new_visibility}")
