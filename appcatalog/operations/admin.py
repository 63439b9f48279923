"""Administrative operations over whole namespaces."""

import logging
from typing import List

from ..database.metadata_index import MetadataIndex
from ..errors import CatalogError, FailedPreconditionError, InvalidFormatError
from ..models.application import AppSummary, ListFilter
from ..storage.blob_store import BlobStore
from ..utils.app_id import decompose_application_id


logger = logging.getLogger(__name__)


class AdminOperation:
    """Handles namespace-wide deletions and listings."""

    def __init__(self, index: MetadataIndex, blob_store: BlobStore):
        self.index = index
        self.blob_store = blob_store

    def delete_namespace(self, namespace: str) -> int:
        """Delete every application of a namespace, returning how many tags were removed."""
        logger.info(f"Deleting namespace: {namespace}")

        applications = self.index.list(namespace)
        if not applications:
            logger.info(f"Namespace {namespace} has no applications")
            return 0

        for info in applications:
            self.index.remove(info.to_application_id())

        self.blob_store.remove_repository(namespace)
        logger.info(f"Removed {len(applications)} tags from namespace {namespace}")
        return len(applications)

    def delete_application(self, raw_id: str):
        """Remove an application version from the index and the blob store."""
        try:
            _, app_id = decompose_application_id(raw_id)
        except InvalidFormatError as e:
            raise FailedPreconditionError(f"unable to remove application, wrong name: {e}") from e

        try:
            self.index.remove(app_id)
        except CatalogError as e:
            logger.error(f"Unable to remove application metadata {raw_id}: {e}")
            raise

        try:
            self.blob_store.remove_application(app_id.namespace, app_id.application_name, app_id.tag)
        except CatalogError as e:
            logger.error(f"Unable to remove application {raw_id}: {e}")
            raise

    def list(self, namespace: str) -> List[AppSummary]:
        """Return every application summary of a namespace, private ones included."""
        applications, _ = self.index.list_summary_with_filter(ListFilter(namespace=namespace))
        return applications
