"""Metadata index: authoritative store of the application documents.

Documents live in an :class:`IndexBackend`. Listings of the whole catalog are
served from a :class:`SummaryCache` that the index refreshes in the background
and after every successful write.
"""

import logging
from typing import Iterator, List, Dict, Any, Optional, Sequence, Tuple

from .index_backend import IndexBackend, generate_document_id
from ..errors import InternalError, NotFoundError
from ..models.application import (
    ApplicationID,
    ApplicationInfo,
    AppSummary,
    ListFilter,
    Summary,
    generate_catalog_id,
    CATALOG_ID_FIELD,
    NAMESPACE_FIELD,
    APPLICATION_FIELD,
    TAG_FIELD,
    METADATA_FIELD,
    METADATA_NAME_FIELD,
    PRIVATE_FIELD,
)
from ..models.metadata import ApplicationLogo
from ..utils.files import is_metadata
from ..workers.summary_cache import SummaryCache


logger = logging.getLogger(__name__)

SUMMARY_FIELDS = [
    NAMESPACE_FIELD,
    APPLICATION_FIELD,
    TAG_FIELD,
    METADATA_NAME_FIELD,
    METADATA_FIELD,
    PRIVATE_FIELD,
]

VISIBILITY_FIELDS = [NAMESPACE_FIELD, APPLICATION_FIELD, TAG_FIELD, PRIVATE_FIELD]


def _metadata_logos(info: ApplicationInfo) -> List[ApplicationLogo]:
    """Logos declared in the stored metadata; parse errors count as no logos."""
    try:
        found, metadata = is_metadata(info.metadata)
    except Exception as e:
        # one broken document must not abort the whole aggregation
        catalog_id = generate_catalog_id(info.namespace, info.application_name, info.tag)
        logger.warning(f"Error getting metadata of {catalog_id}: {e}")
        return []
    if not found:
        return []
    return metadata.logo


class SummaryAggregator:
    """Folds a stream of tag documents into per-application summaries.

    The stream must be sorted by namespace, application name and tag: tags of
    the same application are merged only when they are adjacent.
    """

    def __init__(self):
        self.applications: List[AppSummary] = []
        self.summary = Summary()

    def add(self, info: ApplicationInfo):
        self.summary.tag_count += 1
        logos = _metadata_logos(info)

        last = self.applications[-1] if self.applications else None
        if last is None or last.namespace != info.namespace:
            self.summary.namespace_count += 1

        if last is not None and last.namespace == info.namespace \
                and last.application_name == info.application_name:
            last.tag_metadata_name[info.tag] = info.metadata_name
            if logos:
                last.metadata_logo[info.tag] = logos
            return

        self.summary.application_count += 1
        app_summary = AppSummary(
            namespace=info.namespace,
            application_name=info.application_name,
            tag_metadata_name={info.tag: info.metadata_name},
            private=info.private,
        )
        if logos:
            app_summary.metadata_logo[info.tag] = logos
        self.applications.append(app_summary)

    def result(self) -> Tuple[List[AppSummary], Summary]:
        return self.applications, self.summary


class MetadataIndex:
    """Stores, queries and summarizes application documents."""

    def __init__(self, backend: IndexBackend, refresh_interval: float, auth_enabled: bool = False):
        self.backend = backend
        self.auth_enabled = auth_enabled
        # with authorization only public applications are cached
        self.cache_filter = ListFilter(private=False) if auth_enabled else ListFilter()
        self.cache = SummaryCache(lambda: self._aggregate(self.cache_filter), refresh_interval)

    def init(self):
        """Create the index, fill the summary cache and start refreshing it."""
        logger.info("Initializing metadata index")
        self.backend.ensure_index()
        self.cache.start()

    def finish(self):
        """Stop the summary cache refresher."""
        self.cache.stop()

    def add(self, info: ApplicationInfo) -> ApplicationInfo:
        """Store an application document, overwriting the previous one of the same tag."""
        info.catalog_id = generate_catalog_id(info.namespace, info.application_name, info.tag)
        document = info.to_document()

        self.backend.put(generate_document_id(info.catalog_id), document)
        logger.debug(f"Added metadata of {info.catalog_id}")

        self.cache.request_refresh()
        return info

    def get(self, app_id: ApplicationID) -> ApplicationInfo:
        """Return the document of an application version."""
        page = self.backend.page_scan({CATALOG_ID_FIELD: app_id.catalog_id}, 0, size=2)
        if page.total > 1:
            logger.error(f"{page.total} documents found for {app_id.catalog_id}")
            raise InternalError(f"error getting application {app_id.catalog_id}: duplicated entries")
        if page.total == 0 or not page.records:
            raise NotFoundError(f"application {app_id.catalog_id} not found")
        return ApplicationInfo.from_document(page.records[0])

    def exists(self, app_id: ApplicationID) -> bool:
        page = self.backend.page_scan({CATALOG_ID_FIELD: app_id.catalog_id}, 0, size=1,
                                      fields=[CATALOG_ID_FIELD])
        return page.total > 0

    def remove(self, app_id: ApplicationID):
        """Delete the document of an application version."""
        deleted = self.backend.delete_by_query({CATALOG_ID_FIELD: app_id.catalog_id})
        if deleted == 0:
            raise NotFoundError(f"application {app_id.catalog_id} not found")
        logger.debug(f"Removed metadata of {app_id.catalog_id}")

        self.cache.request_refresh()

    def list(self, namespace: str) -> List[ApplicationInfo]:
        """Return every document of a namespace."""
        terms = ListFilter(namespace=namespace).to_terms()
        return [ApplicationInfo.from_document(record) for record in self._scan(terms)]

    def list_summary_with_filter(self, list_filter: ListFilter) -> Tuple[List[AppSummary], Summary]:
        """Return the application summaries and totals matching a filter.

        Requests matching the cached filter are served from the cache.
        """
        if not list_filter.namespace and list_filter.private == self.cache_filter.private:
            applications, summary = self.cache.snapshot()
            return applications, summary or Summary()
        return self._aggregate(list_filter)

    def get_summary(self) -> Summary:
        """Return the cached catalog totals."""
        _, summary = self.cache.snapshot()
        if summary is None:
            raise InternalError("error getting catalog summary")
        return summary

    def get_application_visibility(self, namespace: str, application_name: str) -> Optional[bool]:
        """Return whether an application is private, or None if it has no tags yet."""
        terms = {NAMESPACE_FIELD: namespace, APPLICATION_FIELD: application_name}
        # all the tags share the visibility, one is enough
        page = self.backend.page_scan(terms, 0, size=1, fields=VISIBILITY_FIELDS)
        if not page.records:
            return None
        return bool(page.records[0][PRIVATE_FIELD])

    def update_application_visibility(self, namespace: str, application_name: str, is_private: bool):
        """Set the visibility of every tag of an application."""
        terms = {NAMESPACE_FIELD: namespace, APPLICATION_FIELD: application_name}
        updated = self.backend.update_by_query(terms, {PRIVATE_FIELD: is_private})
        if updated == 0:
            logger.error(f"Error changing visibility of {namespace}/{application_name}, no applications found")
            raise NotFoundError("unable to update application visibility. Application not found")
        logger.debug(f"Visibility of {updated} tags of {namespace}/{application_name} set to private={is_private}")

        self.cache.request_refresh()

    def _scan(self, terms: Dict[str, Any], fields: Optional[Sequence[str]] = None) -> Iterator[Dict[str, Any]]:
        """Stream every matching document, page after page.

        Stops when the received count equals the reported total or a page is
        empty. A total changing during the scan is not corrected.
        """
        offset = 0
        received = 0
        while True:
            page = self.backend.page_scan(terms, offset, fields=fields)
            for record in page.records:
                yield record
            received += len(page.records)
            offset = page.next_offset
            if received == page.total or not page.records:
                return

    def _aggregate(self, list_filter: ListFilter) -> Tuple[List[AppSummary], Summary]:
        logger.debug(f"Aggregating summaries with {list_filter}")
        aggregator = SummaryAggregator()
        for record in self._scan(list_filter.to_terms(), fields=SUMMARY_FIELDS):
            aggregator.add(ApplicationInfo.from_document(record))
        return aggregator.result()
