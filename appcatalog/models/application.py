"""Catalog application data models."""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional

from .metadata import ApplicationLogo, ApplicationMetadata


DEFAULT_TAG = "latest"

# Document field names stored in the metadata index
CATALOG_ID_FIELD = "CatalogID"
NAMESPACE_FIELD = "Namespace"
APPLICATION_FIELD = "ApplicationName"
TAG_FIELD = "Tag"
README_FIELD = "Readme"
METADATA_FIELD = "Metadata"
METADATA_NAME_FIELD = "MetadataName"
PRIVATE_FIELD = "Private"

DOCUMENT_FIELDS = [
    CATALOG_ID_FIELD,
    NAMESPACE_FIELD,
    APPLICATION_FIELD,
    TAG_FIELD,
    README_FIELD,
    METADATA_FIELD,
    METADATA_NAME_FIELD,
    PRIVATE_FIELD,
]

SORT_FIELDS = [NAMESPACE_FIELD, APPLICATION_FIELD, TAG_FIELD]


def generate_catalog_id(namespace: str, application_name: str, tag: str) -> str:
    """Build the catalog key namespace/applicationName:tag."""
    return f"{namespace}/{application_name}:{tag}"


@dataclass(frozen=True)
class ApplicationID:
    """Unique identifier of one application version."""
    namespace: str
    application_name: str
    tag: str = DEFAULT_TAG

    @property
    def catalog_id(self) -> str:
        return generate_catalog_id(self.namespace, self.application_name, self.tag)

    def __str__(self) -> str:
        return self.catalog_id


@dataclass
class FileInfo:
    """A file of an application, addressed by its relative path."""
    path: str
    data: bytes


@dataclass
class ApplicationInfo:
    """Document stored in the metadata index, one per application version."""
    namespace: str
    application_name: str
    tag: str
    readme: str = ""
    metadata: str = ""
    metadata_name: str = ""
    private: bool = False
    catalog_id: str = ""

    def to_application_id(self) -> ApplicationID:
        return ApplicationID(self.namespace, self.application_name, self.tag)

    def to_document(self) -> Dict[str, Any]:
        """Convert to the index document representation."""
        return {
            CATALOG_ID_FIELD: self.catalog_id or generate_catalog_id(
                self.namespace, self.application_name, self.tag
            ),
            NAMESPACE_FIELD: self.namespace,
            APPLICATION_FIELD: self.application_name,
            TAG_FIELD: self.tag,
            README_FIELD: self.readme,
            METADATA_FIELD: self.metadata,
            METADATA_NAME_FIELD: self.metadata_name,
            PRIVATE_FIELD: self.private,
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> 'ApplicationInfo':
        """Create from a (possibly partial) index document."""
        return cls(
            namespace=document.get(NAMESPACE_FIELD, ""),
            application_name=document.get(APPLICATION_FIELD, ""),
            tag=document.get(TAG_FIELD, ""),
            readme=document.get(README_FIELD) or "",
            metadata=document.get(METADATA_FIELD) or "",
            metadata_name=document.get(METADATA_NAME_FIELD) or "",
            private=bool(document.get(PRIVATE_FIELD, False)),
            catalog_id=document.get(CATALOG_ID_FIELD, ""),
        )


@dataclass
class ExtendedApplicationMetadata:
    """Application document plus its parsed metadata file."""
    info: ApplicationInfo
    metadata_obj: ApplicationMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "CatalogID": self.info.catalog_id,
            "Namespace": self.info.namespace,
            "ApplicationName": self.info.application_name,
            "Tag": self.info.tag,
            "MetadataName": self.info.metadata_name,
            "Private": self.info.private,
            "Readme": self.info.readme,
            "Metadata": self.info.metadata,
            "MetadataObj": self.metadata_obj.to_dict(),
        }


@dataclass
class AppSummary:
    """Aggregated view of all the tags of one application."""
    namespace: str
    application_name: str
    tag_metadata_name: Dict[str, str] = field(default_factory=dict)
    metadata_logo: Dict[str, List[ApplicationLogo]] = field(default_factory=dict)
    private: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Namespace": self.namespace,
            "ApplicationName": self.application_name,
            "TagMetadataName": dict(self.tag_metadata_name),
            "MetadataLogo": {
                tag: [logo.to_dict() for logo in logos]
                for tag, logos in self.metadata_logo.items()
            },
            "Private": self.private,
        }


@dataclass
class Summary:
    """Catalog totals."""
    namespace_count: int = 0
    application_count: int = 0
    tag_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "Namespaces": self.namespace_count,
            "Applications": self.application_count,
            "Tags": self.tag_count,
        }


@dataclass
class ListFilter:
    """Filter applied to summary listings.

    ``None`` means "do not filter on this field".
    """
    namespace: Optional[str] = None
    private: Optional[bool] = None

    def to_terms(self) -> Dict[str, Any]:
        terms: Dict[str, Any] = {}
        if self.namespace:
            terms[NAMESPACE_FIELD] = self.namespace
        if self.private is not None:
            terms[PRIVATE_FIELD] = self.private
        return terms

    def __str__(self) -> str:
        namespace = self.namespace or ""
        private = "" if self.private is None else str(self.private)
        return f"ListFilter. Namespace [{namespace}] - Private [{private}]"
