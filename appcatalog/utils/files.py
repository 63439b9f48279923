"""Recognition of the files that make up an application."""

import logging
import os
from typing import List, Optional, Tuple

import yaml

from ..errors import FailedPreconditionError
from ..models.metadata import ApplicationMetadata


logger = logging.getLogger(__name__)

# (apiVersion, kind) pairs accepted as application metadata files
METADATA_KINDS = [
    ("core.napptive.com/v1alpha1", "ApplicationMetadata"),
]

YAML_EXTENSIONS = ('.yaml', '.yml')


def is_yaml_file(path: str) -> bool:
    return path.lower().endswith(YAML_EXTENSIONS)


def is_readme_file(path: str) -> bool:
    """README.md, readme.txt, README ... anywhere in the application."""
    filename = os.path.basename(path).lower()
    return filename == "readme" or filename.startswith("readme.")


def is_metadata(data: bytes) -> Tuple[bool, Optional[ApplicationMetadata]]:
    """Check whether a file content is an application metadata document.

    Only a single-document file whose apiVersion/kind is in METADATA_KINDS
    is metadata; anything else returns ``(False, None)``. Raises
    ``yaml.YAMLError`` if the content cannot be parsed.
    """
    if isinstance(data, bytes):
        data = data.decode('utf-8')

    documents = [document for document in yaml.safe_load_all(data) if document is not None]
    if len(documents) != 1 or not isinstance(documents[0], dict):
        return False, None

    document = documents[0]

    if (document.get("apiVersion"), document.get("kind")) not in METADATA_KINDS:
        return False, None

    return True, ApplicationMetadata.from_dict(document)


def parse_metadata(data: str) -> ApplicationMetadata:
    """Parse a stored metadata text, raising if it is not a metadata document."""
    try:
        found, metadata = is_metadata(data)
    except yaml.YAMLError as e:
        raise FailedPreconditionError(f"unable to parse metadata file: {e}") from e
    if not found:
        raise FailedPreconditionError("stored metadata is not an application metadata document")
    return metadata


def check_kubernetes_yaml(path: str, data: bytes):
    """Validate that every document of a YAML file has apiVersion and kind."""
    try:
        documents: List = list(yaml.safe_load_all(data))
    except yaml.YAMLError as e:
        raise FailedPreconditionError(f"file {path} is not a valid YAML file: {e}") from e

    for document in documents:
        # empty documents between separators
        if document is None:
            continue
        if not isinstance(document, dict):
            raise FailedPreconditionError(f"file {path} contains a document that is not an entity")

        api_version = document.get("apiVersion")
        kind = document.get("kind")
        if not api_version or not isinstance(api_version, str) or not kind:
            raise FailedPreconditionError(f"file {path} contains an entity without apiVersion or kind")

        # core group entities use a bare version (v1)
        parts = api_version.split("/")
        if len(parts) > 2 or not all(parts):
            raise FailedPreconditionError(f"file {path} contains an invalid apiVersion '{api_version}'")


def is_safe_relative_path(path: str) -> bool:
    """Reject absolute paths and paths escaping their base directory."""
    if not path or os.path.isabs(path):
        return False
    normalized = os.path.normpath(path)
    return normalized not in (".", "..") and not normalized.startswith("../")
