"""Application identifier parsing and validation.

Identifiers have the form ``[catalogURL/]namespace/applicationName[:tag]``.
"""

import re
from typing import Optional, Tuple

from ..errors import InvalidFormatError
from ..models.application import ApplicationID, DEFAULT_TAG


NAMESPACE_PATTERN = re.compile(r'^[a-z0-9]+([a-z0-9-][a-z0-9]+)+[a-z0-9]?$')


def decompose_application_id(raw_id: str) -> Tuple[Optional[str], ApplicationID]:
    """Split a raw identifier into its optional catalog URL and ApplicationID.

    A missing or blank tag becomes ``latest``.
    """
    if raw_id is None:
        raise InvalidFormatError("application identifier must be filled")

    # an identifier without namespace has no slash at all
    parts = raw_id.split("/")
    if len(parts) not in (2, 3):
        raise InvalidFormatError(
            f"incorrect format for application name '{raw_id}'. [catalogURL/]namespace/applicationName[:tag]"
        )

    catalog_url = None
    if len(parts) == 3:
        catalog_url = parts[0]
        parts = parts[1:]

    namespace, name_and_tag = parts
    name_parts = name_and_tag.split(":")
    if len(name_parts) > 2:
        raise InvalidFormatError(
            f"incorrect format for application name '{raw_id}'. [catalogURL/]namespace/applicationName[:tag]"
        )

    application_name = name_parts[0]
    tag = name_parts[1].strip() if len(name_parts) == 2 else ""
    if not tag:
        tag = DEFAULT_TAG

    if not namespace or not application_name:
        raise InvalidFormatError(f"namespace and application name must be filled in '{raw_id}'")

    # every element becomes a blob store directory
    for element in (namespace, application_name, tag):
        if element in (".", "..") or "\\" in element:
            raise InvalidFormatError(f"invalid element '{element}' in application name '{raw_id}'")

    return catalog_url, ApplicationID(namespace, application_name, tag)


def compose_application_id(app_id: ApplicationID, catalog_url: Optional[str] = None) -> str:
    """Inverse of decompose_application_id."""
    if catalog_url:
        return f"{catalog_url}/{app_id.catalog_id}"
    return app_id.catalog_id


def is_valid_namespace(namespace: str) -> bool:
    return bool(namespace) and NAMESPACE_PATTERN.match(namespace) is not None


def validate_namespace(namespace: str):
    """Raise InvalidFormatError when the namespace does not match the allowed pattern."""
    if not is_valid_namespace(namespace):
        raise InvalidFormatError(
            f"invalid namespace '{namespace}': only lowercase letters, digits and '-' are allowed"
        )
