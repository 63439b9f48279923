"""Namespace permission checks for catalog operations."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..config.settings import TeamConfig
from ..errors import InvalidFormatError, PermissionDeniedError
from ..utils.app_id import decompose_application_id


logger = logging.getLogger(__name__)


@dataclass
class Claims:
    """Identity of the caller as provided by the authentication layer."""
    user_id: str
    username: str
    account_id: str = ""
    account_name: str = ""
    account_admin: bool = False

    def is_authorized(self, namespace: str, require_admin: bool = False) -> bool:
        """Whether the current account owns the namespace (and is admin, if required)."""
        if self.account_name != namespace:
            return False
        return self.account_admin or not require_admin


class PermissionResolver:
    """Decides whether a caller may operate on the namespace of an application."""

    def __init__(self, auth_enabled: bool, team_config: Optional[TeamConfig] = None):
        self.auth_enabled = auth_enabled
        self.team_config = team_config or TeamConfig()

    def check_permission(self, claims: Optional[Claims], application_id: str,
                         require_owner_privilege: bool = False) -> bool:
        """Return whether the caller may act on the application namespace.

        Raises InvalidFormatError if the identifier cannot be parsed and
        PermissionDeniedError if authorization is enabled and there are no claims.
        """
        if not self.auth_enabled:
            return True

        try:
            _, app_id = decompose_application_id(application_id)
        except InvalidFormatError:
            logger.error(f"Error getting application name {application_id}, unable to check permissions")
            raise

        if claims is None:
            raise PermissionDeniedError("no credentials found in the request")

        namespace = app_id.namespace

        if self.is_privileged_user(claims.username) and self.is_team_namespace(namespace):
            logger.debug(f"Privileged user {claims.username} can operate in team namespace {namespace}")
            return True

        allowed = claims.is_authorized(namespace, require_owner_privilege)
        if allowed:
            logger.debug(f"User {claims.username} can operate in namespace {namespace}")
        else:
            logger.debug(f"User {claims.username} can NOT operate in namespace {namespace}")
        return allowed

    def require_permission(self, claims: Optional[Claims], application_id: str,
                           require_owner_privilege: bool = False):
        """Raise PermissionDeniedError unless check_permission allows the caller."""
        if not self.check_permission(claims, application_id, require_owner_privilege):
            raise PermissionDeniedError(f"operation not allowed on {application_id}")

    def is_team_namespace(self, namespace: str) -> bool:
        if not self.team_config.enabled:
            return False
        return namespace in self.team_config.team_namespaces

    def is_privileged_user(self, username: str) -> bool:
        if not self.team_config.enabled:
            return False
        return username in self.team_config.privileged_users
