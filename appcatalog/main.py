"""Main CLI entry point for appcatalog."""

import argparse
import json
import os
import sys
import logging
from contextlib import contextmanager
from typing import Dict, Any, Iterator, List, Optional, Tuple

from .auth.permissions import Claims, PermissionResolver
from .config.settings import Config
from .database.connection import DatabaseConnection
from .database.index_backend import PostgresIndexBackend
from .database.metadata_index import MetadataIndex
from .models.application import FileInfo
from .operations.admin import AdminOperation
from .operations.catalog import CatalogManager
from .storage.blob_store import create_blob_store, normalize_file_path
from .utils.logger import setup_logging


logger = logging.getLogger(__name__)


def print_json_output(data: Dict[str, Any]):
    """Print formatted JSON output."""
    print(json.dumps(data, indent=2))


@contextmanager
def open_catalog(config: Config) -> Iterator[Tuple[CatalogManager, AdminOperation, PermissionResolver]]:
    """Build the catalog components from the configuration and release them on exit."""
    resolver = PermissionResolver(config.auth_enabled, config.team_config)
    db = DatabaseConnection(config)
    index = MetadataIndex(
        PostgresIndexBackend(db, config.index_name),
        refresh_interval=config.cache_refresh_interval,
        auth_enabled=config.auth_enabled,
    )
    blob_store = create_blob_store(config)

    index.init()
    try:
        yield (
            CatalogManager(index, blob_store, config.catalog_url),
            AdminOperation(index, blob_store),
            resolver,
        )
    finally:
        index.finish()
        db.close()


def caller_claims(args) -> Optional[Claims]:
    """Claims of the caller given on the command line, if any."""
    if not args.username:
        return None
    return Claims(
        user_id=args.username,
        username=args.username,
        account_id=args.account or "",
        account_name=args.account or "",
        account_admin=args.account_admin,
    )


def is_access_allowed(resolver: PermissionResolver, claims: Optional[Claims], application_id: str) -> bool:
    """Whether the caller may see private applications of the namespace."""
    if resolver.auth_enabled and claims is None:
        return False
    return resolver.check_permission(claims, application_id)


def read_application_files(directory: str) -> List[FileInfo]:
    """Read every file below a directory, addressed by its relative path."""
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Application directory not found: {directory}")

    files = []
    for root, dirs, filenames in os.walk(directory):
        dirs.sort()
        for filename in sorted(filenames):
            file_path = os.path.join(root, filename)
            relative = os.path.relpath(file_path, directory).replace(os.sep, '/')
            with open(file_path, 'rb') as f:
                files.append(FileInfo(path=relative, data=f.read()))
    return files


def write_application_files(destination: str, files: List[FileInfo]) -> List[str]:
    """Write downloaded files below a destination directory."""
    written = []
    for file_info in files:
        file_path = os.path.join(destination, normalize_file_path(file_info.path))
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, 'wb') as f:
            f.write(file_info.data)
        written.append(file_path)
    return written


def fail(operation: str, error: Exception):
    logger.error(f"{operation} failed: {error}")
    print_json_output({
        "Operation": operation,
        "Status": "Failed",
        "Error": str(error)
    })
    sys.exit(1)


def handle_add(args):
    """Handle add command."""
    try:
        files = read_application_files(args.directory)
        claims = caller_claims(args)
        with open_catalog(Config()) as (catalog, _, resolver):
            resolver.require_permission(claims, args.application)
            is_private = catalog.add(args.application, files, args.private, args.account or "")

        print_json_output({
            "Operation": "Add",
            "Application": args.application,
            "Files": len(files),
            "Private": is_private
        })
    except Exception as e:
        fail("Add", e)


def handle_get(args):
    """Handle get command."""
    try:
        claims = caller_claims(args)
        with open_catalog(Config()) as (catalog, _, resolver):
            allowed = is_access_allowed(resolver, claims, args.application)
            metadata = catalog.get(args.application, is_access_allowed=allowed)

        output = metadata.to_dict()
        output["Operation"] = "Get"
        print_json_output(output)
    except Exception as e:
        fail("Get", e)


def handle_download(args):
    """Handle download command."""
    try:
        claims = caller_claims(args)
        with open_catalog(Config()) as (catalog, _, resolver):
            allowed = is_access_allowed(resolver, claims, args.application)
            files = catalog.download(args.application, compressed=args.compressed, is_access_allowed=allowed)

        written = write_application_files(args.destination, files)
        print_json_output({
            "Operation": "Download",
            "Application": args.application,
            "Compressed": args.compressed,
            "Files": written
        })
    except Exception as e:
        fail("Download", e)


def handle_list(args):
    """Handle list command."""
    try:
        claims = caller_claims(args)
        with open_catalog(Config()) as (catalog, admin, resolver):
            if not args.namespace:
                applications = catalog.list()
            elif is_access_allowed(resolver, claims, f"{args.namespace}/list"):
                applications = admin.list(args.namespace)
            else:
                applications = catalog.list({args.namespace: False}, include_public=False)

        print_json_output({
            "Operation": "List",
            "Namespace": args.namespace or "",
            "Applications": [app.to_dict() for app in applications]
        })
    except Exception as e:
        fail("List", e)


def handle_summary(args):
    """Handle summary command."""
    try:
        with open_catalog(Config()) as (catalog, _, _):
            summary = catalog.summary()

        print_json_output({
            "Operation": "Summary",
            "Summary": summary.to_dict()
        })
    except Exception as e:
        fail("Summary", e)


def handle_remove(args):
    """Handle remove command."""
    try:
        claims = caller_claims(args)
        with open_catalog(Config()) as (catalog, _, resolver):
            resolver.require_permission(claims, args.application)
            catalog.remove(args.application)

        print_json_output({
            "Operation": "Remove",
            "Application": args.application,
            "Status": "Removed"
        })
    except Exception as e:
        fail("Remove", e)


def handle_visibility(args):
    """Handle visibility command."""
    try:
        claims = caller_claims(args)
        with open_catalog(Config()) as (catalog, _, resolver):
            resolver.require_permission(claims, f"{args.namespace}/{args.application_name}")
            catalog.update_visibility(args.namespace, args.application_name, args.private)

        print_json_output({
            "Operation": "Visibility",
            "Namespace": args.namespace,
            "ApplicationName": args.application_name,
            "Private": args.private
        })
    except Exception as e:
        fail("Visibility", e)


def handle_delete_namespace(args):
    """Handle delete-namespace command."""
    try:
        claims = caller_claims(args)
        with open_catalog(Config()) as (_, admin, resolver):
            resolver.require_permission(claims, f"{args.namespace}/all", require_owner_privilege=True)
            removed = admin.delete_namespace(args.namespace)

        print_json_output({
            "Operation": "DeleteNamespace",
            "Namespace": args.namespace,
            "TagsRemoved": removed
        })
    except Exception as e:
        fail("DeleteNamespace", e)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='appcatalog',
        description='Stores, indexes and serves versioned applications addressed by namespace/application:tag.'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Set logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-file',
        help='Log to file in addition to console'
    )
    parser.add_argument(
        '--username',
        help='Caller identity, checked against the namespace when AUTH_ENABLED is set'
    )
    parser.add_argument(
        '--account',
        help='Current account of the caller; on add the new tag adopts the visibility of the existing application'
    )
    parser.add_argument(
        '--account-admin',
        action='store_true',
        help='The caller is an administrator of its account'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    add_parser = subparsers.add_parser(
        'add',
        help='Add an application version',
        description='Adds the files of a directory as an application version. The directory must contain one metadata file.'
    )
    add_parser.add_argument('application', help='Application identifier [catalogURL/]namespace/application[:tag]')
    add_parser.add_argument('directory', help='Directory with the application files')
    add_parser.add_argument(
        '--private',
        action='store_true',
        help='Store the application as private'
    )
    add_parser.set_defaults(func=handle_add)

    get_parser = subparsers.add_parser('get', help='Show an application version')
    get_parser.add_argument('application', help='Application identifier')
    get_parser.set_defaults(func=handle_get)

    download_parser = subparsers.add_parser('download', help='Download the files of an application version')
    download_parser.add_argument('application', help='Application identifier')
    download_parser.add_argument(
        '--destination',
        default='.',
        help='Directory where the files are written (default: current directory)'
    )
    download_parser.add_argument(
        '--compressed',
        action='store_true',
        help='Download a single tgz file'
    )
    download_parser.set_defaults(func=handle_download)

    list_parser = subparsers.add_parser(
        'list',
        help='List applications',
        description='Lists the public applications of the catalog, or the applications of a namespace.'
    )
    list_parser.add_argument('--namespace', help='Namespace to list (default: public applications)')
    list_parser.set_defaults(func=handle_list)

    summary_parser = subparsers.add_parser('summary', help='Show the catalog totals')
    summary_parser.set_defaults(func=handle_summary)

    remove_parser = subparsers.add_parser('remove', help='Remove an application version')
    remove_parser.add_argument('application', help='Application identifier')
    remove_parser.set_defaults(func=handle_remove)

    visibility_parser = subparsers.add_parser(
        'visibility',
        help='Change the visibility of an application',
        description='Toggles the visibility of every tag of an application. Setting the current visibility again fails.'
    )
    visibility_parser.add_argument('namespace', help='Application namespace')
    visibility_parser.add_argument('application_name', help='Application name')
    visibility_group = visibility_parser.add_mutually_exclusive_group(required=True)
    visibility_group.add_argument('--private', dest='private', action='store_true', help='Make the application private')
    visibility_group.add_argument('--public', dest='private', action='store_false', help='Make the application public')
    visibility_parser.set_defaults(func=handle_visibility)

    delete_namespace_parser = subparsers.add_parser(
        'delete-namespace',
        help='Delete every application of a namespace'
    )
    delete_namespace_parser.add_argument('namespace', help='Namespace to delete')
    delete_namespace_parser.set_defaults(func=handle_delete_namespace)

    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, args.log_file)

    args.func(args)


if __name__ == '__main__':
    main()
