"""Blob store for the files of every application version.

Files are kept under ``<base_path>/<namespace>/<application>/<tag>/<relative path>``.
"""

import io
import logging
import os
import shutil
import tarfile
from typing import List

from ..config.settings import Config
from ..errors import FailedPreconditionError, InternalError, NotFoundError
from ..models.application import FileInfo
from ..utils.files import is_safe_relative_path


logger = logging.getLogger(__name__)


def build_tgz(name: str, files: List[FileInfo]) -> FileInfo:
    """Pack application files in a single ``./<name>.tgz`` file."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode='w:gz') as archive:
        for file_info in files:
            entry = tarfile.TarInfo(name=file_info.path)
            entry.size = len(file_info.data)
            entry.mode = 0o644
            archive.addfile(entry, io.BytesIO(file_info.data))
    return FileInfo(path=f"./{name}.tgz", data=buffer.getvalue())


def normalize_file_path(path: str) -> str:
    """Relative path of an application file, rejecting paths outside the application."""
    if not is_safe_relative_path(path):
        raise FailedPreconditionError(f"invalid application file path: {path}")
    return os.path.normpath(path)


def _is_below(parent: str, child: str) -> bool:
    """Whether child resolves to a path strictly inside parent."""
    parent = os.path.abspath(parent)
    child = os.path.abspath(child)
    return child != parent and os.path.commonpath([parent, child]) == parent


class BlobStore:
    """Storage operations on application files."""

    def store_application(self, namespace: str, name: str, tag: str, files: List[FileInfo]):
        raise NotImplementedError

    def get_application(self, namespace: str, name: str, tag: str, compressed: bool = False) -> List[FileInfo]:
        raise NotImplementedError

    def application_exists(self, namespace: str, name: str, tag: str) -> bool:
        raise NotImplementedError

    def remove_application(self, namespace: str, name: str, tag: str):
        raise NotImplementedError

    def create_repository(self, namespace: str):
        raise NotImplementedError

    def repository_exists(self, namespace: str) -> bool:
        raise NotImplementedError

    def remove_repository(self, namespace: str):
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    """Blob store on the local filesystem."""

    def __init__(self, base_path: str):
        self.base_path = base_path

    def _repository_directory(self, namespace: str) -> str:
        repo_dir = os.path.join(self.base_path, namespace)
        if not _is_below(self.base_path, repo_dir):
            raise FailedPreconditionError(f"invalid namespace: {namespace}")
        return repo_dir

    def _application_directory(self, namespace: str, name: str, tag: str) -> str:
        repo_dir = self._repository_directory(namespace)
        name_dir = os.path.join(repo_dir, name)
        app_dir = os.path.join(name_dir, tag)
        if not _is_below(repo_dir, name_dir) or not _is_below(name_dir, app_dir):
            raise FailedPreconditionError(f"invalid application location: {namespace}/{name}:{tag}")
        return app_dir

    def store_application(self, namespace: str, name: str, tag: str, files: List[FileInfo]):
        """Replace the stored files of an application version."""
        paths = [normalize_file_path(file_info.path) for file_info in files]
        app_dir = self._application_directory(namespace, name, tag)

        try:
            if os.path.exists(app_dir):
                shutil.rmtree(app_dir)
            os.makedirs(app_dir, exist_ok=True)

            for path, file_info in zip(paths, files):
                file_path = os.path.join(app_dir, path)
                os.makedirs(os.path.dirname(file_path), exist_ok=True)
                with open(file_path, 'wb') as f:
                    f.write(file_info.data)
                    f.flush()
                    os.fsync(f.fileno())
        except OSError as e:
            logger.error(f"Error storing application {app_dir}: {e}")
            raise InternalError(f"error storing application {namespace}/{name}:{tag}") from e

        logger.debug(f"Stored {len(files)} files in {app_dir}")

    def get_application(self, namespace: str, name: str, tag: str, compressed: bool = False) -> List[FileInfo]:
        """Return the application files, or a single tgz file when compressed."""
        app_dir = self._application_directory(namespace, name, tag)
        if not os.path.isdir(app_dir):
            raise NotFoundError(f"application {namespace}/{name}:{tag} not found")

        files = []
        try:
            for root, dirs, filenames in os.walk(app_dir):
                dirs.sort()
                for filename in sorted(filenames):
                    file_path = os.path.join(root, filename)
                    relative = os.path.relpath(file_path, app_dir).replace(os.sep, '/')
                    with open(file_path, 'rb') as f:
                        files.append(FileInfo(path=f"./{name}/{relative}", data=f.read()))
        except OSError as e:
            raise InternalError(f"error reading application {namespace}/{name}:{tag}") from e

        if compressed:
            return [build_tgz(name, files)]
        return files

    def application_exists(self, namespace: str, name: str, tag: str) -> bool:
        return os.path.isdir(self._application_directory(namespace, name, tag))

    def remove_application(self, namespace: str, name: str, tag: str):
        """Remove an application version and the directories it leaves empty."""
        app_dir = self._application_directory(namespace, name, tag)
        if not self.application_exists(namespace, name, tag):
            raise NotFoundError(f"unable to delete application {namespace}/{name}:{tag}, not found")

        try:
            shutil.rmtree(app_dir)
        except OSError as e:
            logger.error(f"Error deleting application {app_dir}: {e}")
            raise InternalError(f"unable to delete application {namespace}/{name}:{tag}") from e

        for directory in [os.path.dirname(app_dir), self._repository_directory(namespace)]:
            try:
                if os.path.isdir(directory) and not os.listdir(directory):
                    logger.debug(f"Removing empty directory {directory}")
                    os.rmdir(directory)
            except OSError as e:
                logger.warning(f"Error cleaning directory {directory}: {e}")

    def create_repository(self, namespace: str):
        try:
            os.makedirs(self._repository_directory(namespace), exist_ok=True)
        except OSError as e:
            raise InternalError(f"error creating repository {namespace}") from e

    def repository_exists(self, namespace: str) -> bool:
        return os.path.isdir(self._repository_directory(namespace))

    def remove_repository(self, namespace: str):
        """Remove every application of a namespace."""
        try:
            shutil.rmtree(self._repository_directory(namespace))
        except FileNotFoundError:
            logger.debug(f"Repository {namespace} has no stored applications")
        except OSError as e:
            logger.error(f"Error removing repository {namespace}: {e}")
            raise InternalError(f"error removing repository {namespace}") from e


def create_blob_store(config: Config) -> BlobStore:
    """Build the blob store configured in STORAGE_CONFIG."""
    driver_name, driver_config = config.storage_config

    if driver_name == 'LocalStorage':
        return LocalBlobStore(driver_config.get('storage_path', '/var/lib/appcatalog/repository'))
    if driver_name == 'S3Storage':
        from .s3_backend import S3BlobStore
        return S3BlobStore.from_config(config, driver_config)
    raise ValueError(f"Unsupported storage driver: {driver_name}")
