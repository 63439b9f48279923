"""S3 compatible blob store for application files."""

import logging
from typing import Dict, Any, Optional, List

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .blob_store import BlobStore, build_tgz, normalize_file_path
from ..config.settings import Config
from ..errors import InternalError, NotFoundError
from ..models.application import FileInfo


logger = logging.getLogger(__name__)


class S3BlobStore(BlobStore):
    """Blob store keeping application files as objects of one bucket.

    Object keys follow ``<storage_path>/<namespace>/<application>/<tag>/<relative path>``.
    """

    def __init__(self, bucket_name: str, storage_path: str = "", config: Optional[Config] = None,
                 region_name: Optional[str] = None, client=None):
        self.config = config
        self.bucket_name = bucket_name
        self.storage_path = storage_path.strip('/')
        self.region_name = region_name
        self._client = client
        self._ensure_bucket_exists()

    @classmethod
    def from_config(cls, config: Config, driver_config: Dict[str, Any]) -> 'S3BlobStore':
        return cls(
            bucket_name=driver_config['s3_bucket'],
            storage_path=driver_config.get('storage_path', ''),
            config=config,
            region_name=driver_config.get('s3_region'),
        )

    @property
    def client(self):
        """Lazy initialization of S3 client."""
        if self._client is None:
            s3_config = {
                'aws_access_key_id': self.config.s3_access_key_id,
                'aws_secret_access_key': self.config.s3_secret_access_key,
            }
            if self.config.s3_endpoint_url:
                s3_config['endpoint_url'] = self.config.s3_endpoint_url
            if self.region_name:
                s3_config['region_name'] = self.region_name
            self._client = boto3.client('s3', **s3_config)
        return self._client

    def _ensure_bucket_exists(self):
        """Create bucket if it doesn't exist."""
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            error_code = e.response['Error']['Code']
            if error_code == '404':
                try:
                    self.client.create_bucket(Bucket=self.bucket_name)
                except ClientError as create_error:
                    raise InternalError(f"Failed to create bucket {self.bucket_name}: {create_error}")
            else:
                raise InternalError(f"Error accessing bucket {self.bucket_name}: {e}")

    def _prefix(self, *parts: str) -> str:
        """Object key prefix ending with a slash."""
        segments = [self.storage_path] if self.storage_path else []
        segments.extend(parts)
        return '/'.join(segments) + '/'

    def _list_keys(self, prefix: str) -> List[str]:
        keys = []
        paginator = self.client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=prefix):
            for obj in page.get('Contents', []):
                keys.append(obj['Key'])
        return keys

    def _delete_keys(self, keys: List[str]):
        # delete_objects accepts up to 1000 keys per request
        for start in range(0, len(keys), 1000):
            chunk = keys[start:start + 1000]
            self.client.delete_objects(
                Bucket=self.bucket_name,
                Delete={'Objects': [{'Key': key} for key in chunk], 'Quiet': True}
            )

    def store_application(self, namespace: str, name: str, tag: str, files: List[FileInfo]):
        """Replace the stored objects of an application version."""
        paths = [normalize_file_path(file_info.path) for file_info in files]
        prefix = self._prefix(namespace, name, tag)

        try:
            self._delete_keys(self._list_keys(prefix))
            for path, file_info in zip(paths, files):
                self.client.put_object(
                    Bucket=self.bucket_name,
                    Key=f"{prefix}{path}",
                    Body=file_info.data,
                    ContentType="application/octet-stream"
                )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error storing application {prefix}: {e}")
            raise InternalError(f"error storing application {namespace}/{name}:{tag}") from e

        logger.debug(f"Stored {len(files)} objects under {prefix}")

    def get_application(self, namespace: str, name: str, tag: str, compressed: bool = False) -> List[FileInfo]:
        """Return the application files, or a single tgz file when compressed."""
        prefix = self._prefix(namespace, name, tag)
        files = []
        try:
            for key in sorted(self._list_keys(prefix)):
                response = self.client.get_object(Bucket=self.bucket_name, Key=key)
                files.append(FileInfo(path=f"./{name}/{key[len(prefix):]}", data=response['Body'].read()))
        except ClientError as e:
            if e.response['Error']['Code'] == 'NoSuchKey':
                raise NotFoundError(f"application {namespace}/{name}:{tag} not found") from e
            raise InternalError(f"error reading application {namespace}/{name}:{tag}") from e

        if not files:
            raise NotFoundError(f"application {namespace}/{name}:{tag} not found")
        if compressed:
            return [build_tgz(name, files)]
        return files

    def application_exists(self, namespace: str, name: str, tag: str) -> bool:
        try:
            response = self.client.list_objects_v2(
                Bucket=self.bucket_name,
                Prefix=self._prefix(namespace, name, tag),
                MaxKeys=1
            )
        except ClientError as e:
            raise InternalError(f"unable to check if the application {namespace}/{name}:{tag} exists") from e
        return response.get('KeyCount', len(response.get('Contents', []))) > 0

    def remove_application(self, namespace: str, name: str, tag: str):
        try:
            keys = self._list_keys(self._prefix(namespace, name, tag))
            if not keys:
                raise NotFoundError(f"unable to delete application {namespace}/{name}:{tag}, not found")
            self._delete_keys(keys)
        except (BotoCoreError, ClientError) as e:
            raise InternalError(f"unable to delete application {namespace}/{name}:{tag}") from e

    def create_repository(self, namespace: str):
        # object stores have no directories
        logger.debug(f"Repository {namespace} is created with its first object")

    def repository_exists(self, namespace: str) -> bool:
        try:
            response = self.client.list_objects_v2(
                Bucket=self.bucket_name,
                Prefix=self._prefix(namespace),
                MaxKeys=1
            )
        except ClientError as e:
            raise InternalError(f"unable to check if the repository {namespace} exists") from e
        return response.get('KeyCount', len(response.get('Contents', []))) > 0

    def remove_repository(self, namespace: str):
        """Remove every object of a namespace."""
        try:
            self._delete_keys(self._list_keys(self._prefix(namespace)))
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error removing repository {namespace}: {e}")
            raise InternalError(f"error removing repository {namespace}") from e
