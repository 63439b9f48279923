"""Tests for the S3 compatible blob store."""

import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from appcatalog.errors import InternalError, NotFoundError
from appcatalog.models.application import FileInfo
from appcatalog.storage.s3_backend import S3BlobStore


def client_error(code: str, operation: str = "HeadBucket") -> ClientError:
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


def mock_client(pages=None):
    client = MagicMock()
    paginator = MagicMock()
    paginator.paginate.return_value = pages if pages is not None else [{}]
    client.get_paginator.return_value = paginator
    return client


def test_creates_missing_bucket():
    client = mock_client()
    client.head_bucket.side_effect = client_error('404')

    S3BlobStore("apps", client=client)

    client.create_bucket.assert_called_once_with(Bucket="apps")


def test_bucket_access_error():
    client = mock_client()
    client.head_bucket.side_effect = client_error('403')

    with pytest.raises(InternalError):
        S3BlobStore("apps", client=client)


def test_store_application_keys():
    client = mock_client()
    store = S3BlobStore("apps", storage_path="/catalog/", client=client)

    store.store_application("acme", "widgets", "1.0", [
        FileInfo(path="metadata.yaml", data=b"meta"),
        FileInfo(path="./app/deployment.yaml", data=b"deploy"),
    ])

    keys = [call.kwargs['Key'] for call in client.put_object.call_args_list]
    assert keys == [
        "catalog/acme/widgets/1.0/metadata.yaml",
        "catalog/acme/widgets/1.0/app/deployment.yaml",
    ]


def test_store_application_wraps_client_errors():
    client = mock_client()
    client.put_object.side_effect = client_error('500', 'PutObject')
    store = S3BlobStore("apps", client=client)

    with pytest.raises(InternalError):
        store.store_application("acme", "widgets", "1.0", [FileInfo(path="metadata.yaml", data=b"meta")])


def test_get_application():
    client = mock_client([{'Contents': [
        {'Key': "acme/widgets/1.0/metadata.yaml"},
        {'Key': "acme/widgets/1.0/app/deployment.yaml"},
    ]}])
    client.get_object.side_effect = lambda Bucket, Key: {'Body': io.BytesIO(Key.encode('utf-8'))}
    store = S3BlobStore("apps", client=client)

    files = store.get_application("acme", "widgets", "1.0")

    assert [f.path for f in files] == ["./widgets/app/deployment.yaml", "./widgets/metadata.yaml"]
    assert files[1].data == b"acme/widgets/1.0/metadata.yaml"


def test_get_missing_application():
    store = S3BlobStore("apps", client=mock_client())
    with pytest.raises(NotFoundError):
        store.get_application("acme", "widgets", "1.0")


def test_remove_application():
    client = mock_client([{'Contents': [{'Key': "acme/widgets/1.0/metadata.yaml"}]}])
    store = S3BlobStore("apps", client=client)

    store.remove_application("acme", "widgets", "1.0")

    client.delete_objects.assert_called_once_with(
        Bucket="apps",
        Delete={'Objects': [{'Key': "acme/widgets/1.0/metadata.yaml"}], 'Quiet': True}
    )


def test_remove_missing_application():
    store = S3BlobStore("apps", client=mock_client())
    with pytest.raises(NotFoundError):
        store.remove_application("acme", "widgets", "1.0")


def test_application_exists():
    client = mock_client()
    client.list_objects_v2.return_value = {'KeyCount': 1}
    store = S3BlobStore("apps", client=client)

    assert store.application_exists("acme", "widgets", "1.0")
    client.list_objects_v2.assert_called_with(Bucket="apps", Prefix="acme/widgets/1.0/", MaxKeys=1)
