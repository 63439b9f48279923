"""Tests for namespace administration."""

import pytest

from appcatalog.errors import FailedPreconditionError, NotFoundError
from appcatalog.operations.admin import AdminOperation

from tests.conftest import application_files


@pytest.fixture
def admin(index, blob_store):
    return AdminOperation(index, blob_store)


def test_delete_namespace(catalog, admin, index, blob_store):
    catalog.add("acme/widgets:1.0", application_files())
    catalog.add("acme/widgets:2.0", application_files())
    catalog.add("acme/gadgets:1.0", application_files())
    catalog.add("beta/widgets:1.0", application_files())

    assert admin.delete_namespace("acme") == 3

    assert index.list("acme") == []
    assert not blob_store.repository_exists("acme")
    assert len(index.list("beta")) == 1
    assert blob_store.application_exists("beta", "widgets", "1.0")


def test_delete_empty_namespace(admin):
    assert admin.delete_namespace("acme") == 0


def test_delete_application(catalog, admin, index, blob_store):
    catalog.add("acme/widgets:1.0", application_files())

    admin.delete_application("acme/widgets:1.0")

    assert index.list("acme") == []
    assert not blob_store.application_exists("acme", "widgets", "1.0")
    with pytest.raises(NotFoundError):
        admin.delete_application("acme/widgets:1.0")


def test_delete_application_with_wrong_name(admin):
    with pytest.raises(FailedPreconditionError):
        admin.delete_application("widgets")


def test_list_namespace_includes_private(catalog, admin):
    catalog.add("acme/widgets:1.0", application_files(), False, "acme")
    catalog.add("acme/secret:1.0", application_files(), True, "acme")
    catalog.add("beta/gadgets:1.0", application_files())

    assert [app.application_name for app in admin.list("acme")] == ["secret", "widgets"]
