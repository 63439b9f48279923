"""Tests for application file recognition."""

import pytest
import yaml

from appcatalog.errors import FailedPreconditionError
from appcatalog.utils.files import (
    check_kubernetes_yaml,
    is_metadata,
    is_readme_file,
    is_safe_relative_path,
    is_yaml_file,
    parse_metadata,
)

from tests.conftest import metadata_yaml


def test_file_kinds():
    assert is_yaml_file("app/deployment.yaml")
    assert is_yaml_file("metadata.YML")
    assert not is_yaml_file("README.md")

    assert is_readme_file("README.md")
    assert is_readme_file("docs/readme")
    assert not is_readme_file("readme_assets/logo.png")


def test_is_metadata_parses_document():
    found, metadata = is_metadata(metadata_yaml("Widgets", [{"src": "https://x/logo.png", "type": "image/png"}]))
    assert found
    assert metadata.name == "Widgets"
    assert metadata.logo[0].src == "https://x/logo.png"
    assert metadata.logo[0].size == ""


def test_is_metadata_ignores_other_kinds():
    assert is_metadata(b"apiVersion: apps/v1\nkind: Deployment\n") == (False, None)
    assert is_metadata(b"- just\n- a list\n") == (False, None)


def test_is_metadata_raises_on_invalid_yaml():
    with pytest.raises(yaml.YAMLError):
        is_metadata(b"name: [unclosed")


def test_metadata_name_is_trimmed():
    _, metadata = is_metadata(metadata_yaml("  Widgets  "))
    assert metadata.name == "Widgets"


def test_metadata_requirements():
    data = (
        b"apiVersion: core.napptive.com/v1alpha1\n"
        b"kind: ApplicationMetadata\n"
        b"name: Widgets\n"
        b"requires:\n"
        b"  traits: [ingress]\n"
        b"  k8s:\n"
        b"    - apiVersion: v1\n"
        b"      kind: ConfigMap\n"
        b"      name: settings\n"
    )
    _, metadata = is_metadata(data)
    assert metadata.requires.traits == ["ingress"]
    assert metadata.requires.k8s_entities[0].kind == "ConfigMap"
    assert metadata.to_dict()["requires"]["k8s"][0]["name"] == "settings"


def test_parse_metadata_rejects_non_metadata():
    with pytest.raises(FailedPreconditionError):
        parse_metadata("apiVersion: v1\nkind: ConfigMap\n")
    with pytest.raises(FailedPreconditionError):
        parse_metadata("name: [unclosed")


def test_check_kubernetes_yaml_accepts_multi_document():
    data = b"apiVersion: v1\nkind: Service\n---\n---\napiVersion: apps/v1\nkind: Deployment\n"
    check_kubernetes_yaml("app.yaml", data)


@pytest.mark.parametrize("data", [
    b"kind: Service\n",
    b"apiVersion: v1\n",
    b"apiVersion: a/b/c\nkind: Thing\n",
    b"- item\n",
    b"key: [unclosed",
])
def test_check_kubernetes_yaml_rejects_invalid_entities(data):
    with pytest.raises(FailedPreconditionError):
        check_kubernetes_yaml("app.yaml", data)


def test_safe_relative_paths():
    assert is_safe_relative_path("metadata.yaml")
    assert is_safe_relative_path("./app/deployment.yaml")
    assert not is_safe_relative_path("")
    assert not is_safe_relative_path("/etc/passwd")
    assert not is_safe_relative_path("../outside.yaml")
    assert not is_safe_relative_path("app/../../outside.yaml")
    assert not is_safe_relative_path(".")


def test_multi_document_file_is_not_metadata():
    data = metadata_yaml("Widgets") + b"---\napiVersion: v1\nkind: Service\n"
    assert is_metadata(data) == (False, None)
    assert is_metadata(b"apiVersion: v1\nkind: Service\n---\napiVersion: apps/v1\nkind: Deployment\n") == (False, None)


def test_metadata_after_empty_documents():
    found, metadata = is_metadata(b"---\n" + metadata_yaml("Widgets"))
    assert found
    assert metadata.name == "Widgets"


def test_metadata_with_unexpected_types():
    data = (
        b"apiVersion: core.napptive.com/v1alpha1\n"
        b"kind: ApplicationMetadata\n"
        b"name: Widgets\n"
        b"keywords: 5\n"
        b"requires: [ingress]\n"
        b"logo:\n"
        b"  src: https://example.com/logo.png\n"
    )
    _, metadata = is_metadata(data)
    assert metadata.keywords == ["5"]
    assert metadata.requires.traits == []
    assert metadata.logo[0].src == "https://example.com/logo.png"
