"""Application metadata file models."""

from dataclasses import dataclass, field
from typing import Dict, List, Any


def _string_list(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return [str(value)]


def _dict_list(value: Any) -> List[Dict[str, Any]]:
    """Entries of a list of mappings; a single mapping counts as one entry."""
    if isinstance(value, dict):
        return [value]
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, dict)]
    return []


def _string(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass
class ApplicationLogo:
    """Logo entry of an application (src URL, mime type, size)."""
    src: str = ""
    type: str = ""
    size: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"src": self.src, "type": self.type, "size": self.size}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationLogo':
        return cls(
            src=_string(data.get("src")),
            type=_string(data.get("type")),
            size=_string(data.get("size")),
        )


@dataclass
class KubernetesEntity:
    """Kubernetes entity required by an application."""
    api_version: str = ""
    kind: str = ""
    name: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"apiVersion": self.api_version, "kind": self.kind, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KubernetesEntity':
        return cls(
            api_version=_string(data.get("apiVersion")),
            kind=_string(data.get("kind")),
            name=_string(data.get("name")),
        )


@dataclass
class ApplicationRequirement:
    """Traits, scopes and Kubernetes entities an application needs."""
    traits: List[str] = field(default_factory=list)
    scopes: List[str] = field(default_factory=list)
    k8s_entities: List[KubernetesEntity] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "traits": list(self.traits),
            "scopes": list(self.scopes),
            "k8s": [entity.to_dict() for entity in self.k8s_entities],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationRequirement':
        entities = data.get("k8s") or data.get("k8sEntities")
        return cls(
            traits=_string_list(data.get("traits")),
            scopes=_string_list(data.get("scopes")),
            k8s_entities=[
                KubernetesEntity.from_dict(entity)
                for entity in _dict_list(entities)
            ],
        )


@dataclass
class ApplicationMetadata:
    """Parsed content of an application metadata file."""
    api_version: str
    kind: str
    name: str = ""
    version: str = ""
    description: str = ""
    keywords: List[str] = field(default_factory=list)
    license: str = ""
    url: str = ""
    doc: str = ""
    requires: ApplicationRequirement = field(default_factory=ApplicationRequirement)
    logo: List[ApplicationLogo] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "keywords": list(self.keywords),
            "license": self.license,
            "url": self.url,
            "doc": self.doc,
            "requires": self.requires.to_dict(),
            "logo": [logo.to_dict() for logo in self.logo],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationMetadata':
        requires = data.get("requires") or {}
        return cls(
            api_version=_string(data.get("apiVersion")),
            kind=_string(data.get("kind")),
            name=_string(data.get("name")).strip(),
            version=_string(data.get("version")),
            description=_string(data.get("description")),
            keywords=_string_list(data.get("keywords")),
            license=_string(data.get("license")),
            url=_string(data.get("url")),
            doc=_string(data.get("doc")),
            requires=ApplicationRequirement.from_dict(requires) if isinstance(requires, dict)
            else ApplicationRequirement(),
            logo=[ApplicationLogo.from_dict(logo) for logo in _dict_list(data.get("logo"))],
        )
