"""Resource descriptors and the bindings they project for an upload."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple


@dataclass(frozen=True)
class Binding:
    """Named reference from a deployed program to an external resource."""

    kind: str
    name: str
    part: Optional[str] = None
    namespace_id: Optional[str] = None
    class_name: Optional[str] = None
    script_name: Optional[str] = None
    text: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        payload = {"type": self.kind, "name": self.name}
        for key in ("part", "namespace_id", "class_name", "script_name", "text"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload


class BindingSource(Protocol):
    """Anything that can describe itself as a :class:`Binding`."""

    def binding(self) -> Binding:
        ...


@dataclass(frozen=True)
class KvNamespace:
    binding_name: str
    id: str

    def binding(self) -> Binding:
        return Binding(kind="kv_namespace", name=self.binding_name, namespace_id=self.id)


@dataclass(frozen=True)
class DurableObjectsClass:
    binding_name: str
    class_name: str
    script_name: Optional[str] = None

    def binding(self) -> Binding:
        return Binding(
            kind="durable_object_namespace",
            name=self.binding_name,
            class_name=self.class_name,
            script_name=self.script_name,
        )


@dataclass(frozen=True)
class TextBlob:
    """A text file uploaded as its own part and bound by name."""

    binding_name: str
    path: Path

    def binding(self) -> Binding:
        return Binding(kind="text_blob", name=self.binding_name, part=self.binding_name)


@dataclass(frozen=True)
class PlainText:
    binding_name: str
    value: str

    def binding(self) -> Binding:
        return Binding(kind="plain_text", name=self.binding_name, text=self.value)


@dataclass(frozen=True)
class WasmModule:
    """A compiled wasm file uploaded as its own part and bound by name."""

    binding_name: str
    path: Path

    def binding(self) -> Binding:
        return Binding(kind="wasm_module", name=self.binding_name, part=self.binding_name)


@dataclass(frozen=True)
class RenameClass:
    from_name: str
    to_name: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.from_name, "to": self.to_name}


@dataclass(frozen=True)
class TransferClass:
    from_name: str
    from_script: str
    to_name: str

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.from_name, "from_script": self.from_script, "to": self.to_name}


@dataclass(frozen=True)
class Migration:
    """Changes to durable object classes between two deployments."""

    new_classes: Tuple[str, ...] = ()
    deleted_classes: Tuple[str, ...] = ()
    renamed_classes: Tuple[RenameClass, ...] = ()
    transferred_classes: Tuple[TransferClass, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.new_classes:
            payload["new_classes"] = list(self.new_classes)
        if self.deleted_classes:
            payload["deleted_classes"] = list(self.deleted_classes)
        if self.renamed_classes:
            payload["renamed_classes"] = [item.to_dict() for item in self.renamed_classes]
        if self.transferred_classes:
            payload["transferred_classes"] = [item.to_dict() for item in self.transferred_classes]
        return payload


@dataclass(frozen=True)
class ApiMigration:
    """Migration directive plus the tags that guard it."""

    migration: Migration = field(default_factory=Migration)
    old_tag: Optional[str] = None
    new_tag: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.old_tag is not None:
            payload["old_tag"] = self.old_tag
        if self.new_tag is not None:
            payload["new_tag"] = self.new_tag
        payload.update(self.migration.to_dict())
        return payload


def collect_bindings(*groups: Sequence[BindingSource]) -> List[Binding]:
    """Project every descriptor in ``groups``, preserving group order."""
    bindings: List[Binding] = []
    for group in groups:
        for source in group:
            bindings.append(source.binding())
    return bindings


__all__ = [
    "ApiMigration",
    "Binding",
    "BindingSource",
    "DurableObjectsClass",
    "KvNamespace",
    "Migration",
    "PlainText",
    "RenameClass",
    "TextBlob",
    "TransferClass",
    "WasmModule",
    "collect_bindings",
]
