"""Asset bundles handed to the uploader for both worker formats."""

from __future__ import annotations

from pathlib import Path, PurePath
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .bindings import (
    ApiMigration,
    Binding,
    DurableObjectsClass,
    KvNamespace,
    PlainText,
    TextBlob,
    WasmModule,
    collect_bindings,
)
from .errors import EmptyFilenameError
from .models import Module


def filestem_from_path(path: PurePath | str) -> Optional[str]:
    """Return the file name of ``path`` without its final suffix, or None when empty."""
    pure = PurePath(path)
    if pure.name == "..":
        return None
    return pure.stem or None


class ServiceWorkerAssets:
    """A single-script upload with its wasm, text and namespace bindings."""

    def __init__(
        self,
        script_path: Path,
        wasm_modules: Sequence[WasmModule] = (),
        kv_namespaces: Sequence[KvNamespace] = (),
        durable_object_classes: Sequence[DurableObjectsClass] = (),
        text_blobs: Sequence[TextBlob] = (),
        plain_texts: Sequence[PlainText] = (),
    ) -> None:
        script_name = filestem_from_path(script_path)
        if script_name is None:
            raise EmptyFilenameError(script_path)

        self.script_name = script_name
        self.script_path = Path(script_path)
        self.wasm_modules = list(wasm_modules)
        self.kv_namespaces = list(kv_namespaces)
        self.durable_object_classes = list(durable_object_classes)
        self.text_blobs = list(text_blobs)
        self.plain_texts = list(plain_texts)

    def bindings(self) -> List[Binding]:
        return collect_bindings(
            self.wasm_modules,
            self.kv_namespaces,
            self.durable_object_classes,
            self.text_blobs,
            self.plain_texts,
        )

    def metadata(self) -> Dict[str, Any]:
        return {
            "body_part": self.script_name,
            "bindings": [binding.to_dict() for binding in self.bindings()],
        }

    def __repr__(self) -> str:
        return f"ServiceWorkerAssets(script_name={self.script_name!r}, script_path={self.script_path!r})"


class ModulesAssets:
    """A modules-format upload: classified modules plus namespace bindings."""

    def __init__(
        self,
        main_module: str,
        modules: Sequence[Module],
        kv_namespaces: Sequence[KvNamespace] = (),
        durable_object_classes: Sequence[DurableObjectsClass] = (),
        migration: Optional[ApiMigration] = None,
        plain_texts: Sequence[PlainText] = (),
    ) -> None:
        self.main_module = main_module
        self.modules = list(modules)
        self.kv_namespaces = list(kv_namespaces)
        self.durable_object_classes = list(durable_object_classes)
        self.migration = migration
        self.plain_texts = list(plain_texts)

    def bindings(self) -> List[Binding]:
        # Wasm modules and text blobs were separate parts in the
        # service-worker format; here they are modules.
        return collect_bindings(
            self.kv_namespaces,
            self.durable_object_classes,
            self.plain_texts,
        )

    def parts(self) -> Iterator[Tuple[Module, str]]:
        """Yield each module with its content type, ordered by name."""
        for module in sorted(self.modules):
            yield module, module.content_type

    def metadata(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "main_module": self.main_module,
            "bindings": [binding.to_dict() for binding in self.bindings()],
        }
        if self.migration is not None:
            payload["migrations"] = self.migration.to_dict()
        return payload

    def __repr__(self) -> str:
        return f"ModulesAssets(main_module={self.main_module!r}, modules={len(self.modules)})"


AssetBundle = Union[ServiceWorkerAssets, ModulesAssets]


__all__ = ["AssetBundle", "ModulesAssets", "ServiceWorkerAssets", "filestem_from_path"]
