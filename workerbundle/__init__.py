"""Classify worker build output into typed modules and assemble upload bindings."""

from .assets import AssetBundle, ModulesAssets, ServiceWorkerAssets, filestem_from_path
from .bindings import (
    ApiMigration,
    Binding,
    BindingSource,
    DurableObjectsClass,
    KvNamespace,
    Migration,
    PlainText,
    TextBlob,
    WasmModule,
)
from .errors import (
    ConfigError,
    EmptyFilenameError,
    GlobError,
    ModuleConflictError,
    ModulePathError,
    WorkerBundleError,
)
from .models import Module, ModuleType
from .modules import ModuleGlobs, ModuleMatcher, create_module_manifest

__all__ = [
    "ApiMigration",
    "AssetBundle",
    "Binding",
    "BindingSource",
    "ConfigError",
    "DurableObjectsClass",
    "EmptyFilenameError",
    "GlobError",
    "KvNamespace",
    "Migration",
    "Module",
    "ModuleConflictError",
    "ModuleGlobs",
    "ModuleMatcher",
    "ModulePathError",
    "ModuleType",
    "ModulesAssets",
    "PlainText",
    "ServiceWorkerAssets",
    "TextBlob",
    "WasmModule",
    "WorkerBundleError",
    "create_module_manifest",
    "filestem_from_path",
]
