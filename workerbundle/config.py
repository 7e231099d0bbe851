"""Configuration loading for workerbundle (workerbundle.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .assets import AssetBundle, ModulesAssets, ServiceWorkerAssets
from .bindings import (
    ApiMigration,
    DurableObjectsClass,
    KvNamespace,
    Migration,
    PlainText,
    RenameClass,
    TextBlob,
    TransferClass,
    WasmModule,
)
from .errors import ConfigError, WorkerBundleError
from .logging import get_logger
from .modules import ModuleGlobs, module_name

CONFIG_FILENAME = "workerbundle.yml"

FORMAT_MODULES = "modules"
FORMAT_SERVICE_WORKER = "service-worker"
_FORMATS = (FORMAT_MODULES, FORMAT_SERVICE_WORKER)

logger = get_logger("config")


@dataclass
class BundleConfig:
    """Represents the settings defined in workerbundle.yml."""

    root: Path
    name: Optional[str] = None
    main: Optional[str] = None
    format: str = FORMAT_MODULES
    upload_dir: Optional[Path] = None
    module_globs: ModuleGlobs = field(default_factory=ModuleGlobs)
    kv_namespaces: List[KvNamespace] = field(default_factory=list)
    durable_object_classes: List[DurableObjectsClass] = field(default_factory=list)
    plain_texts: List[PlainText] = field(default_factory=list)
    text_blobs: List[TextBlob] = field(default_factory=list)
    wasm_modules: List[WasmModule] = field(default_factory=list)
    migration: Optional[ApiMigration] = None

    @property
    def resolved_upload_dir(self) -> Path:
        return self.upload_dir if self.upload_dir is not None else self.root


def load_config(config_path: Path, root: Optional[Path] = None) -> BundleConfig:
    """Load configuration from disk.

    Relative paths in the file resolve against ``root``, which defaults to the
    directory holding the config file.
    """
    config_file = _resolve_config_path(Path(config_path))
    if root is None:
        root = config_file.parent
    root = Path(root).expanduser().resolve()

    if not config_file.exists():
        return BundleConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    format_name = _as_str(data.get("format")) or FORMAT_MODULES
    if format_name not in _FORMATS:
        raise ConfigError(
            f"Unsupported format '{format_name}'; expected one of: {', '.join(_FORMATS)}"
        )

    upload_dir_str = _as_str(data.get("upload_dir"))
    upload_dir = (root / upload_dir_str).resolve() if upload_dir_str else None

    globs_data = data.get("module_globs")
    if globs_data is not None and not isinstance(globs_data, dict):
        raise ConfigError("module_globs must be a mapping of module type to glob list")
    try:
        module_globs = ModuleGlobs.from_dict(globs_data or {})
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    return BundleConfig(
        root=root,
        name=_as_str(data.get("name")),
        main=_as_str(data.get("main")),
        format=format_name,
        upload_dir=upload_dir,
        module_globs=module_globs,
        kv_namespaces=_parse_kv_namespaces(data.get("kv_namespaces")),
        durable_object_classes=_parse_durable_objects(data.get("durable_objects")),
        plain_texts=[
            PlainText(binding_name=key, value=value)
            for key, value in _as_str_mapping(data.get("vars"), "vars").items()
        ],
        text_blobs=[
            TextBlob(binding_name=key, path=(root / value).resolve())
            for key, value in _as_str_mapping(data.get("text_blobs"), "text_blobs").items()
        ],
        wasm_modules=[
            WasmModule(binding_name=key, path=(root / value).resolve())
            for key, value in _as_str_mapping(data.get("wasm_modules"), "wasm_modules").items()
        ],
        migration=_parse_migration(data.get("migrations")),
    )


def build_assets(
    config: BundleConfig,
    *,
    follow_links: bool = True,
    standard_filters: bool = False,
) -> AssetBundle:
    """Build the asset bundle described by ``config``."""
    if not config.main:
        raise ConfigError(f"'main' must be set in {CONFIG_FILENAME}")

    if config.format == FORMAT_SERVICE_WORKER:
        logger.info("Assembling service-worker bundle from %s", config.main)
        return ServiceWorkerAssets(
            script_path=(config.root / config.main).resolve(),
            wasm_modules=config.wasm_modules,
            kv_namespaces=config.kv_namespaces,
            durable_object_classes=config.durable_object_classes,
            text_blobs=config.text_blobs,
            plain_texts=config.plain_texts,
        )

    upload_dir = config.resolved_upload_dir
    modules = config.module_globs.find_modules(
        upload_dir,
        follow_links=follow_links,
        standard_filters=standard_filters,
    )
    root = upload_dir.resolve()
    main_module = module_name(root / config.main, root)
    if main_module not in {module.name for module in modules}:
        raise WorkerBundleError(
            f"Main module {main_module} was not classified as a module in {upload_dir}"
        )
    logger.info(
        "Assembling modules bundle with %d modules (main=%s)", len(modules), main_module
    )
    return ModulesAssets(
        main_module=main_module,
        modules=modules,
        kv_namespaces=config.kv_namespaces,
        durable_object_classes=config.durable_object_classes,
        migration=config.migration,
        plain_texts=config.plain_texts,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _parse_kv_namespaces(value: Any) -> List[KvNamespace]:
    namespaces: List[KvNamespace] = []
    for entry in _as_list(value, "kv_namespaces"):
        entry = _as_dict(entry)
        binding = _as_str(entry.get("binding"))
        namespace_id = _as_str(entry.get("id"))
        if not binding or not namespace_id:
            raise ConfigError("kv_namespaces entries require 'binding' and 'id'")
        namespaces.append(KvNamespace(binding_name=binding, id=namespace_id))
    return namespaces


def _parse_durable_objects(value: Any) -> List[DurableObjectsClass]:
    if value is None:
        return []
    if not isinstance(value, dict):
        raise ConfigError("durable_objects must be a mapping with a 'classes' list")
    classes: List[DurableObjectsClass] = []
    for entry in _as_list(value.get("classes"), "durable_objects.classes"):
        entry = _as_dict(entry)
        name = _as_str(entry.get("name"))
        class_name = _as_str(entry.get("class_name"))
        if not name or not class_name:
            raise ConfigError("durable_objects.classes entries require 'name' and 'class_name'")
        classes.append(
            DurableObjectsClass(
                binding_name=name,
                class_name=class_name,
                script_name=_as_str(entry.get("script_name")),
            )
        )
    return classes


def _parse_migration(value: Any) -> Optional[ApiMigration]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigError("migrations must be a mapping")
    data = value

    renamed: List[RenameClass] = []
    for entry in _as_list(data.get("renamed_classes"), "migrations.renamed_classes"):
        entry = _as_dict(entry)
        from_name, to_name = _as_str(entry.get("from")), _as_str(entry.get("to"))
        if not from_name or not to_name:
            raise ConfigError("renamed_classes entries require 'from' and 'to'")
        renamed.append(RenameClass(from_name=from_name, to_name=to_name))

    transferred: List[TransferClass] = []
    for entry in _as_list(data.get("transferred_classes"), "migrations.transferred_classes"):
        entry = _as_dict(entry)
        from_name = _as_str(entry.get("from"))
        from_script = _as_str(entry.get("from_script"))
        to_name = _as_str(entry.get("to"))
        if not from_name or not from_script or not to_name:
            raise ConfigError(
                "transferred_classes entries require 'from', 'from_script' and 'to'"
            )
        transferred.append(
            TransferClass(from_name=from_name, from_script=from_script, to_name=to_name)
        )

    return ApiMigration(
        old_tag=_as_str(data.get("old_tag")),
        new_tag=_as_str(data.get("new_tag")),
        migration=Migration(
            new_classes=tuple(_as_str_list(data.get("new_classes"), "migrations.new_classes")),
            deleted_classes=tuple(_as_str_list(data.get("deleted_classes"), "migrations.deleted_classes")),
            renamed_classes=tuple(renamed),
            transferred_classes=tuple(transferred),
        ),
    )


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any, key: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list")
    return value


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_str_mapping(value: Any, key: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping of binding name to value")
    result: Dict[str, str] = {}
    for name, item in value.items():
        text = _as_str(item)
        if text is None:
            raise ConfigError(f"{key}.{name} must be a scalar value")
        result[str(name)] = text
    return result


def _as_str_list(value: Any, key: str) -> List[str]:
    result: List[str] = []
    for item in _as_list(value, key):
        text = _as_str(item)
        if text is None:
            raise ConfigError(f"{key} entries must be scalar values")
        result.append(text)
    return result


__all__ = [
    "BundleConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "FORMAT_MODULES",
    "FORMAT_SERVICE_WORKER",
    "build_assets",
    "load_config",
]
