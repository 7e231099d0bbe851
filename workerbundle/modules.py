"""Module type matching and manifest building for upload directories."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path, PurePath
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import GlobError, ModuleConflictError, ModulePathError
from .globs import TypeMatcher, TypeMatcherBuilder
from .logging import get_logger
from .models import Module, ModuleType
from .walker import is_regular_file, iter_upload_candidates

# (config key, module type, default globs) in classification order.
# compiled_wasm is non-standard, so it only matches when configured.
DEFAULT_MODULE_GLOBS: Tuple[Tuple[str, ModuleType, Tuple[str, ...]], ...] = (
    ("esm", ModuleType.ESModule, ("*.mjs",)),
    ("cjs", ModuleType.CommonJS, ("*.js", "*.cjs")),
    ("compiled_wasm", ModuleType.CompiledWasm, ()),
    ("text", ModuleType.Text, ("*.txt",)),
    ("data", ModuleType.Data, ("*.bin",)),
)

logger = get_logger("modules")


@dataclass(frozen=True)
class ModuleMatcher:
    """Globs for a single module type."""

    matcher: TypeMatcher
    module_type: ModuleType


@dataclass(frozen=True)
class ModuleGlobs:
    """Per-type glob lists; ``None`` falls back to the type's defaults."""

    esm: Optional[Tuple[str, ...]] = None
    cjs: Optional[Tuple[str, ...]] = None
    text: Optional[Tuple[str, ...]] = None
    data: Optional[Tuple[str, ...]] = None
    compiled_wasm: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, str):
                raise TypeError(
                    f"Module globs for '{item.name}' must be a list of strings, not a string"
                )
            if value is not None and not isinstance(value, tuple):
                object.__setattr__(self, item.name, tuple(value))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModuleGlobs":
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown module glob keys: {', '.join(unknown)}")
        values: Dict[str, Optional[Tuple[str, ...]]] = {}
        for key in known:
            value = data.get(key)
            if value is None:
                continue
            if isinstance(value, str) or not isinstance(value, Sequence):
                raise ValueError(f"Module globs for '{key}' must be a list of strings")
            values[key] = tuple(value)
        return cls(**values)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            item.name: list(getattr(self, item.name))
            for item in fields(self)
            if getattr(self, item.name) is not None
        }

    def globs_for(self, key: str, default: Sequence[str] = ()) -> Tuple[str, ...]:
        configured = getattr(self, key)
        return tuple(default) if configured is None else configured

    def build_type_matchers(self) -> Tuple[TypeMatcher, List[ModuleMatcher]]:
        """Compile the combined matcher and one matcher per module type."""
        matchers: List[ModuleMatcher] = []
        all_builder = TypeMatcherBuilder()

        for key, module_type, default_globs in DEFAULT_MODULE_GLOBS:
            builder = TypeMatcherBuilder()
            builder.add_type(module_type.name)
            for glob in self.globs_for(key, default_globs):
                if not isinstance(glob, str):
                    raise GlobError(f"expected a glob string for '{key}', got {type(glob).__name__}")
                all_builder.add(module_type.name, glob)
                builder.add(module_type.name, glob)
            matchers.append(ModuleMatcher(matcher=builder.build(), module_type=module_type))

        return all_builder.build(), matchers

    def find_modules(
        self,
        upload_dir: Path | str,
        *,
        follow_links: bool = True,
        standard_filters: bool = False,
    ) -> List[Module]:
        """Walk ``upload_dir`` and classify every matching regular file."""
        root = Path(upload_dir).expanduser().resolve()
        if not root.is_dir():
            raise NotADirectoryError(f"Upload directory is not a directory: {upload_dir}")

        all_matcher, matchers = self.build_type_matchers()
        candidates = [
            path
            for path in iter_upload_candidates(
                root,
                all_matcher,
                follow_links=follow_links,
                standard_filters=standard_filters,
            )
            if is_regular_file(path)
        ]
        logger.debug("Walk of %s produced %d module candidates", root, len(candidates))

        modules = create_module_manifest(candidates, root, matchers)
        logger.debug("Classified %d modules", len(modules))
        return modules


def module_name(path: PurePath | str, upload_dir: PurePath | str) -> str:
    """Return the ``./``-prefixed forward-slash name of ``path`` under ``upload_dir``."""
    normalized = PurePath(os.path.normpath(path))
    try:
        relative = normalized.relative_to(PurePath(os.path.normpath(upload_dir)))
    except ValueError as exc:
        raise ModulePathError(path, upload_dir) from exc
    return f"./{relative.as_posix()}"


def create_module_manifest(
    paths: Iterable[PurePath | str],
    upload_dir: PurePath | str,
    matchers: Sequence[ModuleMatcher],
) -> List[Module]:
    """Classify ``paths`` against ``matchers``.

    Files no matcher selects are left out. A file selected by more than one
    matcher raises :class:`ModuleConflictError`. No file system access is
    performed, so callers must pass regular files only.
    """
    modules: Dict[str, Module] = {}

    for raw_path in paths:
        path = Path(raw_path)
        name = module_name(path, upload_dir)
        rel_path = name[2:]
        for entry in matchers:
            if not entry.matcher.is_whitelisted(rel_path):
                continue
            if name in modules:
                raise ModuleConflictError(path)
            modules[name] = Module(name=name, path=path, module_type=entry.module_type)

    return list(modules.values())


__all__ = [
    "DEFAULT_MODULE_GLOBS",
    "ModuleGlobs",
    "ModuleMatcher",
    "create_module_manifest",
    "module_name",
]
