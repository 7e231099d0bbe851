"""Core data models shared across workerbundle components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Dict


class ModuleType(IntEnum):
    """Kinds of module the platform accepts, in declaration order."""

    ESModule = 1
    CommonJS = 2
    CompiledWasm = 3
    Text = 4
    Data = 5

    @property
    def content_type(self) -> str:
        return _CONTENT_TYPES[self]


_CONTENT_TYPES: Dict[ModuleType, str] = {
    ModuleType.ESModule: "application/javascript+module",
    ModuleType.CommonJS: "application/javascript",
    ModuleType.CompiledWasm: "application/wasm",
    ModuleType.Text: "text/plain",
    ModuleType.Data: "application/octet-stream",
}


@dataclass(frozen=True, order=True)
class Module:
    """A classified file destined for upload."""

    name: str
    path: Path
    module_type: ModuleType

    @property
    def content_type(self) -> str:
        return self.module_type.content_type
