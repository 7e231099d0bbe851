"""Error types raised while classifying modules and assembling bundles."""

from __future__ import annotations

from pathlib import PurePath


class WorkerBundleError(RuntimeError):
    """Base class for failures that abort the current bundle build."""


class ConfigError(WorkerBundleError):
    """Raised when the configuration file cannot be parsed."""


class EmptyFilenameError(WorkerBundleError):
    """Raised when a script name cannot be derived from a path."""

    def __init__(self, path: PurePath | str) -> None:
        super().__init__(f"filename should not be empty: {path}")
        self.path = path


class GlobError(WorkerBundleError):
    """Raised when a module type glob cannot be parsed."""

    def __init__(self, reason: str, glob: str | None = None) -> None:
        if glob is None:
            message = f"encountered error while parsing globs: {reason}"
        else:
            message = f'encountered error while parsing the glob "{glob}": {reason}'
        super().__init__(message)
        self.reason = reason
        self.glob = glob


class ModuleConflictError(WorkerBundleError):
    """Raised when one file is selected by more than one module type."""

    def __init__(self, path: PurePath | str) -> None:
        super().__init__(f"The module at {path} matched multiple module type globs.")
        self.path = path


class ModulePathError(WorkerBundleError, ValueError):
    """Raised when a candidate path does not live under the upload directory."""

    def __init__(self, path: PurePath | str, upload_dir: PurePath | str) -> None:
        super().__init__(f"{path} is not inside the upload directory {upload_dir}")
        self.path = path
        self.upload_dir = upload_dir


__all__ = [
    "ConfigError",
    "EmptyFilenameError",
    "GlobError",
    "ModuleConflictError",
    "ModulePathError",
    "WorkerBundleError",
]
