"""Upload directory walking with optional ignore-file filtering."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Tuple

from .errors import WorkerBundleError
from .globs import TypeMatcher
from .logging import get_logger

_IGNORE_FILES = (".gitignore", ".ignore")

logger = get_logger("walker")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .ignore."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.directory_only and rel_path.startswith(f"{self.pattern}/"):
                return True
            return False

        for part in rel_path.split("/"):
            if fnmatchcase(part, self.pattern):
                return True
        return False


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def parse_ignore_file(path: Path) -> List[IgnoreRule]:
    if not path.is_file():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _raise_walk_error(exc: OSError) -> None:
    raise exc


def iter_upload_candidates(
    root: Path,
    matcher: TypeMatcher,
    *,
    follow_links: bool = True,
    standard_filters: bool = False,
) -> Iterator[Path]:
    """Yield paths under ``root`` that ``matcher`` selects.

    With ``standard_filters`` enabled, hidden entries and the rules in the
    root's ``.gitignore`` and ``.ignore`` files are honored. A symlink that
    points back at one of its own ancestors raises :class:`WorkerBundleError`.
    A directory that cannot be read raises its ``OSError``.
    """
    rules: List[IgnoreRule] = []
    if standard_filters:
        for name in _IGNORE_FILES:
            rules.extend(parse_ignore_file(root / name))
    logger.debug(
        "Walking %s (follow_links=%s, standard_filters=%s)", root, follow_links, standard_filters
    )

    # Directory identities from the root down to each walked directory.
    ancestry: Dict[str, Tuple[Tuple[int, int], ...]] = {}
    for dirpath, dirnames, filenames in os.walk(
        root, onerror=_raise_walk_error, followlinks=follow_links
    ):
        current_dir = Path(dirpath)
        stat_result = current_dir.stat()
        key = (stat_result.st_dev, stat_result.st_ino)
        parents = ancestry.get(os.path.dirname(dirpath), ()) if current_dir != root else ()
        if key in parents:
            raise WorkerBundleError(
                f"File system loop found: {current_dir} points to one of its ancestors"
            )
        ancestry[dirpath] = parents + (key,)

        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        if standard_filters:
            kept_dirs = []
            for name in dirnames:
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _is_hidden(name) or _should_ignore(rel_path, True, rules):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs
        dirnames.sort()

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if standard_filters and (
                _is_hidden(filename) or _should_ignore(rel_path, False, rules)
            ):
                continue
            if matcher.is_whitelisted(rel_path):
                yield current_dir / filename


def is_regular_file(path: Path) -> bool:
    return path.is_file()


__all__ = ["IgnoreRule", "is_regular_file", "iter_upload_candidates", "parse_ignore_file"]
