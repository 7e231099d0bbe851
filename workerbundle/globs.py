"""Glob compilation and named glob-set matching for module classification."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple

from .errors import GlobError


@dataclass(frozen=True)
class Glob:
    """A compiled glob.

    Globs without a slash match against the file name only, the way ignore
    files treat bare patterns. Globs containing a slash match the whole
    forward-slash path relative to the upload directory. A leading ``!``
    marks an exclusion.
    """

    pattern: str
    negate: bool
    has_slash: bool
    regex: Pattern[str]

    def matches(self, rel_path: str) -> bool:
        target = rel_path if self.has_slash else rel_path.rsplit("/", 1)[-1]
        return self.regex.match(target) is not None


def compile_glob(pattern: str) -> Glob:
    """Parse ``pattern`` into a :class:`Glob`, raising :class:`GlobError` on bad syntax."""
    if not isinstance(pattern, str):
        raise GlobError(f"expected a glob string, got {type(pattern).__name__}")

    body = pattern
    negate = body.startswith("!")
    if negate:
        body = body[1:]
    anchored = body.startswith("/")
    if anchored:
        body = body[1:]
    if not body:
        raise GlobError("glob is empty", pattern)

    translated = _translate(body, pattern)
    return Glob(
        pattern=pattern,
        negate=negate,
        has_slash=anchored or "/" in body,
        regex=re.compile(f"(?s:{translated})\\Z"),
    )


def _translate(body: str, pattern: str) -> str:
    out: List[str] = []
    index = 0
    length = len(body)
    in_alternate = False

    while index < length:
        char = body[index]
        if char == "*":
            if body.startswith("**", index) and _is_whole_component(body, index):
                end = index + 2
                if end == length:
                    out.append(".*")
                    index = end
                else:
                    # "**/" also matches zero directories
                    out.append("(?:.*/)?")
                    index = end + 1
                continue
            out.append("[^/]*")
            index += 1
        elif char == "?":
            out.append("[^/]")
            index += 1
        elif char == "[":
            fragment, index = _translate_class(body, index, pattern)
            out.append(fragment)
        elif char == "{":
            if in_alternate:
                raise GlobError("nested alternate groups are not allowed", pattern)
            in_alternate = True
            out.append("(?:")
            index += 1
        elif char == "}":
            if not in_alternate:
                raise GlobError("unopened alternate group; missing '{'", pattern)
            in_alternate = False
            out.append(")")
            index += 1
        elif char == "," and in_alternate:
            out.append("|")
            index += 1
        elif char == "\\":
            if index + 1 >= length:
                raise GlobError("dangling '\\'", pattern)
            out.append(re.escape(body[index + 1]))
            index += 2
        else:
            out.append(re.escape(char))
            index += 1

    if in_alternate:
        raise GlobError("unclosed alternate group; missing '}'", pattern)
    return "".join(out)


def _is_whole_component(body: str, index: int) -> bool:
    before = index == 0 or body[index - 1] == "/"
    after = index + 2
    return before and (after == len(body) or body[after] == "/")


def _translate_class(body: str, start: int, pattern: str) -> Tuple[str, int]:
    index = start + 1
    length = len(body)
    negate = index < length and body[index] in "!^"
    if negate:
        index += 1

    items: List[str] = []
    first = True
    while True:
        if index >= length:
            raise GlobError("unclosed character class; missing ']'", pattern)
        char = body[index]
        if char == "]" and not first:
            break
        first = False
        if index + 2 < length and body[index + 1] == "-" and body[index + 2] != "]":
            low, high = char, body[index + 2]
            if low > high:
                raise GlobError(f"invalid range; '{low}' > '{high}'", pattern)
            items.append(f"{re.escape(low)}-{re.escape(high)}")
            index += 3
        else:
            items.append(re.escape(char))
            index += 1

    inner = "".join(items)
    if negate:
        return f"[^/{inner}]", index + 1
    return f"[{inner}]", index + 1


class TypeMatcher:
    """Immutable set of globs grouped under type names.

    A path is whitelisted by a group when the last glob in that group that
    matches it is a positive one. The matcher whitelists a path if any of its
    groups does.
    """

    def __init__(self, groups: Mapping[str, Sequence[Glob]]) -> None:
        self._groups: Tuple[Tuple[str, Tuple[Glob, ...]], ...] = tuple(
            (name, tuple(globs)) for name, globs in groups.items()
        )

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self._groups)

    def matched(self, rel_path: str) -> Optional[str]:
        """Return the first type name whose globs whitelist ``rel_path``."""
        for name, globs in self._groups:
            if _group_whitelists(globs, rel_path):
                return name
        return None

    def is_whitelisted(self, rel_path: str) -> bool:
        return self.matched(rel_path) is not None

    def __repr__(self) -> str:
        inner = ", ".join(
            f"{name}=[{', '.join(glob.pattern for glob in globs)}]" for name, globs in self._groups
        )
        return f"TypeMatcher({inner})"


def _group_whitelists(globs: Iterable[Glob], rel_path: str) -> bool:
    selected = False
    for glob in globs:
        if glob.matches(rel_path):
            selected = not glob.negate
    return selected


class TypeMatcherBuilder:
    """Collects globs under type names and builds a :class:`TypeMatcher`."""

    def __init__(self) -> None:
        self._groups: Dict[str, List[Glob]] = {}

    def add_type(self, name: str) -> None:
        """Register ``name`` even if no globs are ever added to it."""
        self._groups.setdefault(name, [])

    def add(self, name: str, pattern: str) -> None:
        self._groups.setdefault(name, []).append(compile_glob(pattern))

    def build(self) -> TypeMatcher:
        return TypeMatcher(self._groups)


__all__ = ["Glob", "TypeMatcher", "TypeMatcherBuilder", "compile_glob"]
