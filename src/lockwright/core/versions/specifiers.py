"""Version specifier grammar.

Turns specifier strings into ``VersionSet`` values once, at parse time, so the
resolver never matches strings while solving. Supported syntax:

- Comparison: ``==``, ``!=``, ``>=``, ``<=``, ``>``, ``<`` (and ``===``,
  treated as ``==``). A bare version means ``==``.
- Prefix wildcard: ``==1.2.*`` and ``!=1.2.*``.
- Compatible release (PEP 440): ``~=1.4.5`` means ``>=1.4.5,==1.4.*``.
- Caret: ``^1.2.3`` means ``>=1.2.3,<2``; with leading zeros the first
  non-zero component is the one that may not change (``^0.2.3`` means
  ``>=0.2.3,<0.3``).
- Tilde: ``~1.2.3`` means ``>=1.2.3,<1.3``; ``~1`` means ``>=1,<2``.
- Wildcard: ``*`` or an empty string matches every version.
- Conjunction with ``,`` and disjunction with ``||`` (``,`` binds tighter).

Upper bounds generated for wildcards, ``~=``, ``^`` and ``~`` are the
``.dev0`` of the next release, so pre-releases of that next release are
excluded as well.
"""

from __future__ import annotations

import re

from lockwright.core.versions.ranges import VersionSet
from lockwright.core.versions.version import Version, bump_release, release_floor
from lockwright.exceptions import InvalidRange, InvalidVersion

_ATOM_RE = re.compile(
    r"^\s*(?P<op>===|==|!=|~=|>=|<=|>|<|\^|~)?\s*(?P<ver>[^\s,|<>=~^]+)\s*$"
)

_WILDCARD_SUFFIX = ".*"


def parse_version_set(text: str) -> VersionSet:
    """Parse a specifier string into a normalized ``VersionSet``.

    Args:
        text: Specifier such as ``">=1.0,<2.0"`` or ``"^1.2 || ==3.0"``.

    Returns:
        The set of versions the specifier allows.

    Raises:
        InvalidRange: If any clause is malformed.
    """
    stripped = text.strip()
    if stripped in ("", "*"):
        return VersionSet.any()

    result = VersionSet.empty()
    for alternative in stripped.split("||"):
        clauses = [c.strip() for c in alternative.split(",")]
        if any(not c for c in clauses):
            raise InvalidRange(f"Invalid specifier: {text!r} (empty clause)")
        current = VersionSet.any()
        for clause in clauses:
            current = current.intersection(_parse_clause(clause, text))
        result = result.union(current)
    return result


def _parse_clause(clause: str, source: str) -> VersionSet:
    if clause == "*":
        return VersionSet.any()

    m = _ATOM_RE.match(clause)
    if not m:
        raise InvalidRange(f"Invalid specifier clause {clause!r} in {source!r}")

    op = m.group("op") or "=="
    ver = m.group("ver")

    try:
        if ver.endswith(_WILDCARD_SUFFIX):
            return _wildcard(op, ver[: -len(_WILDCARD_SUFFIX)], clause)
        version = Version(ver)
    except InvalidVersion as exc:
        raise InvalidRange(f"Invalid version in specifier clause {clause!r}") from exc

    if op in ("==", "==="):
        return VersionSet.exact(version)
    if op == "!=":
        return VersionSet.exact(version).complement()
    if op == ">=":
        return VersionSet.at_least(version)
    if op == ">":
        return VersionSet.greater_than(version)
    if op == "<=":
        return VersionSet.at_most(version)
    if op == "<":
        return VersionSet.less_than(version)
    if op == "~=":
        if len(version.release) < 2:
            raise InvalidRange(f"~= requires at least two release components: {clause!r}")
        prefix = version.release[:-1]
        return VersionSet.between(
            version, release_floor(version.epoch, bump_release(prefix))
        )
    if op == "^":
        release = version.release
        index = next((i for i, part in enumerate(release) if part != 0), len(release) - 1)
        return VersionSet.between(
            version, release_floor(version.epoch, bump_release(release[: index + 1]))
        )
    if op == "~":
        release = version.release
        prefix = release[:1] if len(release) == 1 else release[:2]
        return VersionSet.between(
            version, release_floor(version.epoch, bump_release(prefix))
        )
    raise InvalidRange(f"Unknown operator {op!r} in {clause!r}")  # pragma: no cover


def _wildcard(op: str, prefix_text: str, clause: str) -> VersionSet:
    if op not in ("==", "!="):
        raise InvalidRange(f"Wildcards are only allowed with == and !=: {clause!r}")
    prefix = Version(prefix_text)
    plain = ".".join(str(part) for part in prefix.release)
    if prefix.epoch:
        plain = f"{prefix.epoch}!{plain}"
    if str(prefix) != plain:
        raise InvalidRange(f"Wildcard prefix must be a plain release: {clause!r}")
    matched = VersionSet.between(
        release_floor(prefix.epoch, prefix.release),
        release_floor(prefix.epoch, bump_release(prefix.release)),
    )
    return matched if op == "==" else matched.complement()
