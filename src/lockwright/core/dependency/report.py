"""Human-readable explanations of resolution failures.

The terminal incompatibility of a failed run is the root of a derivation
graph. ``FailureReport`` walks that graph and writes one sentence per
derivation step, e.g.::

    Because a 2.0 depends on c<1 and b 1.0 depends on c>=2,
    a 2.0 is incompatible with b 1.0.
    And because app depends on a 2.0 and app depends on b 1.0,
    version solving failed.

Incompatibilities used more than once get a line number and are referred to
by it later, so shared sub-derivations are explained only once.
"""

from __future__ import annotations

from lockwright.core.dependency.incompatibility import (
    ConflictCause,
    DependencyCause,
    Incompatibility,
    describe_term,
)


def explain(incompatibility: Incompatibility, root_label: str = "the project") -> str:
    """Render the derivation of a failure as numbered English lines."""
    return FailureReport(incompatibility, root_label).render()


def _derived(incompatibility: Incompatibility) -> bool:
    return isinstance(incompatibility.cause, ConflictCause)


class FailureReport:
    """Writer for the explanation of one failed resolution."""

    def __init__(self, root: Incompatibility, root_label: str = "the project") -> None:
        self._root = root
        self._label = root_label
        self._derivations: dict[Incompatibility, int] = {}
        self._lines: list[tuple[str, int | None]] = []
        self._line_numbers: dict[Incompatibility, int] = {}
        self._count_derivations(root)

    def render(self) -> str:
        if _derived(self._root):
            self._visit(self._root)
        else:
            self._write(
                self._root,
                f"Because {self._describe(self._root)}, version solving failed.",
                False,
            )

        padding = len(f"({len(self._line_numbers)})") if self._line_numbers else 0
        rendered: list[str] = []
        previous_blank = False
        for message, number in self._lines:
            if not message:
                if not previous_blank:
                    rendered.append("")
                previous_blank = True
                continue
            previous_blank = False
            if number is not None:
                message = f"{f'({number})':<{padding}} {message}"
            elif padding:
                message = " " * (padding + 1) + message
            rendered.append(message)
        return "\n".join(rendered)

    # -- Traversal ------------------------------------------------------------

    def _count_derivations(self, incompatibility: Incompatibility) -> None:
        stack = [incompatibility]
        while stack:
            current = stack.pop()
            if current in self._derivations:
                self._derivations[current] += 1
                continue
            self._derivations[current] = 1
            if isinstance(current.cause, ConflictCause):
                stack.extend((current.cause.other, current.cause.conflict))

    def _visit(self, incompatibility: Incompatibility, conclusion: bool = False) -> None:
        numbered = conclusion or self._derivations[incompatibility] > 1
        conjunction = "So," if conclusion or incompatibility is self._root else "And"
        statement = self._describe(incompatibility)

        cause = incompatibility.cause
        assert isinstance(cause, ConflictCause)
        conflict, other = cause.conflict, cause.other

        if _derived(conflict) and _derived(other):
            conflict_line = self._line_numbers.get(conflict)
            other_line = self._line_numbers.get(other)
            if conflict_line is not None and other_line is not None:
                self._write(
                    incompatibility,
                    f"Because {self._and(conflict, other, conflict_line, other_line)},"
                    f" {statement}.",
                    numbered,
                )
            elif conflict_line is not None or other_line is not None:
                if conflict_line is not None:
                    with_line, without_line, line = conflict, other, conflict_line
                else:
                    with_line, without_line, line = other, conflict, other_line
                self._visit(without_line)
                self._write(
                    incompatibility,
                    f"{conjunction} because {self._describe(with_line)} ({line}),"
                    f" {statement}.",
                    numbered,
                )
            elif self._is_single_line(conflict) or self._is_single_line(other):
                first, second = (conflict, other) if self._is_single_line(other) else (other, conflict)
                self._visit(first)
                self._visit(second)
                self._write(incompatibility, f"Thus, {statement}.", numbered)
            else:
                self._visit(conflict, conclusion=True)
                self._lines.append(("", None))
                self._visit(other)
                self._write(
                    incompatibility,
                    f"{conjunction} because {self._describe(conflict)}"
                    f" ({self._line_numbers[conflict]}), {statement}.",
                    numbered,
                )
        elif _derived(conflict) or _derived(other):
            derived, external = (conflict, other) if _derived(conflict) else (other, conflict)
            derived_line = self._line_numbers.get(derived)
            if derived_line is not None:
                self._write(
                    incompatibility,
                    f"Because {self._and(external, derived, None, derived_line)}, {statement}.",
                    numbered,
                )
            elif self._is_collapsible(derived):
                inner = derived.cause
                assert isinstance(inner, ConflictCause)
                if _derived(inner.conflict):
                    collapsed_derived, collapsed_external = inner.conflict, inner.other
                else:
                    collapsed_derived, collapsed_external = inner.other, inner.conflict
                self._visit(collapsed_derived)
                self._write(
                    incompatibility,
                    f"{conjunction} because {self._and(collapsed_external, external, None, None)},"
                    f" {statement}.",
                    numbered,
                )
            else:
                self._visit(derived)
                self._write(
                    incompatibility,
                    f"{conjunction} because {self._describe(external)}, {statement}.",
                    numbered,
                )
        else:
            self._write(
                incompatibility,
                f"Because {self._and(conflict, other, None, None)}, {statement}.",
                numbered,
            )

    def _is_single_line(self, incompatibility: Incompatibility) -> bool:
        cause = incompatibility.cause
        assert isinstance(cause, ConflictCause)
        return not _derived(cause.conflict) and not _derived(cause.other)

    def _is_collapsible(self, incompatibility: Incompatibility) -> bool:
        if self._derivations[incompatibility] > 1:
            return False
        cause = incompatibility.cause
        assert isinstance(cause, ConflictCause)
        if _derived(cause.conflict) == _derived(cause.other):
            return False
        complex_side = cause.conflict if _derived(cause.conflict) else cause.other
        return complex_side not in self._line_numbers

    # -- Output ---------------------------------------------------------------

    def _write(self, incompatibility: Incompatibility, message: str, numbered: bool) -> None:
        if numbered:
            number = len(self._line_numbers) + 1
            self._line_numbers[incompatibility] = number
            self._lines.append((message, number))
        else:
            self._lines.append((message, None))

    def _describe(self, incompatibility: Incompatibility) -> str:
        return incompatibility.describe(self._label)

    def _and(
        self,
        first: Incompatibility,
        second: Incompatibility,
        first_line: int | None,
        second_line: int | None,
    ) -> str:
        chained = self._dependency_chain(first, second) or self._dependency_chain(second, first)
        if chained is not None and first_line is None and second_line is None:
            return chained
        left = self._describe(first) + (f" ({first_line})" if first_line else "")
        right = self._describe(second) + (f" ({second_line})" if second_line else "")
        return f"{left} and {right}"

    def _dependency_chain(self, first: Incompatibility, second: Incompatibility) -> str | None:
        """``a depends on b`` + ``b 1.0 depends on c`` -> one chained clause."""
        if not (isinstance(first.cause, DependencyCause) and isinstance(second.cause, DependencyCause)):
            return None
        depender, dependee = first.terms
        next_depender, next_dependee = second.terms
        if dependee.package != next_depender.package:
            return None
        if next_depender.versions != dependee.versions:
            return None
        return (
            f"{describe_term(depender, self._label)} depends on"
            f" {describe_term(dependee.inverse, self._label)}"
            f" which depends on {describe_term(next_dependee.inverse, self._label)}"
        )
