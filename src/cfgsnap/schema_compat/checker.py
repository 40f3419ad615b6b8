"""
Append-only compatibility checker for structural schema snapshots.

Compares the accepted baseline against a newly extracted snapshot.  Two
facts make the wire format safe to evolve, and the checker enforces both:

- record field *order* determines the field's vtable slot, and
- enum *values* (not names) are what travels on the wire.

Policy, applied independently to every named enum, record and union in
the baseline:

- **Removed**: the entity is missing from the new snapshot.
- **Changed**: for each index of the baseline list, the new entry at the
  same index differs (name, or value for enums) or is missing.  Reorders
  therefore surface as one violation per affected index.

Entities or trailing entries that only exist in the new snapshot are never
flagged.  All violations are collected; nothing short-circuits.

Usage::

    from cfgsnap.schema_compat.checker import CompatibilityChecker

    violations = CompatibilityChecker().check(baseline, extracted)
    for v in violations:
        print(v.describe())
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from cfgsnap.schema_compat.schema import (
    CompatibilityViolation,
    EnumEntry,
    StructuralSnapshot,
    ViolationKind,
)

logger = logging.getLogger(__name__)


class CompatibilityChecker:
    """Checks that a schema only evolved by appending."""

    def check(
        self,
        previous: StructuralSnapshot,
        next: StructuralSnapshot,
    ) -> list[CompatibilityViolation]:
        """Return every violation of the append-only policy.

        Args:
            previous: Last accepted snapshot (the baseline).
            next: Snapshot extracted from the proposed schema.

        Returns:
            Violations in baseline order (enums, then records, then
            unions); an empty list means the change is compatible.
        """
        violations: list[CompatibilityViolation] = []
        violations.extend(self._check_enums(previous, next))
        violations.extend(self._check_records(previous, next))
        violations.extend(self._check_unions(previous, next))

        if violations:
            logger.warning(
                "Schema compatibility: %d violation(s) against baseline",
                len(violations),
            )
        else:
            logger.debug("Schema compatibility: no violations")
        return violations

    # -- internal: per entity kind ----------------------------------------------

    def _check_enums(
        self, previous: StructuralSnapshot, next: StructuralSnapshot
    ) -> list[CompatibilityViolation]:
        violations: list[CompatibilityViolation] = []
        for name, old_entries in previous.enums.items():
            new_entries = next.enums.get(name)
            if new_entries is None:
                violations.append(
                    CompatibilityViolation(kind=ViolationKind.ENUM_REMOVED, subject=name)
                )
                continue
            for i, old in enumerate(old_entries):
                new = _at(new_entries, i)
                if new is None or new.name != old.name or new.value != old.value:
                    violations.append(
                        CompatibilityViolation(
                            kind=ViolationKind.ENUM_ENTRY_CHANGED,
                            subject=name,
                            index=i,
                            expected=str(old),
                            actual=_entry_text(new),
                        )
                    )
        return violations

    def _check_records(
        self, previous: StructuralSnapshot, next: StructuralSnapshot
    ) -> list[CompatibilityViolation]:
        return _check_ordered_names(
            previous.records,
            next.records,
            removed=ViolationKind.RECORD_REMOVED,
            changed=ViolationKind.FIELD_CHANGED,
        )

    def _check_unions(
        self, previous: StructuralSnapshot, next: StructuralSnapshot
    ) -> list[CompatibilityViolation]:
        return _check_ordered_names(
            previous.unions,
            next.unions,
            removed=ViolationKind.UNION_REMOVED,
            changed=ViolationKind.VARIANT_CHANGED,
        )


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _check_ordered_names(
    previous: dict[str, list[str]],
    next: dict[str, list[str]],
    removed: ViolationKind,
    changed: ViolationKind,
) -> list[CompatibilityViolation]:
    violations: list[CompatibilityViolation] = []
    for name, old_items in previous.items():
        new_items = next.get(name)
        if new_items is None:
            violations.append(CompatibilityViolation(kind=removed, subject=name))
            continue
        for i, old in enumerate(old_items):
            new = _at(new_items, i)
            if new != old:
                violations.append(
                    CompatibilityViolation(
                        kind=changed,
                        subject=name,
                        index=i,
                        expected=old,
                        actual=new,
                    )
                )
    return violations


def _at(items: Sequence, index: int):
    return items[index] if index < len(items) else None


def _entry_text(entry: Optional[EnumEntry]) -> Optional[str]:
    return None if entry is None else str(entry)


def check_compatibility(
    previous: StructuralSnapshot, next: StructuralSnapshot
) -> list[CompatibilityViolation]:
    """Convenience wrapper around ``CompatibilityChecker().check()``."""
    return CompatibilityChecker().check(previous, next)
