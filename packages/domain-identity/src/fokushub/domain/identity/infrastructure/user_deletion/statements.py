"""SQL statement builders shared by the audit reporter and the deletion executor.

Both sides derive their WHERE clause from ``_predicate``. Several
descriptors may target one table, and the executor's earlier step removes
a row they share, so a count can be told which descriptors run before it
on the same table and leaves out the rows they claim. Tables are addressed
with lightweight ``table()``/``column()`` constructs; no ORM models are
involved.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import and_, column, delete, false, func, not_, or_, select, table

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy import ColumnElement, Delete, Select, TableClause

    from fokushub.domain.identity.infrastructure.user_deletion.graph import (
        PrincipalRelation,
        RelationDescriptor,
    )


def _target(relation: str, descriptors: Iterable[RelationDescriptor]) -> TableClause:
    attributes = dict.fromkeys(a for d in descriptors for a in d.referencing_attributes)
    return table(relation, *(column(a) for a in attributes))


def _predicate(
    descriptor: RelationDescriptor, target: TableClause, principal_id: int
) -> ColumnElement[bool]:
    if descriptor.is_indirect:
        key = descriptor.owned_key_attribute
        join = descriptor.owned_join_attribute
        assert descriptor.owned_relation_name is not None
        assert join is not None
        owned = table(descriptor.owned_relation_name, column(key), column(join))
        owned_ids = select(owned.c[key]).where(owned.c[join] == principal_id)
        return target.c[descriptor.referencing_attribute].in_(owned_ids)
    return or_(*(target.c[a] == principal_id for a in descriptor.referencing_attributes))


def count_statement(
    descriptor: RelationDescriptor,
    principal_id: int,
    preceding: Iterable[RelationDescriptor] = (),
) -> Select[tuple[int]]:
    """``SELECT COUNT(*) FROM relation WHERE <descriptor scope>``.

    Args:
        descriptor: Descriptor whose rows are counted.
        principal_id: ``users.id`` the rows belong to.
        preceding: Descriptors executed before this one. Rows that one of
            them on the same table also matches are not counted, since its
            delete removes them first. NULL comparisons count as no match.
    """
    earlier = [d for d in preceding if d.relation == descriptor.relation]
    target = _target(descriptor.relation, [descriptor, *earlier])
    predicate = _predicate(descriptor, target, principal_id)
    if earlier:
        claimed = or_(*(_predicate(d, target, principal_id) for d in earlier))
        predicate = and_(predicate, not_(func.coalesce(claimed, false())))
    return select(func.count()).select_from(target).where(predicate)


def delete_statement(descriptor: RelationDescriptor, principal_id: int) -> Delete:
    """``DELETE FROM relation WHERE <descriptor scope>``."""
    target = _target(descriptor.relation, [descriptor])
    return delete(target).where(_predicate(descriptor, target, principal_id))


def principal_lookup_statement(
    principal: PrincipalRelation, principal_id: int
) -> Select[tuple[object, ...]]:
    """Select the key and summary columns of one principal row."""
    attributes = (principal.key_attribute, *principal.summary_attributes)
    root = table(principal.name, *(column(a) for a in attributes))
    return select(*root.c).where(root.c[principal.key_attribute] == principal_id)


def root_delete_statement(principal: PrincipalRelation, principal_id: int) -> Delete:
    """``DELETE FROM users WHERE id = :principal_id``."""
    root = table(principal.name, column(principal.key_attribute))
    return delete(root).where(root.c[principal.key_attribute] == principal_id)
