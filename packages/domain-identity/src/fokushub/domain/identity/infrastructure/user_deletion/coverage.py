"""Compare a dependency graph against the foreign keys declared in table metadata.

A foreign key that points at the principal table, or at a relation the
graph deletes from, but is matched by no descriptor makes a deletion fail
for any user with rows in it. Listing those columns up front turns a
runtime surprise into a startup warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy import MetaData

    from fokushub.domain.identity.infrastructure.user_deletion.graph import DependencyGraph


@dataclass(frozen=True, slots=True)
class UncoveredReference:
    """A foreign-key column no descriptor accounts for.

    Attributes:
        relation: Table holding the column.
        attribute: The referencing column.
        target: Referenced table.
    """

    relation: str
    attribute: str
    target: str

    def __str__(self) -> str:
        return f"{self.relation}.{self.attribute} -> {self.target}"


def find_uncovered_references(
    graph: DependencyGraph, metadata: MetaData
) -> list[UncoveredReference]:
    """List foreign keys into the principal or a deleted relation that the graph misses.

    A foreign key into the principal table is covered by a direct descriptor
    on the same relation that includes the column. A foreign key into a
    relation the graph deletes from is covered by an indirect descriptor on
    the same relation and column whose owned relation is the referenced table.

    Args:
        graph: Dependency graph to check.
        metadata: Table metadata carrying the foreign keys.

    Returns:
        Uncovered references sorted by relation and column.
    """
    principal = graph.principal.name
    deleted_relations = graph.relations()

    direct_columns = {
        (d.relation, attribute)
        for d in graph
        if not d.is_indirect
        for attribute in d.referencing_attributes
    }
    indirect_columns = {
        (d.relation, d.referencing_attribute, d.owned_relation_name) for d in graph if d.is_indirect
    }

    uncovered: list[UncoveredReference] = []
    for table in metadata.sorted_tables:
        for fk in table.foreign_keys:
            target = fk.column.table.name
            attribute = fk.parent.name
            if target == principal:
                covered = (table.name, attribute) in direct_columns
            elif target in deleted_relations:
                covered = (table.name, attribute, target) in indirect_columns
            else:
                continue
            if not covered:
                uncovered.append(UncoveredReference(table.name, attribute, target))
    return sorted(uncovered, key=lambda ref: (ref.relation, ref.attribute))
