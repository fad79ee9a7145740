"""Dependency graph: the single ordered catalog of what references a user.

Every table that can hold a row pointing at a user is described by one or
more ``RelationDescriptor`` values. The audit reporter counts with them and
the deletion executor deletes with them, so the "debug this deletion" view
and the actual deletion cannot drift apart.

Two reference shapes exist:

- DIRECT: ``relation.attr = :user_id`` (any of several attributes, OR-ed).
- INDIRECT_VIA_OWNED: ``relation.attr IN (SELECT key FROM owned WHERE
  owned.join = :user_id)`` for rows hanging off something the user owns,
  e.g. reports of a campaign the user created.

Ordering rule, checked when a graph is built: a relation owned by the user
is deleted only after every indirect descriptor that still needs it for its
subquery.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from fokushub.domain.identity.infrastructure.user_deletion.errors import DependencyGraphError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class RelationKind(StrEnum):
    """Shape of a relation's reference to the principal."""

    DIRECT = "direct"
    INDIRECT_VIA_OWNED = "indirect_via_owned"


@dataclass(frozen=True, slots=True)
class PrincipalRelation:
    """The table holding the principal rows.

    Attributes:
        name: Table name.
        key_attribute: Primary key column compared against the principal id.
        summary_attributes: Columns shown next to the audit counts.
        resource_type: Name used in ``NotFoundError`` messages.
    """

    name: str = "users"
    key_attribute: str = "id"
    summary_attributes: tuple[str, ...] = ("email", "role")
    resource_type: str = "User"


@dataclass(frozen=True, slots=True)
class RelationDescriptor:
    """Static description of one foreign-key path from a table to the principal.

    Attributes:
        name: Unique key used in audit counts, step results and logs.
        kind: DIRECT or INDIRECT_VIA_OWNED.
        referencing_attributes: Columns of ``relation`` holding the reference.
            DIRECT descriptors match when any of them equals the principal id;
            INDIRECT_VIA_OWNED descriptors take exactly one.
        relation: Physical table name. Defaults to ``name``; set it when the
            same table is reached through a second column.
        owned_relation_name: Table owned by the principal (indirect only).
        owned_join_attribute: Column of the owned table holding the
            principal id (indirect only).
        owned_key_attribute: Column of the owned table that
            ``referencing_attributes`` point at.

    Raises:
        ValueError: If the fields do not describe a valid reference shape.
    """

    name: str
    kind: RelationKind
    referencing_attributes: tuple[str, ...]
    relation: str = ""
    owned_relation_name: str | None = None
    owned_join_attribute: str | None = None
    owned_key_attribute: str = "id"

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Relation descriptor name must not be empty"
            raise ValueError(msg)
        if not self.relation:
            object.__setattr__(self, "relation", self.name)
        if not self.referencing_attributes or not all(self.referencing_attributes):
            msg = f"Relation descriptor '{self.name}' needs at least one referencing attribute"
            raise ValueError(msg)
        if self.kind is RelationKind.INDIRECT_VIA_OWNED:
            if not self.owned_relation_name or not self.owned_join_attribute:
                msg = (
                    f"Indirect descriptor '{self.name}' needs owned_relation_name "
                    "and owned_join_attribute"
                )
                raise ValueError(msg)
            if len(self.referencing_attributes) != 1:
                msg = f"Indirect descriptor '{self.name}' takes exactly one referencing attribute"
                raise ValueError(msg)
        elif self.owned_relation_name or self.owned_join_attribute:
            msg = f"Direct descriptor '{self.name}' must not name an owned relation"
            raise ValueError(msg)

    @property
    def is_indirect(self) -> bool:
        return self.kind is RelationKind.INDIRECT_VIA_OWNED

    @property
    def referencing_attribute(self) -> str:
        """First referencing attribute (the only one for indirect descriptors)."""
        return self.referencing_attributes[0]


def direct(name: str, *attributes: str, relation: str | None = None) -> RelationDescriptor:
    """Describe rows referencing the principal through one or more columns.

    Example:
        >>> direct("messages", "sender_id", "recipient_id")
    """
    return RelationDescriptor(
        name=name,
        kind=RelationKind.DIRECT,
        referencing_attributes=attributes,
        relation=relation or name,
    )


def via_owned(
    name: str,
    attribute: str,
    *,
    owned_relation: str,
    owned_join_attribute: str,
    owned_key_attribute: str = "id",
    relation: str | None = None,
) -> RelationDescriptor:
    """Describe rows referencing a relation that the principal owns.

    Example:
        >>> via_owned("reports", "campaign_id",
        ...           owned_relation="campaigns", owned_join_attribute="client_id")
    """
    return RelationDescriptor(
        name=name,
        kind=RelationKind.INDIRECT_VIA_OWNED,
        referencing_attributes=(attribute,),
        relation=relation or name,
        owned_relation_name=owned_relation,
        owned_join_attribute=owned_join_attribute,
        owned_key_attribute=owned_key_attribute,
    )


class DependencyGraph:
    """Validated, ordered sequence of relation descriptors.

    Pure data: no I/O. Iteration order is deletion order.

    Args:
        descriptors: Descriptors in deletion order.
        principal: Table holding the principal rows.

    Raises:
        DependencyGraphError: If names repeat, a descriptor targets the
            principal table, or an owned relation is deleted before (or
            never after) an indirect descriptor that depends on it.
    """

    def __init__(
        self,
        descriptors: Iterable[RelationDescriptor],
        principal: PrincipalRelation | None = None,
    ) -> None:
        self._descriptors = tuple(descriptors)
        self._principal = principal or PrincipalRelation()
        self._validate()

    @property
    def principal(self) -> PrincipalRelation:
        return self._principal

    def ordered(self) -> tuple[RelationDescriptor, ...]:
        """Descriptors in deletion order."""
        return self._descriptors

    def names(self) -> tuple[str, ...]:
        return tuple(d.name for d in self._descriptors)

    def relations(self) -> frozenset[str]:
        """Physical tables that the graph deletes from."""
        return frozenset(d.relation for d in self._descriptors)

    def get(self, name: str) -> RelationDescriptor:
        """Look up a descriptor by name.

        Raises:
            KeyError: If no descriptor has that name.
        """
        for descriptor in self._descriptors:
            if descriptor.name == name:
                return descriptor
        raise KeyError(name)

    def without(self, *names: str) -> DependencyGraph:
        """Return a new graph with the named descriptors removed.

        The result is validated like any other graph, so removing an owned
        relation that indirect descriptors still depend on raises.

        Raises:
            KeyError: If a name is not part of this graph.
        """
        for name in names:
            self.get(name)
        excluded = set(names)
        return DependencyGraph(
            (d for d in self._descriptors if d.name not in excluded),
            principal=self._principal,
        )

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[RelationDescriptor]:
        return iter(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return any(d.name == name for d in self._descriptors)

    def __repr__(self) -> str:
        return f"DependencyGraph({list(self.names())!r}, principal={self._principal.name!r})"

    def _validate(self) -> None:
        seen: set[str] = set()
        for descriptor in self._descriptors:
            if descriptor.name in seen:
                raise DependencyGraphError(
                    f"duplicate descriptor name '{descriptor.name}'",
                    descriptor=descriptor.name,
                )
            seen.add(descriptor.name)
            if descriptor.relation == self._principal.name:
                raise DependencyGraphError(
                    f"descriptor '{descriptor.name}' targets the principal table; "
                    "the root row is deleted separately",
                    descriptor=descriptor.name,
                )

        for position, descriptor in enumerate(self._descriptors):
            if not descriptor.is_indirect:
                continue
            owned = descriptor.owned_relation_name
            owner_positions = [
                i for i, other in enumerate(self._descriptors) if other.relation == owned
            ]
            if not owner_positions:
                raise DependencyGraphError(
                    f"owned relation '{owned}' of '{descriptor.name}' is never deleted",
                    descriptor=descriptor.name,
                    owned_relation=owned,
                )
            earliest = min(owner_positions)
            if earliest <= position:
                raise DependencyGraphError(
                    f"owned relation '{owned}' is deleted by "
                    f"'{self._descriptors[earliest].name}' before '{descriptor.name}' "
                    "has resolved its subquery",
                    descriptor=descriptor.name,
                    owned_relation=owned,
                )


# Deletion order for FokusHub users. Direct references first, then rows that
# hang off campaigns and e-mail segments the user owns, then the owned rows.
USER_DEPENDENCY_GRAPH = DependencyGraph(
    [
        direct("messages", "sender_id", "recipient_id"),
        direct("participant_responses", "user_id"),
        direct("notifications", "user_id"),
        direct("user_warnings", "user_id", "issued_by"),
        direct("password_reset_tokens", "user_id"),
        direct("verification_submissions", "user_id"),
        direct("user_legal_acceptances", "user_id"),
        direct("behavioral_analysis", "participant_id"),
        direct("matching_history", "participant_id"),
        direct("campaign_participants", "participant_id"),
        direct("campaign_invitations", "invited_by", relation="campaign_participants"),
        direct("participant_profiles", "user_id"),
        direct("admin_settings", "updated_by"),
        via_owned(
            "segment_email_campaigns",
            "segment_id",
            relation="email_campaigns",
            owned_relation="email_segments",
            owned_join_attribute="created_by",
        ),
        direct("email_campaigns", "created_by"),
        direct("email_segments", "created_by"),
        via_owned(
            "campaign_assets",
            "campaign_id",
            owned_relation="campaigns",
            owned_join_attribute="client_id",
        ),
        via_owned(
            "campaign_enrollments",
            "campaign_id",
            relation="campaign_participants",
            owned_relation="campaigns",
            owned_join_attribute="client_id",
        ),
        via_owned(
            "campaign_matching_history",
            "campaign_id",
            relation="matching_history",
            owned_relation="campaigns",
            owned_join_attribute="client_id",
        ),
        via_owned(
            "campaign_matching",
            "campaign_id",
            owned_relation="campaigns",
            owned_join_attribute="client_id",
        ),
        via_owned(
            "campaign_warnings",
            "campaign_id",
            relation="user_warnings",
            owned_relation="campaigns",
            owned_join_attribute="client_id",
        ),
        via_owned(
            "reports",
            "campaign_id",
            owned_relation="campaigns",
            owned_join_attribute="client_id",
        ),
        direct("campaigns", "client_id"),
    ]
)
