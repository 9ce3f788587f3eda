"""
Role-seeded ability rules and the allow/deny decision for a principal.

A rule set is built per request from the principal's role. Grants are
cumulative: each role receives every rule of the roles below it. Decisions
follow one precedence policy: a matching deny rule rejects regardless of where
it sits in the rule list, otherwise a matching allow rule permits, otherwise the
request is denied.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable


class Role(str, Enum):
    GUEST = "guest"
    WRITER = "writer"
    EDITOR = "editor"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return ROLE_ORDER.index(self)

    def at_least(self, other: Role) -> bool:
        return self.rank >= other.rank


ROLE_ORDER: tuple[Role, ...] = (Role.GUEST, Role.WRITER, Role.EDITOR, Role.ADMIN)


class Action(str, Enum):
    MANAGE = "manage"
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class SubjectType(str, Enum):
    ARTICLE = "Article"
    COMMENT = "Comment"
    REPLY = "Reply"
    NOTIFICATION = "Notification"
    USER = "User"
    STATISTICS = "Statistics"
    ALL = "all"


@dataclass(frozen=True)
class ResourceRef:
    """A resource instance in the only shape the policy engine evaluates."""

    id: str
    owner_id: str
    type_tag: SubjectType

    @classmethod
    def of(cls, id: Any, owner_id: Any, type_tag: SubjectType | str) -> ResourceRef:
        return cls(id=str(id), owner_id=str(owner_id), type_tag=SubjectType(type_tag))


@runtime_checkable
class HasResourceRef(Protocol):
    @property
    def resource_ref(self) -> ResourceRef: ...


Subject = ResourceRef | HasResourceRef | SubjectType | str


def normalize_subject(subject: Subject | None) -> ResourceRef | SubjectType:
    """Reduce a subject to a ResourceRef (instance) or a SubjectType (any instance of a type)."""
    if subject is None:
        return SubjectType.ALL
    if isinstance(subject, ResourceRef):
        return subject
    if isinstance(subject, SubjectType):
        return subject
    if isinstance(subject, str):
        return SubjectType(subject)
    if isinstance(subject, HasResourceRef):
        return subject.resource_ref
    raise TypeError(f"Cannot evaluate permissions on {type(subject).__name__}")


@dataclass(frozen=True)
class Rule:
    action: Action
    subject: SubjectType
    inverted: bool = False
    owned_only: bool = False
    fields: frozenset[str] | None = None

    def matches(
        self,
        action: Action,
        target: ResourceRef | SubjectType,
        principal_id: str,
        field: str | None,
    ) -> bool:
        if self.action is not Action.MANAGE and self.action is not action:
            return False
        type_tag = target.type_tag if isinstance(target, ResourceRef) else target
        if self.subject is not SubjectType.ALL and self.subject is not type_tag:
            return False
        if self.owned_only:
            # Ownership cannot be proven for "any instance of a type".
            if not isinstance(target, ResourceRef) or target.owner_id != principal_id:
                return False
        return self._matches_field(field)

    def _matches_field(self, field: str | None) -> bool:
        if self.fields is None:
            return True
        if field is None:
            return not self.inverted
        return field in self.fields


class RuleBuilder:
    """Collects rules in declaration order."""

    def __init__(self) -> None:
        self._rules: list[Rule] = []

    def can(
        self,
        actions: Action | Iterable[Action],
        subject: SubjectType,
        owned_only: bool = False,
        fields: Iterable[str] | None = None,
    ) -> None:
        self._add(actions, subject, False, owned_only, fields)

    def cannot(
        self,
        actions: Action | Iterable[Action],
        subject: SubjectType,
        owned_only: bool = False,
        fields: Iterable[str] | None = None,
    ) -> None:
        self._add(actions, subject, True, owned_only, fields)

    def _add(
        self,
        actions: Action | Iterable[Action],
        subject: SubjectType,
        inverted: bool,
        owned_only: bool,
        fields: Iterable[str] | None,
    ) -> None:
        action_list = [actions] if isinstance(actions, Action) else list(actions)
        field_set = frozenset(fields) if fields is not None else None
        for action in action_list:
            self._rules.append(
                Rule(
                    action=action,
                    subject=subject,
                    inverted=inverted,
                    owned_only=owned_only,
                    fields=field_set,
                )
            )

    def build(self) -> list[Rule]:
        return list(self._rules)


class Ability:
    """Answers can/cannot for one principal against its rule set."""

    def __init__(self, principal_id: Any, rules: Iterable[Rule]) -> None:
        self.principal_id = str(principal_id)
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def relevant_rules(
        self,
        action: Action | str,
        subject: Subject | None,
        field: str | None = None,
    ) -> list[Rule]:
        """Rules that apply to this query, in declaration order."""
        act = Action(action)
        target = normalize_subject(subject)
        return [r for r in self._rules if r.matches(act, target, self.principal_id, field)]

    def can(self, action: Action | str, subject: Subject | None, field: str | None = None) -> bool:
        matched = self.relevant_rules(action, subject, field)
        if any(r.inverted for r in matched):
            return False
        return any(not r.inverted for r in matched)

    def cannot(self, action: Action | str, subject: Subject | None, field: str | None = None) -> bool:
        return not self.can(action, subject, field)


def define_rules_for(role: Role | str) -> list[Rule]:
    """Build the ordered rule list for a role. Higher roles extend lower ones."""
    role = Role(role)
    rules = RuleBuilder()

    # Every authenticated principal, Guest included.
    rules.can(Action.READ, SubjectType.ARTICLE)
    rules.can(Action.READ, SubjectType.COMMENT)
    rules.can(Action.READ, SubjectType.REPLY)
    rules.can(Action.CREATE, SubjectType.COMMENT)
    rules.can(Action.CREATE, SubjectType.REPLY)
    rules.can([Action.UPDATE, Action.DELETE], SubjectType.COMMENT, owned_only=True)
    rules.can([Action.UPDATE, Action.DELETE], SubjectType.REPLY, owned_only=True)
    rules.can([Action.READ, Action.UPDATE], SubjectType.NOTIFICATION, owned_only=True)

    if role.at_least(Role.WRITER):
        rules.can(Action.CREATE, SubjectType.ARTICLE)
        rules.can([Action.UPDATE, Action.DELETE], SubjectType.ARTICLE, owned_only=True)

    if role.at_least(Role.EDITOR):
        rules.can(Action.MANAGE, SubjectType.ARTICLE)
        rules.can(Action.MANAGE, SubjectType.COMMENT)
        rules.cannot(Action.DELETE, SubjectType.USER)

    if role is Role.ADMIN:
        rules.can(Action.MANAGE, SubjectType.ALL)
        rules.can(Action.READ, SubjectType.STATISTICS)

    return rules.build()


def define_abilities_for(principal_id: Any, role: Role | str) -> Ability:
    """Build a fresh, request-scoped Ability for a principal."""
    return Ability(principal_id, define_rules_for(role))
