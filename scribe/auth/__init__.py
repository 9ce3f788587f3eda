"""Role-based abilities and the request-level authentication/authorization dependencies."""

from scribe.auth.abilities import (
    Ability,
    Action,
    ResourceRef,
    Role,
    Rule,
    SubjectType,
    define_abilities_for,
    define_rules_for,
)

__all__ = [
    "Ability",
    "Action",
    "ResourceRef",
    "Role",
    "Rule",
    "SubjectType",
    "define_abilities_for",
    "define_rules_for",
]
