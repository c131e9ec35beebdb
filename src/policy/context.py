# src/policy/context.py

from dataclasses import dataclass, field, replace

from src.models.models import Patient, UserRole
from src.policy.relationships import RelationshipIndex


@dataclass(frozen=True)
class PolicyContext:
    """Everything a policy decision may look at, passed explicitly to every check."""
    actor: Patient
    relationships: RelationshipIndex = field(default_factory=RelationshipIndex.empty)
    reauthenticated: bool = False

    @property
    def role(self) -> UserRole:
        return self.actor.role

    def with_reauthentication(self) -> "PolicyContext":
        return replace(self, reauthenticated=True)
