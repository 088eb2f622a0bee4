"""
Organizational invariant checks.

Pure functions over already-loaded rows. They never touch the session; the
services call them inside the write transaction, right before mutating, so
the rows they inspect are the snapshot the write is based on.
"""
from dataclasses import dataclass
from typing import Optional

from clubhub.core.errors import ConflictError, ValidationError
from clubhub.models.user import User, Role, UserStatus
from clubhub.models.division import Division
from clubhub.models.group import Group
from clubhub.models.group_membership import GroupMembership


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of an invariant check."""
    ok: bool
    reason: Optional[str] = None
    field: Optional[str] = None
    missing_input: bool = False

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls(ok=True)

    @classmethod
    def violation(cls, reason: str, field: str = None) -> "ValidationResult":
        return cls(ok=False, reason=reason, field=field)

    @classmethod
    def missing(cls, reason: str, field: str) -> "ValidationResult":
        return cls(ok=False, reason=reason, field=field, missing_input=True)

    def raise_for_violation(self) -> None:
        if self.ok:
            return
        if self.missing_input:
            raise ValidationError(self.reason, field=self.field)
        raise ConflictError(self.reason, conflicting_resource=self.field)


def single_president(current_president_id: Optional[str], candidate_id: Optional[str]) -> ValidationResult:
    if current_president_id is None or current_president_id == candidate_id:
        return ValidationResult.passed()
    return ValidationResult.violation("A President already exists", "president")


def head_belongs_to_division(user: User, division: Division) -> ValidationResult:
    if user.division_id != division.id:
        return ValidationResult.violation(
            f"{user.name} is not a member of division {division.name}", "division_id"
        )
    return ValidationResult.passed()


def head_is_eligible(user: User) -> ValidationResult:
    if user.status != UserStatus.ACTIVE:
        return ValidationResult.violation(f"{user.name} is not an active member", "status")
    if not user.email_verified:
        return ValidationResult.violation(f"{user.name} has not verified their email", "email_verified")
    return ValidationResult.passed()


def head_role_for(division: Division) -> tuple[ValidationResult, Optional[Role]]:
    """Head role granted by ``division``; a division without a kind grants none."""
    if division.kind is None:
        return (
            ValidationResult.violation(
                f"Division {division.name} has no kind configured; cannot derive a head role", "kind"
            ),
            None,
        )
    return ValidationResult.passed(), division.kind.head_role


def group_belongs_to_division(group: Group, division_id: str) -> ValidationResult:
    if group.division_id != division_id:
        return ValidationResult.violation("Group does not belong to this division", "group_id")
    return ValidationResult.passed()


def member_eligible_for_group(user: User, group: Group) -> ValidationResult:
    if user.status == UserStatus.WITHDRAWN:
        return ValidationResult.violation(f"{user.name} has been withdrawn from their division", "status")
    if user.division_id != group.division_id:
        return ValidationResult.violation(f"{user.name} is not a member of this group's division", "division_id")
    return ValidationResult.passed()


def membership_is_active(membership: Optional[GroupMembership], user: User, group: Group) -> bool:
    """A membership row only counts while the user still belongs to the group's division."""
    return (
        membership is not None
        and not membership.removed
        and user.status != UserStatus.WITHDRAWN
        and user.division_id == group.division_id
    )


def reason_provided(reason: Optional[str], field: str = "reason") -> ValidationResult:
    if reason is None or not reason.strip():
        return ValidationResult.missing("A reason is required", field)
    return ValidationResult.passed()


def required(value: Optional[str], field: str) -> ValidationResult:
    if value is None or (isinstance(value, str) and not value.strip()):
        return ValidationResult.missing(f"{field} is required", field)
    return ValidationResult.passed()
