"""
ORM row -> response projections.

Built inside the transaction, after a flush, so ids and timestamps are
populated. Relationship attributes are never touched here; anything expanded
is passed in explicitly.
"""
from typing import Iterable, Optional

from clubhub.models.user import User
from clubhub.models.division import Division
from clubhub.models.group import Group
from clubhub.models.group_membership import GroupMembership
from clubhub.schemas.user import UserResponse
from clubhub.schemas.division import DivisionResponse, DivisionDetailResponse
from clubhub.schemas.group import GroupResponse, GroupMembershipResponse, MemberInfo


def user_view(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


def division_view(division: Division) -> DivisionResponse:
    return DivisionResponse.model_validate(division)


def group_view(group: Group) -> GroupResponse:
    return GroupResponse.model_validate(group)


def membership_view(membership: GroupMembership, user: Optional[User] = None) -> GroupMembershipResponse:
    view = GroupMembershipResponse.model_validate(membership)
    if user is not None:
        view = view.model_copy(update={"member": MemberInfo.model_validate(user)})
    return view


def division_detail_view(
    division: Division,
    head: Optional[User],
    members: Iterable[User],
    groups: Iterable[Group],
) -> DivisionDetailResponse:
    return DivisionDetailResponse(
        **division_view(division).model_dump(),
        head=user_view(head) if head is not None else None,
        members=[user_view(m) for m in members],
        groups=[group_view(g) for g in groups],
    )
