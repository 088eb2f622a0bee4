"""
Tests for division membership: adding, withdrawal and reinstatement.
"""
import pytest
from sqlalchemy import select, update

from clubhub.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from clubhub.models.user import User, Role, UserStatus
from clubhub.models.division import Division
from clubhub.models.group_membership import GroupMembership

from conftest import reload, make_user, actor_for


async def memberships_of(session_maker, user_id):
    async with session_maker() as session:
        result = await session.execute(select(GroupMembership).where(GroupMembership.user_id == user_id))
        return result.scalars().all()


class TestAddMemberToDivision:
    """Tests for MembershipService.add_member_to_division."""

    @pytest.mark.asyncio
    async def test_president_adds_member_with_group(self, club, membership, notifier, email, session_maker):
        result = await membership.add_member_to_division(
            club.dev.id, club.free_member.id, club.frontend.id, club.president_actor
        )

        assert result.member.division_id == club.dev.id
        assert result.group.id == club.frontend.id
        rows = await memberships_of(session_maker, club.free_member.id)
        assert [(r.group_id, r.removed) for r in rows] == [(club.frontend.id, False)]
        await notifier.drain()
        assert email.sent[0][0] == club.free_member.email

    @pytest.mark.asyncio
    async def test_group_is_mandatory(self, club, membership, session_maker):
        with pytest.raises(ValidationError) as exc:
            await membership.add_member_to_division(club.dev.id, club.free_member.id, None, club.president_actor)
        assert exc.value.field == "group_id"

        member = await reload(session_maker, User, club.free_member.id)
        assert member.division_id is None
        assert await memberships_of(session_maker, club.free_member.id) == []

    @pytest.mark.asyncio
    async def test_divisioned_member_stays_put_without_group(self, club, membership, session_maker):
        with pytest.raises(ValidationError):
            await membership.add_member_to_division(club.dev.id, club.cyber_member.id, None, club.president_actor)
        member = await reload(session_maker, User, club.cyber_member.id)
        assert member.division_id == club.cyber.id

    @pytest.mark.asyncio
    async def test_group_from_other_division_conflicts(self, club, membership, session_maker):
        with pytest.raises(ConflictError):
            await membership.add_member_to_division(
                club.dev.id, club.free_member.id, club.red_team.id, club.president_actor
            )
        member = await reload(session_maker, User, club.free_member.id)
        assert member.division_id is None

    @pytest.mark.asyncio
    async def test_unknown_group(self, club, membership):
        with pytest.raises(NotFoundError):
            await membership.add_member_to_division(
                club.dev.id, club.free_member.id, "missinggroup000", club.president_actor
            )

    @pytest.mark.asyncio
    async def test_head_adds_to_own_division(self, club, membership, session_maker):
        result = await membership.add_member_to_division(
            club.cyber.id, club.free_member.id, club.red_team.id, club.cyber_head_actor
        )
        assert result.member.division_id == club.cyber.id

    @pytest.mark.asyncio
    async def test_head_cannot_add_to_other_division(self, club, membership, session_maker):
        with pytest.raises(ForbiddenError):
            await membership.add_member_to_division(
                club.dev.id, club.free_member.id, club.backend.id, club.cyber_head_actor
            )
        member = await reload(session_maker, User, club.free_member.id)
        assert member.division_id is None

    @pytest.mark.asyncio
    async def test_head_cannot_poach_member_of_other_division(self, club, membership, session_maker):
        with pytest.raises(ConflictError):
            await membership.add_member_to_division(
                club.cyber.id, club.dev_member.id, club.red_team.id, club.cyber_head_actor
            )
        member = await reload(session_maker, User, club.dev_member.id)
        assert member.division_id == club.dev.id

    @pytest.mark.asyncio
    async def test_president_reassigns_member(self, club, membership, session_maker):
        result = await membership.add_member_to_division(
            club.cyber.id, club.dev_member.id, club.red_team.id, club.president_actor
        )
        assert result.member.division_id == club.cyber.id

    @pytest.mark.asyncio
    async def test_reassigning_a_head_releases_the_headship(self, club, membership, session_maker):
        await membership.add_member_to_division(
            club.dev.id, club.cyber_head.id, club.backend.id, club.president_actor
        )

        moved = await reload(session_maker, User, club.cyber_head.id)
        assert moved.division_id == club.dev.id
        assert moved.role == Role.MEMBER
        cyber = await reload(session_maker, Division, club.cyber.id)
        assert cyber.head_id is None

    @pytest.mark.asyncio
    async def test_president_cannot_join_division(self, club, membership):
        with pytest.raises(ConflictError):
            await membership.add_member_to_division(
                club.dev.id, club.president.id, club.backend.id, club.president_actor
            )

    @pytest.mark.asyncio
    async def test_moving_away_and_back_does_not_revive_old_groups(self, club, membership, session_maker):
        await membership.add_member_to_division(
            club.cyber.id, club.dev_member.id, club.red_team.id, club.president_actor
        )
        await membership.add_member_to_division(
            club.dev.id, club.dev_member.id, club.frontend.id, club.president_actor
        )

        backend = await membership.list_group_members(club.backend.id)
        frontend = await membership.list_group_members(club.frontend.id)
        assert club.dev_member.id not in {m.user_id for m in backend}
        assert club.dev_member.id in {m.user_id for m in frontend}
        rows = {r.group_id: r for r in await memberships_of(session_maker, club.dev_member.id)}
        assert rows[club.backend.id].removal_reason == "Reassigned to division Cyber"
        assert rows[club.red_team.id].removal_reason == "Reassigned to division Dev"
        assert rows[club.frontend.id].removed is False

    @pytest.mark.asyncio
    async def test_rejoining_former_division_after_reinstatement_elsewhere(self, club, membership, session_maker):
        await membership.remove_member_from_division(
            club.dev.id, club.dev_member.id, "semester abroad", club.president_actor
        )
        await membership.add_member_to_division(
            club.cyber.id, club.dev_member.id, club.red_team.id, club.president_actor
        )
        await membership.add_member_to_division(
            club.dev.id, club.dev_member.id, club.frontend.id, club.president_actor
        )

        rows = {r.group_id: r for r in await memberships_of(session_maker, club.dev_member.id)}
        assert rows[club.backend.id].removed is True
        assert rows[club.backend.id].removal_reason == "Rejoined Dev in another group"
        assert rows[club.frontend.id].removed is False
        active = await membership.list_group_members(club.backend.id)
        assert active == []

    @pytest.mark.asyncio
    async def test_readding_existing_member_reuses_membership(self, club, membership, session_maker):
        await membership.add_member_to_division(
            club.dev.id, club.dev_member.id, club.backend.id, club.president_actor
        )
        rows = await memberships_of(session_maker, club.dev_member.id)
        assert len(rows) == 1
        assert rows[0].id == club.backend_membership.id


class TestWithdrawal:
    """Tests for MembershipService.remove_member_from_division and reinstatement."""

    @pytest.mark.asyncio
    async def test_head_withdraws_member_with_reason(self, club, membership, notifier, email, session_maker):
        result = await membership.remove_member_from_division(
            club.cyber.id, club.cyber_member.id, "inactive", club.cyber_head_actor
        )

        assert result.member.status == UserStatus.WITHDRAWN
        assert result.member.division_id is None
        assert result.member.withdrawal.reason == "inactive"
        assert result.member.withdrawal.previous_division_id == club.cyber.id
        assert result.member.withdrawal.withdrawn_by_id == club.cyber_head.id

        # Group rows stay in place but are inert
        rows = await memberships_of(session_maker, club.cyber_member.id)
        assert [(r.group_id, r.removed) for r in rows] == [(club.red_team.id, False)]
        active_ids = {m.user_id for m in await membership.list_group_members(club.red_team.id)}
        assert club.cyber_member.id not in active_ids

        await notifier.drain()
        assert email.sent[0][0] == club.cyber_member.email
        assert "inactive" in email.sent[0][2]

    @pytest.mark.asyncio
    async def test_reason_is_mandatory(self, club, membership, session_maker):
        for reason in (None, "", "  "):
            with pytest.raises(ValidationError):
                await membership.remove_member_from_division(
                    club.cyber.id, club.cyber_member.id, reason, club.cyber_head_actor
                )
        member = await reload(session_maker, User, club.cyber_member.id)
        assert member.status == UserStatus.ACTIVE
        assert member.division_id == club.cyber.id

    @pytest.mark.asyncio
    async def test_member_of_other_division_conflicts(self, club, membership):
        with pytest.raises(ConflictError):
            await membership.remove_member_from_division(
                club.cyber.id, club.dev_member.id, "wrong division", club.president_actor
            )

    @pytest.mark.asyncio
    async def test_head_cannot_withdraw_from_other_division(self, club, membership, session_maker):
        with pytest.raises(ForbiddenError):
            await membership.remove_member_from_division(
                club.dev.id, club.dev_member.id, "poaching", club.cyber_head_actor
            )
        member = await reload(session_maker, User, club.dev_member.id)
        assert member.division_id == club.dev.id

    @pytest.mark.asyncio
    async def test_withdrawing_head_releases_headship(self, club, membership, session_maker):
        await membership.remove_member_from_division(
            club.cyber.id, club.cyber_head.id, "stepping down", club.president_actor
        )
        head = await reload(session_maker, User, club.cyber_head.id)
        assert head.role == Role.MEMBER
        assert head.status == UserStatus.WITHDRAWN
        cyber = await reload(session_maker, Division, club.cyber.id)
        assert cyber.head_id is None

    @pytest.mark.asyncio
    async def test_president_cannot_be_withdrawn(self, club, membership, roles, session_maker):
        # A President left in a division by older data
        async with session_maker() as session:
            async with session.begin():
                await session.execute(
                    update(User).where(User.id == club.president.id).values(division_id=club.cyber.id)
                )

        with pytest.raises(ConflictError):
            await membership.remove_member_from_division(
                club.cyber.id, club.president.id, "overthrown", club.cyber_head_actor
            )

        president = await reload(session_maker, User, club.president.id)
        assert president.status == UserStatus.ACTIVE
        assert president.role == Role.PRESIDENT
        result = await roles.remove_division_head(club.cyber.id, club.president_actor)
        assert result.previous_head.id == club.cyber_head.id

    @pytest.mark.asyncio
    async def test_withdraw_then_reinstate_in_other_division(self, club, membership, session_maker):
        await membership.remove_member_from_division(
            club.cyber.id, club.cyber_member.id, "inactive", club.cyber_head_actor
        )

        result = await membership.add_member_to_division(
            club.dev.id, club.cyber_member.id, club.backend.id, club.president_actor
        )

        assert result.member.status == UserStatus.ACTIVE
        assert result.member.division_id == club.dev.id
        assert result.member.withdrawal is None
        stored = await reload(session_maker, User, club.cyber_member.id)
        assert stored.withdrawal_reason is None
        assert stored.withdrawn_at is None
        assert stored.withdrawn_by_id is None
        assert stored.previous_division_id is None

    @pytest.mark.asyncio
    async def test_reinstatement_into_same_division_retires_other_groups(self, club, membership, session_maker):
        await membership.add_member_to_group(club.frontend.id, club.dev_member.id, club.president_actor)
        await membership.remove_member_from_division(
            club.dev.id, club.dev_member.id, "semester abroad", club.president_actor
        )

        await membership.add_member_to_division(
            club.dev.id, club.dev_member.id, club.backend.id, club.president_actor
        )

        rows = {r.group_id: r for r in await memberships_of(session_maker, club.dev_member.id)}
        assert rows[club.backend.id].removed is False
        assert rows[club.frontend.id].removed is True
        assert rows[club.frontend.id].removal_reason == "semester abroad"
        active = await membership.list_group_members(club.frontend.id)
        assert club.dev_member.id not in {m.user_id for m in active}

    @pytest.mark.asyncio
    async def test_head_can_reinstate_withdrawn_member(self, club, membership):
        await membership.remove_member_from_division(
            club.cyber.id, club.cyber_member.id, "inactive", club.cyber_head_actor
        )
        result = await membership.add_member_to_division(
            club.cyber.id, club.cyber_member.id, club.red_team.id, club.cyber_head_actor
        )
        assert result.member.status == UserStatus.ACTIVE
        assert result.member.division_id == club.cyber.id

    @pytest.mark.asyncio
    async def test_list_withdrawn_members(self, club, membership):
        await membership.remove_member_from_division(
            club.cyber.id, club.cyber_member.id, "inactive", club.cyber_head_actor
        )
        withdrawn = await membership.list_withdrawn_members()
        assert [u.id for u in withdrawn] == [club.cyber_member.id]
        assert await membership.list_withdrawn_members(club.dev.id) == []
        assert [u.id for u in await membership.list_withdrawn_members(club.cyber.id)] == [club.cyber_member.id]


class TestUpdateWithdrawalReason:
    @pytest.mark.asyncio
    async def test_head_of_previous_division_updates_reason(self, club, membership, session_maker):
        await membership.remove_member_from_division(
            club.cyber.id, club.cyber_member.id, "inactive", club.cyber_head_actor
        )
        result = await membership.update_withdrawal_reason(
            club.cyber_member.id, "Inactive for two semesters", club.cyber_head_actor
        )
        assert result.member.withdrawal.reason == "Inactive for two semesters"

    @pytest.mark.asyncio
    async def test_other_head_is_forbidden(self, club, membership, roles, session_maker):
        await roles.assign_division_head(club.dev.id, club.dev_member.id, club.president_actor)
        dev_head = await reload(session_maker, User, club.dev_member.id)
        await membership.remove_member_from_division(
            club.cyber.id, club.cyber_member.id, "inactive", club.cyber_head_actor
        )
        with pytest.raises(ForbiddenError):
            await membership.update_withdrawal_reason(club.cyber_member.id, "other", actor_for(dev_head))

    @pytest.mark.asyncio
    async def test_not_withdrawn_conflicts(self, club, membership):
        with pytest.raises(ConflictError):
            await membership.update_withdrawal_reason(club.dev_member.id, "reason", club.president_actor)
