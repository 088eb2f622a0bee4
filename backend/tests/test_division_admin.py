"""
Tests for division and group administration.
"""
import pytest
from sqlalchemy import select

from clubhub.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from clubhub.models.user import User, Role, UserStatus
from clubhub.models.division import Division, DivisionKind
from clubhub.models.group import Group
from clubhub.models.group_membership import GroupMembership

from conftest import reload


class TestCreateDivision:
    @pytest.mark.asyncio
    async def test_kind_resolved_from_name(self, club, divisions):
        division = await divisions.create_division("Data Science", "ML and analytics", None, club.president_actor)
        assert division.kind == DivisionKind.DATA_SCIENCE
        assert division.head_id is None

    @pytest.mark.asyncio
    async def test_explicit_kind_wins(self, club, divisions):
        division = await divisions.create_division("Business", None, DivisionKind.CBD, club.president_actor)
        assert division.kind == DivisionKind.CBD

    @pytest.mark.asyncio
    async def test_unknown_name_has_no_kind(self, club, divisions):
        division = await divisions.create_division("Robotics", None, None, club.president_actor)
        assert division.kind is None

    @pytest.mark.asyncio
    async def test_duplicate_name_is_case_insensitive(self, club, divisions):
        with pytest.raises(ConflictError):
            await divisions.create_division("  dev ", None, None, club.president_actor)

    @pytest.mark.asyncio
    async def test_name_required(self, club, divisions):
        with pytest.raises(ValidationError):
            await divisions.create_division("", None, None, club.president_actor)

    @pytest.mark.asyncio
    async def test_heads_cannot_create(self, club, divisions):
        with pytest.raises(ForbiddenError):
            await divisions.create_division("CPD", None, None, club.cyber_head_actor)


class TestUpdateDivision:
    @pytest.mark.asyncio
    async def test_head_updates_own_division(self, club, divisions):
        division = await divisions.update_division(club.cyber.id, None, "Offensive and defensive security", club.cyber_head_actor)
        assert division.description == "Offensive and defensive security"
        assert division.name == "Cyber"

    @pytest.mark.asyncio
    async def test_head_cannot_update_other_division(self, club, divisions):
        with pytest.raises(ForbiddenError):
            await divisions.update_division(club.dev.id, "Hacked", None, club.cyber_head_actor)

    @pytest.mark.asyncio
    async def test_rename_to_existing_name_conflicts(self, club, divisions):
        with pytest.raises(ConflictError):
            await divisions.update_division(club.outreach.id, "CYBER", None, club.president_actor)

    @pytest.mark.asyncio
    async def test_rename_keeps_kind(self, club, divisions):
        division = await divisions.update_division(club.dev.id, "Engineering", None, club.president_actor)
        assert division.name == "Engineering"
        assert division.kind == DivisionKind.DEV


class TestDeleteDivision:
    @pytest.mark.asyncio
    async def test_delete_releases_head_and_orphans_members(self, club, divisions, session_maker):
        await divisions.delete_division(club.cyber.id, club.president_actor)

        assert await reload(session_maker, Division, club.cyber.id) is None
        assert await reload(session_maker, Group, club.red_team.id) is None
        head = await reload(session_maker, User, club.cyber_head.id)
        assert head.role == Role.MEMBER
        assert head.division_id is None
        member = await reload(session_maker, User, club.cyber_member.id)
        assert member.division_id is None
        assert member.status == UserStatus.ACTIVE
        async with session_maker() as session:
            rows = (await session.execute(
                select(GroupMembership).where(GroupMembership.group_id == club.red_team.id)
            )).scalars().all()
        assert rows == []

    @pytest.mark.asyncio
    async def test_only_president_deletes(self, club, divisions):
        with pytest.raises(ForbiddenError):
            await divisions.delete_division(club.cyber.id, club.cyber_head_actor)

    @pytest.mark.asyncio
    async def test_delete_unknown(self, club, divisions):
        with pytest.raises(NotFoundError):
            await divisions.delete_division("missingdivision", club.president_actor)


class TestGroups:
    @pytest.mark.asyncio
    async def test_head_creates_group(self, club, divisions):
        group = await divisions.create_group(club.cyber.id, "Blue Team", "Defence", club.cyber_head_actor)
        assert group.division_id == club.cyber.id
        assert group.created_by_id == club.cyber_head.id
        names = [g.name for g in await divisions.list_groups(club.cyber.id)]
        assert names == ["Blue Team", "Red Team"]

    @pytest.mark.asyncio
    async def test_duplicate_group_name_conflicts(self, club, divisions):
        with pytest.raises(ConflictError):
            await divisions.create_group(club.dev.id, "backend", None, club.president_actor)

    @pytest.mark.asyncio
    async def test_same_group_name_in_other_division(self, club, divisions):
        group = await divisions.create_group(club.cyber.id, "Backend", None, club.president_actor)
        assert group.division_id == club.cyber.id

    @pytest.mark.asyncio
    async def test_head_cannot_create_in_other_division(self, club, divisions):
        with pytest.raises(ForbiddenError):
            await divisions.create_group(club.dev.id, "Mobile", None, club.cyber_head_actor)

    @pytest.mark.asyncio
    async def test_head_updates_group_in_own_division(self, club, divisions, session_maker):
        group = await divisions.update_group(club.red_team.id, " Offense ", "Attack simulation", club.cyber_head_actor)

        assert group.name == "Offense"
        assert group.description == "Attack simulation"
        stored = await reload(session_maker, Group, club.red_team.id)
        assert stored.name == "Offense"
        assert stored.division_id == club.cyber.id

    @pytest.mark.asyncio
    async def test_update_group_keeps_name_unique_in_division(self, club, divisions):
        with pytest.raises(ConflictError):
            await divisions.update_group(club.frontend.id, "BACKEND", None, club.president_actor)

    @pytest.mark.asyncio
    async def test_head_cannot_update_group_in_other_division(self, club, divisions, session_maker):
        with pytest.raises(ForbiddenError):
            await divisions.update_group(club.backend.id, "Hijacked", None, club.cyber_head_actor)
        stored = await reload(session_maker, Group, club.backend.id)
        assert stored.name == "Backend"

    @pytest.mark.asyncio
    async def test_update_unknown_group(self, club, divisions):
        with pytest.raises(NotFoundError):
            await divisions.update_group("missinggroup000", "Nope", None, club.president_actor)
        with pytest.raises(ForbiddenError):
            await divisions.update_group("missinggroup000", "Nope", None, club.cyber_head_actor)

    @pytest.mark.asyncio
    async def test_get_group(self, club, divisions):
        group = await divisions.get_group(club.frontend.id)
        assert (group.name, group.division_id) == ("Frontend", club.dev.id)
        with pytest.raises(NotFoundError):
            await divisions.get_group("missinggroup000")

    @pytest.mark.asyncio
    async def test_delete_group_removes_memberships(self, club, divisions, session_maker):
        await divisions.delete_group(club.backend.id, club.president_actor)

        assert await reload(session_maker, Group, club.backend.id) is None
        assert await reload(session_maker, GroupMembership, club.backend_membership.id) is None
        member = await reload(session_maker, User, club.dev_member.id)
        assert member.division_id == club.dev.id


class TestDivisionDetail:
    @pytest.mark.asyncio
    async def test_detail_includes_head_members_and_groups(self, club, divisions):
        detail = await divisions.get_division(club.cyber.id)

        assert detail.head.id == club.cyber_head.id
        assert {m.id for m in detail.members} == {club.cyber_head.id, club.cyber_member.id}
        assert [g.name for g in detail.groups] == ["Red Team"]

    @pytest.mark.asyncio
    async def test_list_divisions_sorted_by_name(self, club, divisions):
        names = [d.name for d in await divisions.list_divisions()]
        assert names == ["Cyber", "Dev", "Outreach"]
