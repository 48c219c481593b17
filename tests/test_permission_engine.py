"""
Tests for the pure overwrite composition and the observed-state helpers.
"""

import discord
import pytest

from services.permission_engine import (
    compose_overwrites,
    compose_waiting_overwrites,
    get_own_category_overwrites,
    infer_owner_id,
    is_approval_channel,
    member_overwrite,
    owner_overwrite,
)
from tests.factories import FakeGuild, make_member, make_voice_channel
from utils.types import MemberPermission


def by_id(overwrites):
    return {target.id: overwrite for target, overwrite in overwrites.items()}


@pytest.fixture
def env():
    guild = FakeGuild()
    channel = make_voice_channel(guild, 444555666)
    return {
        "guild": guild,
        "channel": channel,
        "inherited": get_own_category_overwrites(channel),
        "owner": make_member(guild, 1001, "alice"),
        "bob": make_member(guild, 1002, "bob"),
        "carol": make_member(guild, 1003, "carol"),
    }


def compose(env, **kwargs):
    params = {
        "inherited": env["inherited"],
        "everyone": env["guild"].default_role,
        "owner": env["owner"],
        "approval": False,
        "existing": {},
    }
    params.update(kwargs)
    return compose_overwrites(**params)


class TestComposeOverwrites:
    def test_owner_gets_ownership_grant(self, env):
        result = by_id(compose(env))

        assert result[1001] == owner_overwrite()
        assert result[1001].priority_speaker is True
        assert result[1001].view_channel is True
        assert result[1001].connect is True

    def test_everyone_not_denied_without_approval(self, env):
        result = by_id(compose(env))

        assert result[env["guild"].default_role.id].connect is None

    def test_inherited_bot_overwrites_are_kept(self, env):
        guild = env["guild"]
        result = by_id(compose(env))

        assert result[guild.bot_role.id].manage_channels is True

    def test_unrelated_category_overwrites_are_not_inherited(self):
        guild = FakeGuild()
        channel = make_voice_channel(guild, 1)
        stranger = discord.Object(id=424242)
        channel.category.overwrites[stranger] = discord.PermissionOverwrite(view_channel=False)

        inherited = by_id(get_own_category_overwrites(channel))

        assert 424242 not in inherited
        assert guild.bot_role.id in inherited

    def test_approval_denies_everyone_connect_and_keeps_inherited_grants(self, env):
        everyone_id = env["guild"].default_role.id
        result = by_id(compose(env, approval=True))

        assert result[everyone_id].connect is False
        # View grant inherited from the category survives the merge
        assert result[everyone_id].view_channel is True
        # Inherited input left untouched
        assert by_id(env["inherited"])[everyone_id].connect is None

    def test_blocked_subjects_lose_view(self, env):
        result = by_id(compose(env, blocked=[env["bob"], discord.Object(id=5555)]))

        assert result[1002].view_channel is False
        assert result[5555].view_channel is False

    def test_owner_is_never_blocked(self, env):
        result = by_id(compose(env, blocked=[env["owner"]]))

        assert result[1001] == owner_overwrite()

    def test_member_permissions_approve_and_mute(self, env):
        result = by_id(
            compose(
                env,
                member_permissions=[
                    MemberPermission(1002, approve=True),
                    MemberPermission(1003, muted=True),
                ],
            )
        )

        assert result[1002] == member_overwrite(approved=True, muted=False)
        assert result[1003].speak is False
        assert result[1003].connect is None

    def test_existing_member_state_is_carried_over(self, env):
        existing = {
            env["bob"]: discord.PermissionOverwrite(connect=True),
            env["carol"]: discord.PermissionOverwrite(speak=False),
        }

        result = by_id(compose(env, existing=existing))

        assert result[1002].connect is True
        assert result[1003].speak is False

    def test_revoking_approval_drops_the_overwrite(self, env):
        existing = {env["bob"]: discord.PermissionOverwrite(connect=True)}

        result = by_id(
            compose(
                env,
                existing=existing,
                member_permissions=[MemberPermission(1002, approve=False)],
            )
        )

        assert 1002 not in result

    def test_muted_blocked_member_stays_muted(self, env):
        existing = {env["bob"]: discord.PermissionOverwrite(speak=False)}

        result = by_id(compose(env, existing=existing, blocked=[env["bob"]]))

        assert result[1002].view_channel is False
        assert result[1002].speak is False

    def test_previous_owner_grant_is_not_carried_over(self, env):
        existing = {env["bob"]: owner_overwrite()}

        result = by_id(compose(env, existing=existing))

        assert infer_owner_id(compose(env, existing=existing)) == 1001
        assert 1002 in result
        assert result[1002].priority_speaker is None

    @pytest.mark.parametrize("approval", [False, True])
    def test_composition_is_idempotent(self, env, approval):
        first = compose(
            env,
            approval=approval,
            blocked=[env["bob"]],
            member_permissions=[
                MemberPermission(1003, approve=True, muted=True),
            ],
        )

        second = compose(env, approval=approval, existing=first, blocked=[env["bob"]])

        assert by_id(second) == by_id(first)

    def test_exactly_one_ownership_grant(self, env):
        existing = {
            env["bob"]: owner_overwrite(),
            env["carol"]: discord.PermissionOverwrite(connect=True),
        }

        result = compose(env, existing=existing)

        holders = [t.id for t, o in result.items() if o.priority_speaker]
        assert holders == [1001]


class TestWaitingOverwrites:
    def test_everyone_cannot_speak_or_chat(self, env):
        everyone = env["guild"].default_role
        result = by_id(
            compose_waiting_overwrites(inherited=env["inherited"], everyone=everyone)
        )

        assert result[everyone.id].speak is False
        assert result[everyone.id].send_messages is False
        assert result[everyone.id].view_channel is True

    def test_blocked_cannot_see_waiting_channel(self, env):
        result = by_id(
            compose_waiting_overwrites(
                inherited=env["inherited"],
                everyone=env["guild"].default_role,
                blocked=[env["bob"]],
            )
        )

        assert result[1002].view_channel is False


class TestObservedState:
    def test_infer_owner_from_priority_speaker(self, env):
        overwrites = {
            env["bob"]: discord.PermissionOverwrite(connect=True),
            env["owner"]: owner_overwrite(),
        }

        assert infer_owner_id(overwrites) == 1001

    def test_infer_owner_none_without_grant(self, env):
        assert infer_owner_id(env["inherited"]) is None

    def test_is_approval_channel_reads_everyone_connect(self, env):
        channel = env["channel"]
        assert is_approval_channel(channel) is False

        channel.overwrites = compose(env, approval=True)

        assert is_approval_channel(channel) is True
