"""
Permission reconciliation for managed voice channels.

``compose_overwrites`` is pure: it takes the current facts about a channel
(inherited category grants, owner, approval mode, block list, existing
per-member state) and returns the complete overwrite mapping. The service
applies that mapping in a single edit and then performs the side effects
that depend on it.

Every reconciliation replaces the whole overwrite set. Two reconciliations
racing on the same channel are last-writer-wins: the later edit fully
replaces the earlier one, so a change made in between can be reverted.
The next membership event or interaction recomputes everything.
"""

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

import discord

from helpers import blocklist_repo, discord_api, voice_repo
from services.base import BaseService
from utils.types import BlockEditResult, ChannelSession, MemberPermission

if TYPE_CHECKING:
    from services.approval_service import ApprovalService

DEFAULT_BITRATE = 64000

Overwrites = dict[Any, discord.PermissionOverwrite]


def _copy(overwrite: discord.PermissionOverwrite) -> discord.PermissionOverwrite:
    return discord.PermissionOverwrite.from_pair(*overwrite.pair())


def owner_overwrite() -> discord.PermissionOverwrite:
    """Grants held by the channel owner. ``priority_speaker`` marks ownership."""
    return discord.PermissionOverwrite(
        view_channel=True, priority_speaker=True, connect=True
    )


def member_overwrite(approved: bool, muted: bool) -> discord.PermissionOverwrite:
    return discord.PermissionOverwrite(
        connect=True if approved else None,
        speak=False if muted else None,
    )


def get_own_category_overwrites(channel: discord.VoiceChannel) -> Overwrites:
    """
    Category overwrites whose target is the bot itself or one of its roles.

    Only these are inherited, so the bot keeps enough access to manage the
    channel without copying unrelated grants from the category.
    """
    category = channel.category
    if category is None:
        return {}
    me = channel.guild.me
    own_ids = {me.id, *(role.id for role in me.roles)}
    return {
        target: _copy(overwrite)
        for target, overwrite in category.overwrites.items()
        if target.id in own_ids
    }


def is_approval_channel(channel: discord.VoiceChannel) -> bool:
    """Observed approval state: ``@everyone`` is explicitly denied connect."""
    overwrite = channel.overwrites_for(channel.guild.default_role)
    return overwrite.connect is False


def infer_owner_id(overwrites: Mapping[Any, discord.PermissionOverwrite]) -> int | None:
    """
    Owner as seen on the channel: the first member overwrite granting
    ``priority_speaker``. Used only when no session record exists.
    """
    for target, overwrite in overwrites.items():
        if isinstance(target, discord.Role):
            continue
        if overwrite.priority_speaker:
            return target.id
    return None


def compose_overwrites(
    *,
    inherited: Mapping[Any, discord.PermissionOverwrite],
    everyone: Any,
    owner: Any | None,
    approval: bool,
    existing: Mapping[Any, discord.PermissionOverwrite],
    blocked: Iterable[Any] = (),
    member_permissions: Iterable[MemberPermission] = (),
) -> Overwrites:
    """
    Build the complete overwrite mapping for a managed channel.

    Layers are merged by subject id, later layers winning:

    1. inherited category grants for the bot
    2. approved (connect allowed) and muted (speak denied) members carried
       over from ``existing``
    3. explicit ``member_permissions`` changes
    4. ``@everyone``: connect denied while approval mode is on
    5. the owner grant
    6. view denied for every blocked subject except the owner

    Applying the result and composing again from it yields the same mapping.
    """
    targets: dict[int, Any] = {}
    merged: dict[int, discord.PermissionOverwrite] = {}

    def put(target: Any, overwrite: discord.PermissionOverwrite) -> None:
        targets.setdefault(target.id, target)
        merged[target.id] = overwrite

    for target, overwrite in inherited.items():
        put(target, _copy(overwrite))
    inherited_ids = set(merged)

    # (approved, muted) per member subject
    states: dict[int, tuple[bool, bool]] = {}
    for target, overwrite in existing.items():
        if target.id in inherited_ids or target.id == everyone.id:
            continue
        if isinstance(target, discord.Role):
            continue
        approved = overwrite.connect is True
        muted = overwrite.speak is False
        if approved or muted:
            targets.setdefault(target.id, target)
            states[target.id] = (approved, muted)

    for change in member_permissions:
        approved, muted = states.get(change.member_id, (False, False))
        if change.approve is not None:
            approved = change.approve
        if change.muted is not None:
            muted = change.muted
        targets.setdefault(change.member_id, discord.Object(id=change.member_id))
        states[change.member_id] = (approved, muted)

    for member_id, (approved, muted) in states.items():
        if (approved or muted) and member_id not in inherited_ids:
            put(targets[member_id], member_overwrite(approved, muted))

    if approval:
        overwrite = merged.get(everyone.id)
        overwrite = _copy(overwrite) if overwrite else discord.PermissionOverwrite()
        overwrite.update(connect=False)
        put(everyone, overwrite)

    if owner is not None:
        put(owner, owner_overwrite())

    for target in blocked:
        if owner is not None and target.id == owner.id:
            continue
        _, muted = states.get(target.id, (False, False))
        put(
            target,
            discord.PermissionOverwrite(
                view_channel=False, speak=False if muted else None
            ),
        )

    return {targets[subject_id]: overwrite for subject_id, overwrite in merged.items()}


def compose_waiting_overwrites(
    *,
    inherited: Mapping[Any, discord.PermissionOverwrite],
    everyone: Any,
    blocked: Iterable[Any] = (),
) -> Overwrites:
    """Waiting channel: anyone may join but nobody speaks or chats; blocked users cannot see it."""
    result: dict[int, tuple[Any, discord.PermissionOverwrite]] = {
        target.id: (target, _copy(overwrite)) for target, overwrite in inherited.items()
    }
    for target in blocked:
        result[target.id] = (target, discord.PermissionOverwrite(view_channel=False))
    base = result.get(everyone.id, (everyone, discord.PermissionOverwrite()))[1]
    base.update(speak=False, send_messages=False)
    result[everyone.id] = (everyone, base)
    return dict(result.values())


def resolve_subject(guild: discord.Guild, user_id: int) -> Any:
    """Member object when cached, otherwise a bare member-typed ``discord.Object``."""
    return guild.get_member(user_id) or discord.Object(id=user_id)


class PermissionService(BaseService):
    """Applies composed overwrites and the side effects that follow them."""

    def __init__(self, config, bot=None) -> None:
        super().__init__("permissions", config, bot)
        self.approval: "ApprovalService | None" = None

    async def _initialize_impl(self) -> None:
        if self.approval is None:
            raise RuntimeError("PermissionService requires the approval service")

    async def get_session(self, channel: discord.VoiceChannel) -> ChannelSession:
        """Stored session, or one inferred from the channel's overwrites."""
        session = await voice_repo.get_session(channel.id)
        if session is not None:
            return session
        return ChannelSession(
            channel_id=channel.id,
            owner_id=infer_owner_id(channel.overwrites),
            approval=is_approval_channel(channel),
        )

    async def get_owner_id(self, channel: discord.VoiceChannel) -> int | None:
        return (await self.get_session(channel)).owner_id

    async def apply_owner_permissions(
        self,
        channel: discord.VoiceChannel,
        owner: discord.Member,
        approval: bool | None = None,
        member_permissions: Iterable[MemberPermission] = (),
    ) -> Overwrites:
        """
        Reconcile ``channel`` for ``owner``.

        ``approval`` defaults to the stored session value. The overwrite set
        is applied in one edit before blocked members are disconnected, so a
        blocked user rejoining immediately is already denied.
        """
        self._ensure_initialized()
        if approval is None:
            approval = (await self.get_session(channel)).approval

        guild = channel.guild
        blocked_ids = [
            user_id
            for user_id in await blocklist_repo.list_blocked_user_ids(owner.id)
            if user_id != owner.id
        ]
        blocked = [resolve_subject(guild, user_id) for user_id in blocked_ids]

        overwrites = compose_overwrites(
            inherited=get_own_category_overwrites(channel),
            everyone=guild.default_role,
            owner=owner,
            approval=approval,
            existing=channel.overwrites,
            blocked=blocked,
            member_permissions=member_permissions,
        )
        await discord_api.edit_channel(channel, overwrites=overwrites)
        await voice_repo.save_session(channel.id, owner.id, approval)
        self.logger.info(
            f"Reconciled channel (approval={approval}, blocked={len(blocked)})",
            extra={"channel_id": channel.id, "owner_id": owner.id},
        )

        blocked_set = set(blocked_ids)
        for member in list(channel.members):
            if member.id in blocked_set:
                await discord_api.disconnect_member(member)
                self.logger.info(
                    "Disconnected blocked member",
                    extra={"channel_id": channel.id, "user_id": member.id},
                )

        await self.approval.reconcile_waiting_channel(channel, blocked, approval)
        return overwrites

    async def block_users(
        self, actor: discord.Member, user_ids: Iterable[int]
    ) -> BlockEditResult:
        """
        Add ``user_ids`` to the actor's block list.

        The actor and members holding Move Members can't be blocked; ids that
        are already blocked are reported separately.
        """
        result = BlockEditResult()
        existing = set(await blocklist_repo.list_blocked_user_ids(actor.id))
        for user_id in dict.fromkeys(user_ids):
            if user_id in existing:
                result.already_blocked.append(user_id)
            elif await self._is_privileged(actor, user_id):
                result.privileged.append(user_id)
            else:
                result.blocked.append(user_id)
        if result.blocked:
            await blocklist_repo.add_blocked_users(actor.id, result.blocked)
        self.logger.info(
            f"Blocked {len(result.blocked)} of {result.requested} users",
            extra={"user_id": actor.id},
        )
        return result

    async def unblock_users(
        self, actor: discord.Member, user_ids: Iterable[int]
    ) -> list[int]:
        return await blocklist_repo.remove_blocked_users(actor.id, user_ids)

    async def _is_privileged(self, actor: discord.Member, user_id: int) -> bool:
        if user_id == actor.id:
            return True
        member = actor.guild.get_member(user_id)
        if member is None:
            try:
                member = await actor.guild.fetch_member(user_id)
            except discord.NotFound:
                return False
        return member.guild_permissions.move_members

    async def reset_channel_permissions(self, channel: discord.VoiceChannel) -> None:
        """Ownerless state: inherited overwrites only, no session, no waiting channel."""
        self._ensure_initialized()
        await discord_api.edit_channel(
            channel, overwrites=get_own_category_overwrites(channel)
        )
        await voice_repo.clear_session(channel.id)
        await self.approval.reconcile_waiting_channel(channel, [], False)

    async def reset_channel_to_default(self, channel: discord.VoiceChannel) -> None:
        """Full reset for an empty channel, including user limit and bitrate."""
        self._ensure_initialized()
        entry = self.config.get_channel_entry(channel.id)
        await discord_api.edit_channel(
            channel,
            overwrites=get_own_category_overwrites(channel),
            user_limit=entry.default_user_limit if entry else 0,
            bitrate=DEFAULT_BITRATE,
        )
        await voice_repo.clear_session(channel.id)
        await self.approval.reconcile_waiting_channel(channel, [], False)
        self.logger.info("Channel reset to default", extra={"channel_id": channel.id})
