"""
Typed commands for control panel and request card interactions.

Raw component data (custom_id, selected values, modal fields) is parsed once
into one of the dataclasses below. Handlers receive a typed command and never
look at custom_id strings themselves.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

# Control panel
BLOCK_SELECT_ID = "vc:block"
UNBLOCK_SELECT_ID = "vc:unblock"
MEMBER_SELECT_ID = "vc:members"
KICK_BUTTON_ID = "vc:kick"
MUTE_BUTTON_ID = "vc:mute"
UNMUTE_BUTTON_ID = "vc:unmute"
SHOW_BLOCKS_BUTTON_ID = "vc:show_blocks"
TOGGLE_APPROVAL_BUTTON_ID = "vc:toggle_approval"
OPERATION_SELECT_ID = "vc:operation"

# Operation menu values
OPERATION_USER_LIMIT = "user_limit"
OPERATION_BITRATE = "bitrate"
OPERATION_TRANSFER = "transfer_owner"

# Follow-up components
TRANSFER_SELECT_ID = "vc:transfer"
USER_LIMIT_MODAL_ID = "vc:limit_modal"
USER_LIMIT_INPUT_ID = "vc:limit_input"
BITRATE_MODAL_ID = "vc:bitrate_modal"
BITRATE_INPUT_ID = "vc:bitrate_input"

# Request card
APPROVE_BUTTON_ID = "vc:request:approve"
REJECT_BUTTON_ID = "vc:request:reject"
REQUEST_BLOCK_BUTTON_ID = "vc:request:block"


@dataclass(frozen=True)
class OpenLimitModal:
    pass


@dataclass(frozen=True)
class OpenBitrateModal:
    pass


@dataclass(frozen=True)
class OpenTransferPicker:
    pass


@dataclass(frozen=True)
class SubmitUserLimit:
    raw_value: str


@dataclass(frozen=True)
class SubmitBitrate:
    raw_value: str


@dataclass(frozen=True)
class TransferOwnership:
    target_id: int


@dataclass(frozen=True)
class BlockUsers:
    user_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class UnblockUsers:
    user_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ShowBlockList:
    pass


@dataclass(frozen=True)
class SelectMembers:
    user_ids: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class KickSelected:
    pass


@dataclass(frozen=True)
class MuteSelected:
    pass


@dataclass(frozen=True)
class UnmuteSelected:
    pass


@dataclass(frozen=True)
class ToggleApproval:
    pass


@dataclass(frozen=True)
class ApproveRequest:
    pass


@dataclass(frozen=True)
class RejectRequest:
    block: bool = False


PanelCommand = (
    OpenLimitModal
    | OpenBitrateModal
    | OpenTransferPicker
    | SubmitUserLimit
    | SubmitBitrate
    | TransferOwnership
    | BlockUsers
    | UnblockUsers
    | ShowBlockList
    | SelectMembers
    | KickSelected
    | MuteSelected
    | UnmuteSelected
    | ToggleApproval
    | ApproveRequest
    | RejectRequest
)

COMMAND_TYPES: tuple[type, ...] = PanelCommand.__args__

_BUTTONS = {
    KICK_BUTTON_ID: KickSelected(),
    MUTE_BUTTON_ID: MuteSelected(),
    UNMUTE_BUTTON_ID: UnmuteSelected(),
    SHOW_BLOCKS_BUTTON_ID: ShowBlockList(),
    TOGGLE_APPROVAL_BUTTON_ID: ToggleApproval(),
    APPROVE_BUTTON_ID: ApproveRequest(),
    REJECT_BUTTON_ID: RejectRequest(block=False),
    REQUEST_BLOCK_BUTTON_ID: RejectRequest(block=True),
}

_OPERATIONS = {
    OPERATION_USER_LIMIT: OpenLimitModal(),
    OPERATION_BITRATE: OpenBitrateModal(),
    OPERATION_TRANSFER: OpenTransferPicker(),
}


def _ids(values: Sequence[object]) -> tuple[int, ...]:
    result = []
    for value in values:
        # User selects hand back Member/User objects; tests may pass raw ids
        raw = getattr(value, "id", value)
        try:
            result.append(int(raw))
        except (TypeError, ValueError):
            continue
    return tuple(dict.fromkeys(result))


def parse_interaction(
    custom_id: str | None,
    values: Sequence[object] = (),
    fields: Mapping[str, str] | None = None,
) -> PanelCommand | None:
    """
    Parse raw interaction data into a command.

    Returns:
        The command, or None for ids this bot does not own or payloads that
        are incomplete (for example a user select with nothing selected).
    """
    if not custom_id:
        return None
    fields = fields or {}

    if custom_id in _BUTTONS:
        return _BUTTONS[custom_id]

    if custom_id == OPERATION_SELECT_ID:
        return _OPERATIONS.get(str(values[0])) if values else None

    if custom_id == BLOCK_SELECT_ID:
        ids = _ids(values)
        return BlockUsers(ids) if ids else None
    if custom_id == UNBLOCK_SELECT_ID:
        ids = _ids(values)
        return UnblockUsers(ids) if ids else None
    if custom_id == MEMBER_SELECT_ID:
        return SelectMembers(_ids(values))
    if custom_id == TRANSFER_SELECT_ID:
        ids = _ids(values)
        return TransferOwnership(ids[0]) if ids else None

    if custom_id == USER_LIMIT_MODAL_ID:
        return SubmitUserLimit(fields.get(USER_LIMIT_INPUT_ID, "").strip())
    if custom_id == BITRATE_MODAL_ID:
        return SubmitBitrate(fields.get(BITRATE_INPUT_ID, "").strip())

    return None
