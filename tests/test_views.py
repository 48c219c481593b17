"""
Component views: stable ids and hand-off to the router.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from helpers import panel_commands as pc
from helpers.views import ControlPanelView, RequestCardView, TransferPickerView, dispatch_component
from tests.factories import make_interaction


def custom_ids(view):
    return {item.custom_id for item in view.children}


def routed_interaction():
    router = SimpleNamespace(dispatch=AsyncMock())
    client = SimpleNamespace(services=SimpleNamespace(router=router))
    return make_interaction(client=client), router


class TestPersistentViews:
    @pytest.mark.asyncio
    async def test_control_panel_is_persistent(self):
        view = ControlPanelView()

        assert view.is_persistent()
        assert custom_ids(view) == {
            pc.BLOCK_SELECT_ID,
            pc.UNBLOCK_SELECT_ID,
            pc.MEMBER_SELECT_ID,
            pc.KICK_BUTTON_ID,
            pc.MUTE_BUTTON_ID,
            pc.UNMUTE_BUTTON_ID,
            pc.SHOW_BLOCKS_BUTTON_ID,
            pc.TOGGLE_APPROVAL_BUTTON_ID,
            pc.OPERATION_SELECT_ID,
        }

    @pytest.mark.asyncio
    async def test_request_card_is_persistent(self):
        view = RequestCardView()

        assert view.is_persistent()
        assert custom_ids(view) == {
            pc.APPROVE_BUTTON_ID,
            pc.REJECT_BUTTON_ID,
            pc.REQUEST_BLOCK_BUTTON_ID,
        }

    @pytest.mark.asyncio
    async def test_transfer_picker_times_out(self):
        view = TransferPickerView()

        assert view.timeout == 180
        assert not view.is_persistent()


class TestDispatchComponent:
    @pytest.mark.asyncio
    async def test_parsed_command_goes_to_router(self):
        interaction, router = routed_interaction()

        await dispatch_component(interaction, pc.KICK_BUTTON_ID)

        router.dispatch.assert_awaited_once_with(interaction, pc.KickSelected())

    @pytest.mark.asyncio
    async def test_incomplete_payload_is_acknowledged(self):
        interaction, router = routed_interaction()

        await dispatch_component(interaction, pc.BLOCK_SELECT_ID, [])

        router.dispatch.assert_not_awaited()
        assert interaction.response.is_done()
        assert interaction.replies == []
