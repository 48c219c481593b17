"""
Voice channel status carrying the owner tag.
"""

import pytest

from services.panel_service import compose_voice_status
from tests.factories import seed_session


def sent_statuses(bot):
    return [call.kwargs["json"]["status"] for call in bot.http.request.await_args_list]


class TestComposeVoiceStatus:
    @pytest.mark.parametrize(
        "current, expected",
        [
            (None, "(👑Alice)"),
            ("", "(👑Alice)"),
            ("Raid night", "Raid night (👑Alice)"),
            ("Raid night (👑Bob)", "Raid night (👑Alice)"),
            ("Raid night (👑Alice)", None),
        ],
    )
    def test_compose(self, current, expected):
        assert compose_voice_status(current, "Alice") == expected


class TestOwnerStatus:
    @pytest.mark.asyncio
    async def test_owner_tag_set_on_claim(self, services, vc):
        await services.panel.set_owner_status(vc.channel, vc.alice)

        route = services.bot.http.request.await_args.args[0]
        assert route.method == "PUT"
        assert route.path.endswith("/voice-status")
        assert sent_statuses(services.bot) == ["(👑Alice)"]
        assert services.panel.status_cache.get(vc.channel.id) == "(👑Alice)"

    @pytest.mark.asyncio
    async def test_unchanged_status_is_not_resent(self, services, vc):
        services.panel.status_cache.set(vc.channel.id, "(👑Alice)")

        await services.panel.set_owner_status(vc.channel, vc.alice)

        services.bot.http.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_event_reapplies_owner_tag(self, services, vc):
        await seed_session(vc.channel.id, vc.alice.id)

        await services.panel.on_status_event(vc.channel.id, "Chill")

        assert sent_statuses(services.bot) == ["Chill (👑Alice)"]

    @pytest.mark.asyncio
    async def test_status_event_without_owner_only_caches(self, services, vc):
        await services.panel.on_status_event(vc.channel.id, "Chill")

        services.bot.http.request.assert_not_awaited()
        assert services.panel.status_cache.get(vc.channel.id) == "Chill"

    @pytest.mark.asyncio
    async def test_cleared_status_dropped_from_cache(self, services, vc):
        services.panel.status_cache.set(vc.channel.id, "Chill")

        await services.panel.on_status_event(vc.channel.id, None)

        assert services.panel.status_cache.get(vc.channel.id) is None

    @pytest.mark.asyncio
    async def test_unmanaged_channel_ignored(self, services, vc):
        await services.panel.on_status_event(vc.unmanaged.id, "Chill")

        assert vc.unmanaged.id not in services.panel.status_cache
        services.bot.http.request.assert_not_awaited()


class TestControlPanel:
    @pytest.mark.asyncio
    async def test_panel_posted_once_then_edited(self, services, vc):
        await services.panel.update_control_panel()
        await services.panel.update_control_panel()

        assert len(vc.panel.messages) == 1
        assert len(vc.panel.messages[0].edits) == 1
