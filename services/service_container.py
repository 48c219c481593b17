"""
Service Container

Central registry for all bot services providing dependency injection and service lifecycle management.
"""

from typing import TYPE_CHECKING, Optional

from utils.logging import get_logger

from .approval_service import ApprovalService
from .interaction_router import InteractionRouter
from .panel_service import PanelService
from .permission_engine import PermissionService
from .voice_service import VoiceService

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from config.config_loader import BotConfig


class ServiceContainer:
    """
    Central container for managing all bot services.

    The permission and approval services reference each other: reconciling
    a channel also reconciles its waiting channel, and approving a request
    reconciles the channel. Both are constructed first and wired before
    anything is initialized.
    """

    def __init__(self, config: "BotConfig", bot: Optional["Bot"] = None) -> None:
        self.logger = get_logger("services.container")
        self.config = config
        self.bot = bot
        self._permissions: PermissionService | None = None
        self._approval: ApprovalService | None = None
        self._panel: PanelService | None = None
        self._voice: VoiceService | None = None
        self._router: InteractionRouter | None = None
        self._initialized = False

    @property
    def permissions(self) -> PermissionService:
        """Get the permission reconciliation service."""
        if self._permissions is None:
            raise RuntimeError("PermissionService not initialized")
        return self._permissions

    @property
    def approval(self) -> ApprovalService:
        """Get the approval workflow service."""
        if self._approval is None:
            raise RuntimeError("ApprovalService not initialized")
        return self._approval

    @property
    def panel(self) -> PanelService:
        """Get the control panel service."""
        if self._panel is None:
            raise RuntimeError("PanelService not initialized")
        return self._panel

    @property
    def voice(self) -> VoiceService:
        """Get the voice service."""
        if self._voice is None:
            raise RuntimeError("VoiceService not initialized")
        return self._voice

    @property
    def router(self) -> InteractionRouter:
        """Get the interaction router."""
        if self._router is None:
            raise RuntimeError("InteractionRouter not initialized")
        return self._router

    def get_all_services(self) -> list:
        """Get all constructed services in initialization order."""
        return [
            service
            for service in (
                self._permissions,
                self._approval,
                self._panel,
                self._voice,
                self._router,
            )
            if service is not None
        ]

    async def initialize(self) -> None:
        """Initialize all services in dependency order."""
        if self._initialized:
            self.logger.warning("ServiceContainer already initialized")
            return

        try:
            self.logger.info("Initializing services")

            self._permissions = PermissionService(self.config, self.bot)
            self._approval = ApprovalService(self.config, self.bot)
            self._permissions.approval = self._approval
            self._approval.permissions = self._permissions

            self._panel = PanelService(self.config, self.bot, self._permissions)
            self._voice = VoiceService(
                self.config,
                self.bot,
                permissions=self._permissions,
                approval=self._approval,
                panel=self._panel,
            )
            self._router = InteractionRouter(self.config, self.bot, voice=self._voice)

            for service in self.get_all_services():
                await service.initialize()
                self.logger.debug(f"{type(service).__name__} initialized")

            self._initialized = True
            self.logger.info("All services initialized successfully")

        except Exception as e:
            self.logger.exception("Failed to initialize services", exc_info=e)
            raise

    async def cleanup(self) -> None:
        """Clean up all services in reverse dependency order."""
        if not self._initialized:
            return

        self.logger.info("Cleaning up services")

        for service in reversed(self.get_all_services()):
            await service.shutdown()

        self._router = None
        self._voice = None
        self._panel = None
        self._approval = None
        self._permissions = None

        self._initialized = False
        self.logger.info("Services cleaned up")
