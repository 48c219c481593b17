"""
Services package for the custom voice channel bot.

Services hold the bot's behaviour: permission reconciliation, the approval
workflow, the control panel, membership transitions and interaction routing.
"""

from .approval_service import ApprovalService
from .base import BaseService
from .interaction_router import InteractionRouter
from .panel_service import PanelService
from .permission_engine import PermissionService
from .service_container import ServiceContainer
from .voice_service import VoiceService

__all__ = [
    "ApprovalService",
    "BaseService",
    "InteractionRouter",
    "PanelService",
    "PermissionService",
    "ServiceContainer",
    "VoiceService",
]
