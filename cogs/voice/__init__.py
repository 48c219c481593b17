"""
Voice Package

Gateway event listeners for the custom voice channels.
"""

from .events import VoiceEvents

__all__ = ["VoiceEvents"]
