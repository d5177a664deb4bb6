"""HTTP route factories."""

from .setup import create_setup_router
from .voice import create_voice_router

__all__ = ['create_setup_router', 'create_voice_router']
