"""
Módulo de gerenciamento de sessões de formulário.
Suporta tanto InMemoryFormSessionManager quanto RedisFormSessionManager.
"""

from .redis_session_manager import RedisFormSessionManager
from ..core.session_manager import InMemoryFormSessionManager

__all__ = ["RedisFormSessionManager", "InMemoryFormSessionManager"]
