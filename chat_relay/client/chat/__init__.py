"""
Chat module for client-side messaging functionality.
"""

from .chat_client import ChatClient

__all__ = ['ChatClient']
