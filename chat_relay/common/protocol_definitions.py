"""
Protocol definitions for the chat relay.

This module defines the message structures and the frame codec shared by
client and server. A frame is a JSON object with a ``type`` field; the only
chat frame is ``{"type": "chat message", "payload": ...}``. The payload is
opaque and is relayed exactly as received.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from chat_relay.common.constants import ENCODING, FRAME_DELIMITER, MessageTypes


@dataclass
class ChatMessage:
    """One inbound chat message, alive for a single dispatch."""
    payload: Any
    origin_id: Optional[str] = None

    def to_frame(self) -> Dict[str, Any]:
        """Render the message as it goes out on the wire."""
        return create_chat_message(self.payload)


def create_chat_message(payload: Any) -> Dict[str, Any]:
    """Create a chat message."""
    return {
        "type": MessageTypes.CHAT_MESSAGE,
        "payload": payload
    }


def create_error_message(message: str) -> Dict[str, Any]:
    """Create an error message."""
    return {
        "type": MessageTypes.ERROR,
        "message": message
    }


def encode_message(message: Dict[str, Any]) -> bytes:
    """Encode a frame for a stream transport (newline-delimited JSON)."""
    return json.dumps(message).encode(ENCODING) + FRAME_DELIMITER


def encode_text(message: Dict[str, Any]) -> str:
    """Encode a frame for a message-oriented transport (one JSON text)."""
    return json.dumps(message)


def decode_message(data: Union[bytes, str]) -> Dict[str, Any]:
    """
    Decode one frame.

    Raises ``ValueError`` (``json.JSONDecodeError`` is a subclass) when the
    data is not valid UTF-8 JSON or is not a JSON object.
    """
    if isinstance(data, bytes):
        data = data.decode(ENCODING)
    message = json.loads(data.strip())
    if not isinstance(message, dict):
        raise ValueError("Frame is not a JSON object")
    return message


def get_message_type(message: Dict[str, Any]) -> str:
    """Return the frame type, or an empty string when it is missing or invalid."""
    msg_type = message.get('type', '')
    if not isinstance(msg_type, str):
        return ''
    return msg_type
