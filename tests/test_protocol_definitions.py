#!/usr/bin/env python3
"""
Unit tests for the shared frame codec.
"""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from chat_relay.common.constants import MessageTypes
from chat_relay.common.protocol_definitions import (
    ChatMessage, create_chat_message, create_error_message, decode_message,
    encode_message, encode_text, get_message_type
)


class TestProtocolDefinitions(unittest.TestCase):
    """Test cases for frame builders and codec."""

    def test_chat_message_frame(self):
        """A ChatMessage renders as a 'chat message' frame without its origin."""
        frame = ChatMessage("hi", origin_id="abc").to_frame()
        self.assertEqual(frame, {"type": "chat message", "payload": "hi"})
        self.assertEqual(frame, create_chat_message("hi"))

    def test_error_frame(self):
        self.assertEqual(
            create_error_message("Malformed JSON"),
            {"type": MessageTypes.ERROR, "message": "Malformed JSON"}
        )

    def test_stream_encoding_is_one_line(self):
        """Stream frames end with exactly one newline, even for multi-line payloads."""
        data = encode_message(create_chat_message("line one\nline two"))
        self.assertTrue(data.endswith(b'\n'))
        self.assertEqual(data.count(b'\n'), 1)
        self.assertEqual(decode_message(data)['payload'], "line one\nline two")

    def test_text_encoding_has_no_delimiter(self):
        text = encode_text(create_chat_message("ws"))
        self.assertIsInstance(text, str)
        self.assertFalse(text.endswith('\n'))

    def test_decode_accepts_bytes_and_str(self):
        self.assertEqual(decode_message(b'{"type": "chat message", "payload": "a"}\n')['payload'], "a")
        self.assertEqual(decode_message('{"type": "chat message", "payload": "b"}')['payload'], "b")

    def test_decode_rejects_malformed_frames(self):
        """Invalid JSON, non-objects and invalid UTF-8 all raise ValueError."""
        for bad in (b'not json', b'[1, 2]', b'"text"', b'\xff\xfe{}'):
            with self.subTest(frame=bad):
                with self.assertRaises(ValueError):
                    decode_message(bad)

    def test_message_type_lookup(self):
        self.assertEqual(get_message_type({"type": "chat message"}), MessageTypes.CHAT_MESSAGE)
        self.assertEqual(get_message_type({}), '')
        self.assertEqual(get_message_type({"type": 7}), '')


if __name__ == '__main__':
    unittest.main()
