"""
Constants and protocol definitions shared by client and server.
"""
