"""
Client package for the chat relay.
"""
