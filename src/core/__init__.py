"""Core domain package for chatledger.

Core holds the message model, the error taxonomy and the state protocol
that keeps room state inside the chat transcript. It never touches HTTP or
HTML directly, keeping the state logic portable across chat backends.
"""
