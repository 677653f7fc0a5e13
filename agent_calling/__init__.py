"""
AI Agent Calling - voice conversations with a hosted AI agent.

A browser page captures speech, a chat relay forwards the transcript to a
hosted language model, and a speech relay turns the reply back into audio.
"""

__version__ = "1.0.0"
