"""Conversation controller and its collaborator interfaces."""
