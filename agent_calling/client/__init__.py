"""Terminal-side collaborators for the conversation controller."""
