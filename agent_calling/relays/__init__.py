"""Server-side relays to the hosted chat and speech APIs."""
