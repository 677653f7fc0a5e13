"""HTTP server exposing the relays and the browser page."""
