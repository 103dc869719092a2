"""HTTP API for the notification inbox, settings and nudge runs."""
