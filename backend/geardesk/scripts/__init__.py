"""Offline maintenance scripts (``python -m geardesk.scripts.<name>``)."""
