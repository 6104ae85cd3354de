"""Sub-command registrations."""
