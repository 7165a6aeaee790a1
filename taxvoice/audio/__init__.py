"""Speech backends implementing the recognition and synthesis services."""
