"""In-memory conversation state."""
