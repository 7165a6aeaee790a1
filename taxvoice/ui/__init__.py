"""Terminal front end for the conversation controller."""
