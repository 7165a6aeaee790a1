"""Conversation orchestration engine."""
