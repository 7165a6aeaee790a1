"""Collaborator protocols and the AI query service."""
