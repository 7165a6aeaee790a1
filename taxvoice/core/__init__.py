"""Shared configuration, logging and static tables."""
