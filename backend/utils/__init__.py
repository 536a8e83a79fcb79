"""Shared helpers for the chat relay."""
