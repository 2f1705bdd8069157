"""Notification domain: entities, errors and storage contracts."""
