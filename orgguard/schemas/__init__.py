"""Typed records exchanged between the store, services and API."""
