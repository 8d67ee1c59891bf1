"""Workspace engine: devfile, folders, imports and reconciliation."""
