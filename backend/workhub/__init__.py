"""Workhub backend: workspaces, projects, invites and access control."""
