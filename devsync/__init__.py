"""devsync - project reconciliation engine for cloud development workspaces."""
