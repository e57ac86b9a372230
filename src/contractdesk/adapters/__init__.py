"""Infrastructure adapters for contractdesk."""
