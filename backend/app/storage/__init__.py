"""Object storage for task attachments."""
