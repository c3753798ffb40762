"""Shell adapters — command execution and privileged file operations."""
