"""CLI command groups, registered on the root group in ``vhostctl.main``."""
