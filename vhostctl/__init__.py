"""vhostctl — local nginx + PHP-FPM virtual host provisioning."""

__version__ = "0.1.0"
