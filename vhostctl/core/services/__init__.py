"""Services — validation, hosts file, vhost configs, fallback chains, reloads."""
