"""Core — models, configuration, services, and the provisioning engine."""
