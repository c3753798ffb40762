"""Provisioning engine — the apply and remove pipelines."""
