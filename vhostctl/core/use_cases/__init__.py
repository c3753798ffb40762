"""Use cases — the glue between the CLI and the engine."""
