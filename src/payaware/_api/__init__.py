"""Per-endpoint request builders and response parsers."""
