"""chainstore command-line interface."""
