"""CLI subcommands for safenpm."""
