"""CLI subcommands for Conduct."""
