"""genoprot subcommands."""
