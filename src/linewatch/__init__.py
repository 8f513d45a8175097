"""Poll a directory and report per-file line count changes."""
