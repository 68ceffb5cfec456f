"""Project version files."""
