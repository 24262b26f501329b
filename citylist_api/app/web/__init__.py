"""Server rendered HTML pages and well-known files."""
