"""The lazycalc language: parsing, module resolution, sessions and the interactive shell."""
