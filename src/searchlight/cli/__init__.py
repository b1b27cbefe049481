"""Searchlight command-line interface."""
