"""Searchlight — grounded answers from live web search results."""

__version__ = "0.1.0"
