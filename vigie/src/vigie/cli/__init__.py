"""Vigie command line interface."""
