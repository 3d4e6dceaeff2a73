"""BMAD command-line interface."""
