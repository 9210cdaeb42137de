"""Kernel: validation, error taxonomy and command execution."""
