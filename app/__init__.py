"""Approval delegation service."""
