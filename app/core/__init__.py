"""Approval and delegation core."""
