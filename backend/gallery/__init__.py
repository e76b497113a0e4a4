"""Prompt gallery backend."""
