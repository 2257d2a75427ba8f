"""Deployated: CI/CD workflow generation and deployment for GitHub repositories."""

__version__ = "0.1.0"
