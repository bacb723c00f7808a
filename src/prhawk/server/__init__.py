"""Webhook server for PRHawk."""

from prhawk.server.app import create_app

__all__ = ["create_app"]
