"""FastAPI webhook for chat bridges."""

from price_relay.api.app import create_app

__all__ = ["create_app"]
