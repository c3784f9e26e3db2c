"""Bilibili favourites API package."""

from .client import BilibiliClient, Credentials
from .collector import ResourceCollector

__all__ = ["BilibiliClient", "Credentials", "ResourceCollector"]
