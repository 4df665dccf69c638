"""
Cyber News Bot - Post cybersecurity headlines from RSS feeds to a webhook.

A Python application that polls a fixed set of RSS/Atom feeds, keeps
entries relevant to cybersecurity and publishes the newest unseen ones
to a Discord-style webhook.
"""

__version__ = "1.0.0"
