"""
Protocol definition for notification backends.

Defines the common interface that all notifiers must implement.
"""

from typing import Protocol, runtime_checkable

from cyber_news_bot.filters import FeedItem


@runtime_checkable
class Notifier(Protocol):
    """
    Protocol defining the interface for notification backends.

    The @runtime_checkable decorator allows using isinstance() checks
    against this protocol for structural typing validation.
    """

    async def send_item(self, item: FeedItem) -> None:
        """
        Deliver a feed item as a notification.

        Parameters
        ----------
        item : FeedItem
            The item to send.

        Raises
        ------
        Exception
            Any delivery failure; callers decide whether the run continues.
        """
        ...

    async def close(self) -> None:
        """Close the notifier and release any resources."""
        ...
