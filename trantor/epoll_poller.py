"""An I/O multiplexer built on epoll(7)."""

from __future__ import annotations

import logging
import select

from trantor.poll_poller import PollableChannel

_log = logging.getLogger(__name__)

NEW_INDEX = -1
ADDED_INDEX = 1
DELETED_INDEX = 2

INITIAL_EVENT_LIST_SIZE = 16

_ADD, _MOD, _DEL = "add", "mod", "del"


class EpollPoller:
    """Watches channels with epoll.

    A channel's ``index`` records whether it is new, added to the epoll set,
    or deleted from it while still known to the poller.
    """

    def __init__(self):
        epoll = getattr(select, "epoll", None)
        if epoll is None:
            raise OSError("epoll is not available on this platform")
        self._epoll = epoll()
        self._channels: dict[int, PollableChannel] = {}
        self._event_list_size = INITIAL_EVENT_LIST_SIZE

    @property
    def event_list_size(self) -> int:
        """How many events one call to ``poll`` can return."""
        return self._event_list_size

    @property
    def closed(self) -> bool:
        """True once the epoll instance has been closed."""
        return self._epoll.closed

    def poll(self, timeout_ms) -> list[PollableChannel]:
        """Wait up to ``timeout_ms`` (negative: forever); return active channels."""
        timeout = -1 if timeout_ms < 0 else timeout_ms / 1000
        try:
            ready = self._epoll.poll(timeout, self._event_list_size)
        except OSError:
            _log.exception("EpollPoller::poll()")
            return []
        active: list[PollableChannel] = []
        for fd, events in ready:
            channel = self._channels.get(fd)
            if channel is None:
                continue
            channel.revents = events
            active.append(channel)
        if len(ready) == self._event_list_size:
            self._event_list_size *= 2
        return active

    def update_channel(self, channel) -> None:
        """Add a channel or apply its changed events of interest."""
        if channel.fd < 0:
            raise ValueError(f"invalid file descriptor {channel.fd}")
        index = channel.index
        if index in (NEW_INDEX, DELETED_INDEX):
            if index == NEW_INDEX:
                if channel.fd in self._channels:
                    raise ValueError(f"fd {channel.fd} is already registered")
                self._channels[channel.fd] = channel
            else:
                self._check_known(channel)
            channel.index = ADDED_INDEX
            self._update(_ADD, channel)
            return

        self._check_known(channel)
        if index != ADDED_INDEX:
            raise ValueError(f"unexpected channel index {index}")
        if channel.is_none_event():
            self._update(_DEL, channel)
            channel.index = DELETED_INDEX
        else:
            self._update(_MOD, channel)

    def remove_channel(self, channel) -> None:
        """Forget a channel whose events of interest have been cleared."""
        self._check_known(channel)
        if not channel.is_none_event():
            raise ValueError("channel still has events of interest")
        index = channel.index
        if index not in (ADDED_INDEX, DELETED_INDEX):
            raise ValueError(f"unexpected channel index {index}")
        del self._channels[channel.fd]
        if index == ADDED_INDEX:
            self._update(_DEL, channel)
        channel.index = NEW_INDEX

    def close(self) -> None:
        """Close the epoll instance."""
        self._epoll.close()

    def __enter__(self) -> EpollPoller:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _check_known(self, channel: PollableChannel) -> None:
        if self._channels.get(channel.fd) is not channel:
            raise ValueError(f"channel for fd {channel.fd} is not registered")

    def _update(self, operation: str, channel: PollableChannel) -> None:
        try:
            if operation == _ADD:
                self._epoll.register(channel.fd, channel.events)
            elif operation == _MOD:
                self._epoll.modify(channel.fd, channel.events)
            else:
                self._epoll.unregister(channel.fd)
        except OSError as exc:
            _log.debug("epoll_ctl %s fd=%d failed: %s", operation, channel.fd,
                       exc)