"""An I/O multiplexer built on poll(2), for when nothing better is available."""

from __future__ import annotations

import logging
import select
import threading
from dataclasses import dataclass

_log = logging.getLogger(__name__)

NONE_EVENT = 0
READ_EVENT = select.POLLIN | select.POLLPRI
WRITE_EVENT = select.POLLOUT

NEW_INDEX = -1

_warning_lock = threading.Lock()
_warned = False


def _warn_once() -> None:
    global _warned
    with _warning_lock:
        if _warned:
            return
        _warned = True
    _log.warning("Creating a PollPoller. This poller is slow and should "
                 "only be used when no other pollers are available")


@dataclass(eq=False)
class PollableChannel:
    """A file descriptor with the events of interest and the events that fired.

    ``index`` is bookkeeping owned by the poller the channel is registered
    with; a fresh channel has ``index == -1``.
    """

    fd: int
    events: int = NONE_EVENT
    revents: int = 0
    index: int = NEW_INDEX

    def is_none_event(self) -> bool:
        """True if no events are of interest."""
        return self.events == NONE_EVENT

    def is_reading(self) -> bool:
        """True if read events are of interest."""
        return bool(self.events & READ_EVENT)

    def is_writing(self) -> bool:
        """True if write events are of interest."""
        return bool(self.events & WRITE_EVENT)

    def enable_reading(self) -> None:
        """Add read events to the events of interest."""
        self.events |= READ_EVENT

    def disable_reading(self) -> None:
        """Drop read events from the events of interest."""
        self.events &= ~READ_EVENT

    def enable_writing(self) -> None:
        """Add write events to the events of interest."""
        self.events |= WRITE_EVENT

    def disable_writing(self) -> None:
        """Drop write events from the events of interest."""
        self.events &= ~WRITE_EVENT

    def disable_all(self) -> None:
        """Clear the events of interest."""
        self.events = NONE_EVENT


@dataclass
class _PollFd:
    fd: int
    events: int


def _ignored(fd: int) -> int:
    return -fd - 1


class PollPoller:
    """Watches channels with poll(2).

    Each registered channel keeps its position in the poll list in
    ``index``; a channel with no events of interest stays in the list but
    is ignored until it is updated again or removed.
    """

    def __init__(self):
        _warn_once()
        self._pollfds: list[_PollFd] = []
        self._channels: dict[int, PollableChannel] = {}
        self._poll = select.poll()
        self._registered: set[int] = set()

    def poll(self, timeout_ms) -> list[PollableChannel]:
        """Wait up to ``timeout_ms`` (negative: forever); return active channels."""
        try:
            ready = self._poll.poll(timeout_ms)
        except OSError:
            _log.exception("PollPoller::poll()")
            return []
        if not ready:
            return []
        fired = {fd: revents for fd, revents in ready if revents > 0}
        active: list[PollableChannel] = []
        for pfd in self._pollfds:
            revents = fired.get(pfd.fd, 0) if pfd.fd >= 0 else 0
            if revents <= 0:
                continue
            channel = self._channels[pfd.fd]
            channel.revents = revents
            active.append(channel)
            if len(active) == len(fired):
                break
        return active

    def update_channel(self, channel) -> None:
        """Add a new channel or apply a registered channel's changed events."""
        if channel.fd < 0:
            raise ValueError(f"invalid file descriptor {channel.fd}")
        if channel.index < 0:
            if channel.fd in self._channels:
                raise ValueError(f"fd {channel.fd} is already registered")
            self._pollfds.append(_PollFd(channel.fd, channel.events))
            channel.index = len(self._pollfds) - 1
            self._channels[channel.fd] = channel
            self._register(channel.fd, channel.events)
            return

        self._check_registered(channel)
        pfd = self._pollfds[channel.index]
        if pfd.fd not in (channel.fd, _ignored(channel.fd)):
            raise ValueError(f"poll entry does not belong to fd {channel.fd}")
        pfd.fd = channel.fd
        pfd.events = channel.events
        if channel.is_none_event():
            pfd.fd = _ignored(channel.fd)
            self._unregister(channel.fd)
        else:
            self._register(channel.fd, channel.events)

    def remove_channel(self, channel) -> None:
        """Forget a channel whose events of interest have been cleared."""
        self._check_registered(channel)
        if not channel.is_none_event():
            raise ValueError("channel still has events of interest")
        idx = channel.index
        pfd = self._pollfds[idx]
        if pfd.fd != _ignored(channel.fd) or pfd.events != channel.events:
            raise ValueError(f"channel for fd {channel.fd} was not disabled "
                             "through update_channel")
        del self._channels[channel.fd]
        self._unregister(channel.fd)
        last = self._pollfds.pop()
        if idx < len(self._pollfds):
            self._pollfds[idx] = last
            moved_fd = last.fd if last.fd >= 0 else _ignored(last.fd)
            self._channels[moved_fd].index = idx
        channel.index = NEW_INDEX

    def _check_registered(self, channel: PollableChannel) -> None:
        if self._channels.get(channel.fd) is not channel:
            raise ValueError(f"channel for fd {channel.fd} is not registered")
        if not 0 <= channel.index < len(self._pollfds):
            raise ValueError(f"channel index {channel.index} out of range")

    def _register(self, fd: int, events: int) -> None:
        self._poll.register(fd, events)
        self._registered.add(fd)

    def _unregister(self, fd: int) -> None:
        if fd in self._registered:
            self._poll.unregister(fd)
            self._registered.discard(fd)