import os
import select

import pytest

from trantor.poll_poller import (
    NEW_INDEX,
    READ_EVENT,
    WRITE_EVENT,
    PollableChannel,
    PollPoller,
)


@pytest.fixture
def pipes():
    created = []

    def make():
        r, w = os.pipe()
        created.append((r, w))
        return r, w

    yield make
    for r, w in created:
        os.close(r)
        os.close(w)


def test_readable_pipe_is_reported(pipes):
    r, w = pipes()
    poller = PollPoller()
    channel = PollableChannel(r)
    channel.enable_reading()
    poller.update_channel(channel)
    os.write(w, b"x")
    active = poller.poll(100)
    assert active == [channel]
    assert channel.revents & select.POLLIN


def test_nothing_ready_returns_empty(pipes):
    r, _ = pipes()
    poller = PollPoller()
    channel = PollableChannel(r, events=READ_EVENT)
    poller.update_channel(channel)
    assert poller.poll(0) == []


def test_new_channels_get_consecutive_indexes(pipes):
    poller = PollPoller()
    channels = [PollableChannel(pipes()[0], events=READ_EVENT)
                for _ in range(3)]
    for channel in channels:
        poller.update_channel(channel)
    assert [c.index for c in channels] == [0, 1, 2]


def test_writable_end_reported(pipes):
    _, w = pipes()
    poller = PollPoller()
    channel = PollableChannel(w, events=WRITE_EVENT)
    poller.update_channel(channel)
    active = poller.poll(100)
    assert active == [channel]
    assert channel.revents & select.POLLOUT


def test_disabled_channel_is_ignored(pipes):
    r, w = pipes()
    poller = PollPoller()
    channel = PollableChannel(r, events=READ_EVENT)
    poller.update_channel(channel)
    os.write(w, b"x")
    channel.disable_all()
    poller.update_channel(channel)
    assert poller.poll(0) == []
    channel.enable_reading()
    poller.update_channel(channel)
    assert poller.poll(100) == [channel]


def test_remove_moves_last_into_gap(pipes):
    poller = PollPoller()
    channels = [PollableChannel(pipes()[0], events=READ_EVENT)
                for _ in range(3)]
    for channel in channels:
        poller.update_channel(channel)
    middle = channels[1]
    middle.disable_all()
    poller.update_channel(middle)
    poller.remove_channel(middle)
    assert middle.index == NEW_INDEX
    assert channels[2].index == 1
    assert channels[0].index == 0


def test_removed_channel_can_be_added_again(pipes):
    r, w = pipes()
    poller = PollPoller()
    channel = PollableChannel(r, events=READ_EVENT)
    poller.update_channel(channel)
    channel.disable_all()
    poller.update_channel(channel)
    poller.remove_channel(channel)
    channel.enable_reading()
    poller.update_channel(channel)
    os.write(w, b"x")
    assert poller.poll(100) == [channel]
    assert channel.index == 0


def test_remove_requires_disabled_channel(pipes):
    r, _ = pipes()
    poller = PollPoller()
    channel = PollableChannel(r, events=READ_EVENT)
    poller.update_channel(channel)
    with pytest.raises(ValueError):
        poller.remove_channel(channel)


def test_remove_requires_update_after_disable(pipes):
    r, _ = pipes()
    poller = PollPoller()
    channel = PollableChannel(r, events=READ_EVENT)
    poller.update_channel(channel)
    channel.disable_all()
    with pytest.raises(ValueError):
        poller.remove_channel(channel)


def test_remove_unknown_channel_raises(pipes):
    r, _ = pipes()
    poller = PollPoller()
    with pytest.raises(ValueError):
        poller.remove_channel(PollableChannel(r))


def test_duplicate_fd_rejected(pipes):
    r, _ = pipes()
    poller = PollPoller()
    poller.update_channel(PollableChannel(r, events=READ_EVENT))
    with pytest.raises(ValueError):
        poller.update_channel(PollableChannel(r, events=READ_EVENT))


def test_negative_fd_rejected():
    poller = PollPoller()
    with pytest.raises(ValueError):
        poller.update_channel(PollableChannel(-1, events=READ_EVENT))


def test_only_ready_channels_reported_in_list_order(pipes):
    poller = PollPoller()
    pairs = [pipes() for _ in range(3)]
    channels = [PollableChannel(r, events=READ_EVENT) for r, _ in pairs]
    for channel in channels:
        poller.update_channel(channel)
    os.write(pairs[2][1], b"a")
    os.write(pairs[0][1], b"b")
    assert poller.poll(100) == [channels[0], channels[2]]


def test_channel_event_helpers():
    channel = PollableChannel(3)
    assert channel.is_none_event()
    channel.enable_reading()
    channel.enable_writing()
    assert channel.is_reading() and channel.is_writing()
    channel.disable_reading()
    assert not channel.is_reading() and channel.is_writing()
    channel.disable_writing()
    assert channel.is_none_event()