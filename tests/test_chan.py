import threading

import pytest

from chanflow.chan import Chan, ChannelClosed


def test_buffered_send_and_receive_in_order():
    ch = Chan(3)
    for v in ("a", "b", "c"):
        ch.send(v, timeout=0.1)
    assert len(ch) == 3
    assert [ch.receive() for _ in range(3)] == ["a", "b", "c"]


@pytest.mark.parametrize(
    "capacity, prefill, operation",
    [
        (1, [1], lambda ch: ch.send(2, timeout=0.01)),
        (0, [], lambda ch: ch.send(1, timeout=0.01)),
        (2, [], lambda ch: ch.receive(timeout=0.01)),
    ],
    ids=["full-buffer-send", "unbuffered-send", "empty-receive"],
)
def test_blocked_operations_time_out(capacity, prefill, operation):
    ch = Chan(capacity)
    for value in prefill:
        ch.send(value)
    with pytest.raises(TimeoutError):
        operation(ch)
    assert len(ch) == len(prefill)


def test_unbuffered_send_completes_with_receiver():
    ch = Chan()
    sender = threading.Thread(target=lambda: ch.send(42, timeout=1))
    sender.start()
    received = ch.receive(timeout=1)
    sender.join()
    assert received == 42
    assert len(ch) == 0


def test_close_keeps_buffered_values():
    ch = Chan(2)
    ch.send(1)
    ch.close()
    assert ch.closed
    assert ch.receive() == 1


@pytest.mark.parametrize(
    "operation",
    [lambda ch: ch.receive(), lambda ch: ch.send(5), lambda ch: ch.close()],
    ids=["receive", "send", "close"],
)
def test_operations_on_closed_channel_raise(operation):
    ch = Chan(2)
    ch.close()
    with pytest.raises(ChannelClosed):
        operation(ch)
    assert ch.closed
    assert len(ch) == 0


def test_iteration_until_closed():
    ch = Chan()
    values = list(range(10))

    def produce():
        for v in values:
            ch.send(v)
        ch.close()

    threading.Thread(target=produce).start()
    assert list(ch) == values