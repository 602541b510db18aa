import threading
import time

import pytest

from chanflow.chan import Chan, ChannelClosed
from chanflow.fanout import broadcast, split
from chanflow.node import _sink_node
from chanflow.options import buffered
from chanflow.pipeline import Config, new_pipeline
from chanflow.sources import from_iterable

TIMEOUT = 1.0


def _outlet(channel):
    """An unbuffered Chan mirroring channel, closed when the sink reading it finishes."""
    chan = Chan()

    def offer(node, value):
        while not node.quit.is_set():
            try:
                chan.send(value, timeout=0.002)
            except TimeoutError:
                continue
            return True
        return False

    node = _sink_node("Outlet", channel, lambda n: n.loop_input(0, lambda value: offer(n, value)))
    threading.Thread(target=lambda: (node.done.wait(), chan.close()), daemon=True).start()
    return chan


def started(fan, *args):
    """Fan [1, 2, 3] out with fan, start the pipeline and return it with one Chan per output."""
    pipeline = new_pipeline(Config(start_manually=True))
    chans = [_outlet(output) for output in fan(from_iterable(pipeline, [1, 2, 3]), 2, *args)]
    pipeline.start()
    return pipeline, chans


def test_split_sends_every_value_to_some_output():
    pipeline, chans = started(split)
    collected = [[] for _ in chans]

    def consume(chan, sink):
        for value in chan:
            time.sleep(0.01)
            sink.append(value)

    threads = [
        threading.Thread(target=consume, args=pair, daemon=True) for pair in zip(chans, collected)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(TIMEOUT)

    assert all(collected)
    assert sorted(value for sink in collected for value in sink) == [1, 2, 3]
    assert pipeline.wait(TIMEOUT)


@pytest.mark.parametrize("fan", [split, broadcast])
def test_fanout_exits_early_if_canceled(fan):
    pipeline, chans = started(fan)
    for chan in chans:
        chan.receive(timeout=TIMEOUT)
    pipeline.cancel(None)
    time.sleep(0.02)

    for chan in chans:
        with pytest.raises(ChannelClosed):
            chan.receive(timeout=TIMEOUT)
    assert pipeline.wait(TIMEOUT)


def test_broadcast_sends_all_values_to_each_output():
    pipeline, chans = started(broadcast)

    received = [[chan.receive(timeout=TIMEOUT) for chan in chans] for _ in range(3)]

    assert received == [[1, 1], [2, 2], [3, 3]]
    assert pipeline.wait(TIMEOUT)


def test_buffered_broadcast_lets_fast_consumer_run_ahead():
    pipeline, chans = started(broadcast, buffered(3))

    assert [list(chan) for chan in chans] == [[1, 2, 3], [1, 2, 3]]
    assert pipeline.wait(TIMEOUT)