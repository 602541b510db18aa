import threading

import pytest

from chanflow.node import _linear_node, _new_node, _sink_node, _source_node, pooled
from chanflow.options import concurrent
from chanflow.pipeline import Config, new, new_pipeline


def _manual():
    return new_pipeline(Config(start_manually=True))


def _emit(values):
    def worker(node):
        for v in values:
            if not node.send(v):
                return
    return worker


def _collect(into, lock=None):
    lock = lock or threading.Lock()

    def add(v):
        with lock:
            into.append(v)
        return True

    def worker(node):
        node.loop_input(0, add)
    return worker


def test_channel_accepts_single_subscriber():
    _, out = _source_node("S", _manual(), _emit([1]))
    _sink_node("A", out, _collect([]))
    with pytest.raises(RuntimeError):
        _sink_node("B", out, _collect([]))


def test_values_flow_through_linear_node():
    pipeline = new()
    got = []
    _, out = _source_node("S", pipeline, _emit([1, 2, 3]))

    def double(node):
        node.loop_input(0, lambda v: node.send(v * 2))

    _, mid = _linear_node("Double", out, double)
    _sink_node("Sink", mid, _collect(got))
    assert pipeline.wait(1)
    assert pipeline.error() is None
    assert got == [2, 4, 6]


def test_node_structure():
    source, out = _source_node("S", _manual(), _emit([]))
    sink = _sink_node("Sink", out, _collect([]))
    assert source.is_source and not source.is_sink
    assert sink.is_sink and not sink.is_source
    assert source.children == [sink]


@pytest.mark.parametrize("options", [[], [concurrent(1)]])
def test_pooled_single_returns_same_worker(options):
    worker = _collect([])
    assert pooled(worker, options) is worker


def test_pooled_runs_several_workers():
    pipeline = new()
    got = []
    calls = []
    collect = _collect(got)

    def worker(node):
        calls.append(1)
        collect(node)

    values = list(range(20))
    _, out = _source_node("S", pipeline, _emit(values))
    _sink_node("Sink", out, pooled(worker, [concurrent(3)]))
    assert pipeline.wait(1)
    assert len(calls) == 3
    assert sorted(got) == values


def test_pooled_failure_cancels_pipeline():
    pipeline = new()

    def boom(node):
        raise ValueError("worker broke")

    _, out = _source_node("S", pipeline, _emit([1, 2]))
    _sink_node("Sink", out, pooled(boom, [concurrent(2)]))
    assert pipeline.wait(1)
    assert "worker broke" in str(pipeline.error())


def test_shared_output_splits_values():
    pipeline = _manual()
    values = list(range(10))
    _, out = _source_node("S", pipeline, _emit(values))

    def forward(node):
        node.loop_input(0, node.send)

    _, outputs = _new_node("Split", pipeline, [out], 2, forward, True)
    got, lock = [], threading.Lock()
    for output in outputs:
        _sink_node("Sink", output, _collect(got, lock))
    pipeline.start()
    assert pipeline.wait(1)
    assert sorted(got) == values


def test_cancel_stops_endless_source():
    pipeline = new()

    def endless(node):
        i = 0
        while node.send(i):
            i += 1

    source, out = _source_node("S", pipeline, endless)
    got = []
    _sink_node("Sink", out, _collect(got))
    pipeline.cancel(None)
    assert source.done.wait(1)
    assert pipeline.is_done()
    assert got == list(range(len(got)))