import threading

from chanflow.node import _sink_node, _source_node
from chanflow.pipeline import Canceled, Config, new, new_pipeline


def _slow_source(values, delay):
    def worker(node):
        for v in values:
            if node.quit.wait(delay):
                return
            if not node.send(v):
                return
    return worker


def _collect(into):
    def worker(node):
        node.loop_input(0, lambda v: into.append(v) or True)
    return worker


def test_pipeline_done_when_context_done():
    ctx = threading.Event()
    pipeline = new_pipeline(Config(context=ctx))
    _, out = _source_node("S", pipeline, _slow_source([1, 2, 3], 0.1))
    _sink_node("ToList", out, _collect([]))

    assert not pipeline.wait(0.01)
    assert not pipeline.is_done()

    ctx.set()
    assert pipeline.wait(0.1)
    assert pipeline.is_done()
    assert isinstance(pipeline.error(), Canceled)


def test_pipeline_recovers_from_failure_and_includes_traceback():
    pipeline = new_pipeline(Config())
    _, out = _source_node("S", pipeline, _slow_source([1, 2, 3], 0))

    def explode(node):
        node.loop_input(0, lambda v: (_ for _ in ()).throw(RuntimeError("panic")))

    _sink_node("ForEach", out, explode)

    assert pipeline.wait(1)
    message = str(pipeline.error())
    assert "panic" in message
    assert "explode" in message


def test_completion_leaves_no_error():
    pipeline = new()
    got = []
    _, out = _source_node("S", pipeline, _slow_source([1, 2, 3], 0))
    _sink_node("ToList", out, _collect(got))
    assert pipeline.wait(1)
    assert pipeline.error() is None
    assert got == [1, 2, 3]


def test_manual_start():
    pipeline = new_pipeline(Config(start_manually=True))
    got = []
    _, out = _source_node("S", pipeline, _slow_source([1, 2], 0))
    _sink_node("ToList", out, _collect(got))
    assert not pipeline.wait(0.05)
    assert got == []
    pipeline.start()
    pipeline.start()
    assert pipeline.wait(1)
    assert got == [1, 2]


def test_cancel_keeps_first_error():
    pipeline = new()
    first = ValueError("first")
    pipeline.cancel(first)
    pipeline.cancel(ValueError("second"))
    assert pipeline.is_done()
    assert pipeline.error() is first


def test_context_is_exposed():
    ctx = threading.Event()
    assert new(ctx).context() is ctx