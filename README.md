# chanflow

chanflow builds concurrent data pipelines from small operators joined by
channels. Every operator runs in its own thread. A pipeline coordinates them:
when it is cancelled, when its context is set, or when an operator raises,
every operator stops and the pipeline records the error.

## Installation

```
pip install chanflow
```

To run the test suite:

```
pip install "chanflow[test]"
pytest
```

## Concepts

- **Pipeline** (`chanflow.pipeline`): the coordinator. Create one with
  `new(ctx)` or `new_pipeline(Config(...))`. `Config` has two fields:
  `context`, an object with a `wait(timeout)` method such as a
  `threading.Event`, whose setting cancels the pipeline; and
  `start_manually`. By default a pipeline starts by itself as soon as its
  first sink operator is created. With `Config(start_manually=True)` it waits
  until `pipeline.start()` is called. Operators created after the start are
  started at once.
- **Channel** (`chanflow.node`): the output of an operator and the input of
  the next one. A channel feeds exactly one operator; attaching a second one
  raises `RuntimeError`.
- **Chan** (`chanflow.chan`): a plain thread-safe channel. `Chan()` is
  unbuffered (a send finishes only when a receiver takes the value);
  `Chan(n)` holds up to `n` values. It has `send(value, timeout=None)`,
  `receive(timeout=None)`, `close()`, `len()` and iteration until closed.
  Timeouts raise `TimeoutError`. Receiving from a closed, empty `Chan`,
  sending to a closed one, or closing it twice raises `ChannelClosed`.
  Use a `Chan` to feed values into a pipeline (`from_chan`) or to read values
  out of one (`to_chan`).

## Operators

| Module                | Operators                                                                                   |
|-----------------------|---------------------------------------------------------------------------------------------|
| `chanflow.sources`    | `from_chan`, `from_iterable`, `from_range` (both ends inclusive), `from_generator`          |
| `chanflow.filters`    | `filter_values`, `skip`, `take`, `distinct`                                                 |
| `chanflow.transform`  | `map_values`, `flat_map`, `batch`, `wrap`                                                   |
| `chanflow.combine`    | `merge`, `concat`                                                                           |
| `chanflow.fanout`     | `split`, `broadcast`                                                                        |
| `chanflow.utility`    | `buffer`, `tap`, `interval`                                                                 |
| `chanflow.sinks`      | `for_each`, `reduce`, `to_list`, `to_dict`, `to_chan`, `last`, `count`, `any_match`, `all_match`, `none_match` |

Notes on a few of them:

- `from_generator(pipeline, f)` sends `f(0)`, `f(1)`, ... without end, until
  the pipeline stops or its consumer goes away.
- `skip` and `take` raise `ValueError` for a negative count. `merge` and
  `concat` raise `ValueError` when given no channels.
- `batch(channel, size, timeout)` emits lists of values; `timeout` is in
  seconds, and a `size` or `timeout` of 0 leaves that limit off. A timeout
  with nothing collected emits an empty list.
- `interval(channel, f)` waits `f(value)` seconds after sending each value
  before sending the next.
- `flat_map(channel, mapper)` expects `mapper` to return a `Channel`, usually
  built on the same pipeline.

Sinks hand back their result through a one-slot `Chan` once all input has been
consumed, as soon as the answer is known (`any_match`, `all_match` and
`none_match` stop reading at the first decisive value), or when the pipeline
is cancelled. `reduce(channel, reducer, initial=None)` folds from `initial`.
`last` closes its result without a value when the input was empty.
`for_each` returns a `threading.Event` that is set when it finishes.
`to_chan` returns an unbuffered `Chan` that closes when the input is done.
After a failure a result may be partial, so check `pipeline.error()`.

## Options

Options from `chanflow.options` are passed as extra positional arguments to
the operators that accept them:

- `concurrent(n)`: run the operator's function on `n` threads
  (`filter_values`, `map_values`, `flat_map`, `tap`, `for_each`). Output order is
  then unspecified.
- `ordered(size)`: together with `concurrent`, keep the input order on the
  output of `filter_values`, `map_values` and `tap`, letting up to `size`
  results wait for earlier ones.
- `buffered(size)`: give an operator's outputs a buffer of `size` values
  (`split`, `broadcast`, `map_values`, `flat_map`), so a slow consumer does
  not hold up the producer or the other outputs.
- `keep_first()` / `keep_last()`: which value `to_dict` keeps when two values
  share a key. The default is `keep_first()`.

## Example

```python
from chanflow.pipeline import new
from chanflow.sources import from_range
from chanflow.filters import filter_values
from chanflow.transform import map_values
from chanflow.sinks import to_list
from chanflow.options import concurrent, ordered

pipeline = new(None)

odd = filter_values(from_range(pipeline, 1, 10), lambda i: i % 2 == 1)
labelled = map_values(odd, lambda i: f"{i}A", concurrent(4), ordered(4))
result = to_list(labelled)

print(result.receive())   # ['1A', '3A', '5A', '7A', '9A']
pipeline.wait(1.0)
print(pipeline.error())   # None
```

## Cancellation and errors

- `pipeline.cancel(err)` stops every operator. Passing `None` stops without
  recording an error.
- If the pipeline's context is set, the pipeline is cancelled with a
  `Canceled` error.
- If an operator's function raises, the pipeline is cancelled and
  `pipeline.error()` is a `RuntimeError` describing the exception, traceback
  included.
- `pipeline.is_done()` tells whether the pipeline has finished, successfully or
  not; `pipeline.wait(timeout)` blocks until it has and returns whether it did.

## Items

`chanflow.item.Item` is a frozen dataclass holding a `value`, an `error` and a
`ctx` that later operators may use. `wrap(channel)` turns each value into an
`Item` with only the value set; `value_item`, `error_item` and `item` build
them directly.

## What chanflow does not do

chanflow is a library only: it has no command-line program. Operators run on
threads, not on an asyncio event loop, and values live only in memory; nothing
is persisted.