# hypermine

Client-side building blocks for a hyperbolic voxel world simulation. None of
them needs a graphics device, and each one can be used and tested by itself.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `hypermine.ring_alloc`

`RingAlloc` keeps track of a ring of contiguous allocations of varying size.
The allocations can be freed in any order. `alloc(capacity, size)` returns
`(offset, AllocId)`, or `None` when the ring has no room for the request.
`free(id)` marks an allocation as freed. Its space comes back only once every
allocation made before it has also been freed. Freeing an id the ring does not
know raises `ValueError`.

### `hypermine.condition`

`Condition` holds the wakers of tasks that wait on one condition. A waker is
any callable that takes no arguments. `register(waker, state)` records the
waker at most once per generation for a given `WaitState`. `notify()` starts a
new generation and calls every waker that was recorded. The `waiting` property
gives the number of recorded wakers.

### `hypermine.staging`

`StagingBuffer(capacity)` is a circular byte buffer for short-lived
allocations, built on `RingAlloc` and `Condition`.

- `await buffer.alloc(size)` waits until there is room and then returns a
  `StagingAlloc`.
- It returns `None` if `size` is larger than `capacity()`.
- It raises `ValueError` if `size` is negative.

A `StagingAlloc` has a writable `data` memoryview and the methods `offset()`
and `size()`. `release()` gives the space back and wakes waiting allocations.
The allocation can also be used as a context manager, which releases it on
exit. Holding on to an allocation blocks later allocations once the buffer
wraps around to it.

### `hypermine.metrics`

`Histogram` records non-negative integers, and `value_at_quantile(q)` gives
exact quantiles. `Recorder.record(key, seconds)` stores a duration, in
nanoseconds, in the histogram for that key, and `histogram(key)` returns it.
`report()` logs the 25th, 50th and 75th percentiles and the maximum of every
key, and returns them as a list of `MetricReport`.

### `hypermine.loader`

`Loader(ctx)` runs loads on a background event loop. A loadable is any object
with a `load(ctx)` method, which may be plain or async.

- `load(description, loadable)` returns an `Asset` handle.
- `drive()` collects the loads that have finished.
- `get(asset)` returns the loaded value, or `None` while the load is still in
  progress. An unknown handle raises `KeyError`.
- If a load fails, the error is logged and the value never arrives.

`make_queue(capacity)` returns a `WorkQueue` for streaming work:

- `load(item)` raises `QueueFull` when the queue is at capacity. The exception
  carries the item back in `.item`.
- `poll()` returns a finished result, or `None` if none is ready, and frees
  capacity.
- `close()` stops the queue. Results that are waiting, and results that arrive
  later, are cleaned up.

`Loader.close()` stops all loading. It then calls `cleanup(ctx)` on every
loaded value that has such a method. Both `Loader` and `WorkQueue` are context
managers.

### `hypermine.vector_bounds`

`project_to_plane(subject, normal, projection_direction, distance)` moves a
vector along a direction until its dot product with `normal` equals
`distance`. It raises `ValueError` if the direction is parallel to the plane.

`VectorBound(normal, projection_direction, front_facing)` is a one-sided
constraint with the methods `constrain_vector`, `check_vector` and
`constrained_with`.

`BoundedVectors(displacement, velocity=None)` applies bounds to a displacement
and, in the same way, to an optional velocity. It has the methods `add_bound`,
`add_temp_bound`, `clear_temp_bounds` and `scale_displacement`. When no
combination of bounds can be satisfied, both vectors become zero.

### `hypermine.prediction`

`PredictedMotion(initial_position, step)` predicts the character's motion for
inputs that are still on their way to the server. `step` is a function you
supply: `step(position, velocity, on_ground, input)` must return
`(position, velocity, on_ground)`.

- `push(input)` applies an input and returns its wrapping 16-bit generation
  tag.
- `reconcile(generation, position, velocity, on_ground)` takes the server's
  state, drops the inputs it already includes and replays the rest. A stale or
  repeated generation is ignored.

### `hypermine.local_character_controller`

This module provides `Quaternion`, `from_axis_angle`, `rotation_between`,
`face_towards` and `Position`.

`LocalCharacterController` handles the view orientation:

- `look_free` for free yaw, pitch and roll.
- `look_level` for first-person look, with pitch capped at straight up and
  straight down.
- `align_to_gravity` to make the view level.
- `horizontal_orientation` for the level direction to move in.
- `update_position` to take a new position and up vector.
- `oriented_position` for the view transform.
- `renormalize_orientation` to correct rounding drift.

## Example

```python
from hypermine.ring_alloc import RingAlloc

ring = RingAlloc()
start, first = ring.alloc(4, 3)    # start == 0
assert ring.alloc(4, 2) is None    # no room for two more units
start, second = ring.alloc(4, 1)   # start == 3
ring.free(first)
```

```python
from hypermine.local_character_controller import LocalCharacterController

controller = LocalCharacterController()
controller.look_level(0.5, -0.4)
controller.align_to_gravity()
view = controller.oriented_position()
```

## What this package does not do

The package has no renderer, window, network client or server, and it cannot
be started as a command. It has no world graph, collision checking or
character physics step. `PredictedMotion` relies on the `step` function you
pass to it, and `BoundedVectors` only applies the bounds you give it.