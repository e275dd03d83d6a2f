# cachebench

A collection of small, self-contained benchmarks that show how data layout,
access order and work distribution affect running time. Each benchmark builds
its data, times a few variants of the same computation and prints the results
in milliseconds (the sphere benchmark in nanoseconds, the elements benchmark in
seconds per test).

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Commands

| Command | What it measures | Options |
| --- | --- | --- |
| `cachebench-jagged` | Five jagged array layouts (`NaiveJaggedArray`, `JaggedArrayAuxLengths`, `ConstrainedJaggedArray`, `CompactedJaggedArray`, `CompactedJaggedArrayAuxRowStart`): full sums and random access, with the bytes an equivalent native layout would take | `--seed`, `--scales`, `--iteration-divisor` |
| `cachebench-permuted` | Summing through a shuffled index list, a pre-permuted copy, and shuffled rows of several lengths | `--seed`, `--scales`, `--iteration-divisor` |
| `cachebench-strided` | Matrix multiplication with `Matrix2D` before and after transposing the right-hand operand | `--scales`, `--iteration-divisor` |
| `cachebench-access` | Row-major, column-major and element-wise updates of nested and flat cubic grids | `--iterations`, `--sizes` |
| `cachebench-data-parallelism` | Element maps (level 2), or filter-and-count and one-dimensional convolution (level 3): in-place loop, rebuilt list and thread pool | `--level`, `--element-count`, `--iterations`, `--convolution-element-count`, `--convolution-iterations`, `--filter-sizes`, `--seed` |
| `cachebench-message-passing` | A worker thread and the main thread exchanging tasks and results over queues, polling with pauses | `--max-work`, `--master-wait`, `--worker-wait`, `--seed` |
| `cachebench-threads` | Detached, joined and scoped threads printing numbered lines | `--threads`, `--repetitions`, `--wait` |
| `cachebench-locks` | Chunked doubling and a heavier map done single-threaded, on a thread pool, element-wise on a pool, one thread per chunk, and through a lock-guarded task queue | `--element-count`, `--iterations`, `--threads`, `--chunk-size` |
| `cachebench-parallelism` | The same strategies in place, plus threads claiming chunks from a shared counter, with adjustable complexity and early-escape probability | `--double-element-count`, `--map-element-count`, `--iterations`, `--threads`, `--chunk-size`, `--escape-probability`, `--complexity`, `--seed`, and `--[no-]single-thread`, `--[no-]pool`, `--[no-]scoped-threads`, `--[no-]task-queue`, `--[no-]atomic-chunks` |
| `cachebench-elements` | Per-element function dispatch unsorted, sorted, bucketed and bucketed with direct calls, for enum, integer and eight-lane elements | `--element-count`, `--test-count`, `--seed` |
| `cachebench-sphere` | Ray–sphere intersection one ray at a time, over component arrays, and over groups of 4 and 8 lanes | `--test-count` |

Wait times are given in milliseconds. `--scales N` runs only the `N` smallest
problem sizes, and `--iteration-divisor D` divides every iteration count by `D`.
With the defaults the largest sizes take a long time and a good deal of memory.

## Using the pieces directly

The data structures and kernels behind the commands are importable, so they
can be measured or checked on your own inputs:

```python
from cachebench.jagged import CompactedJaggedArrayAuxRowStart

array = CompactedJaggedArrayAuxRowStart(3, [2, 0, 4])
print(array.sum())                 # 8.0: every element holds its row index
print(array.random_access(2, 1))   # 2.0
print(array.random_access(1, 0))   # None: row 1 is empty
print(array.memory_size())
```

```python
from cachebench.strided import Matrix2D, multiply

a = Matrix2D(2, 3, 1.0)
b = Matrix2D(3, 2, 1.0)
out = Matrix2D(2, 2, 0.0)
multiply(a, b, out)
print(out[0, 1])
```

```python
from cachebench.sphere import ray_sphere_intersect, F32_MAX

t = ray_sphere_intersect((0, 0, -5), (0, 0, 1), (0, 0, 0), 1.0)   # 4.0
miss = ray_sphere_intersect((0, 5, -5), (0, 0, 1), (0, 0, 0), 1.0)  # F32_MAX
```

Three further modules hold application settings and messages:

- `cachebench.config.Config` reads settings from a TOML file
  (`Config.from_path`, raising `ConfigError` for content it cannot use),
  renders them (`Config.to_toml`) and writes them to its `config_save_path`
  (`Config.save`).
- `cachebench.arguments.ApplicationArguments.from_argv` parses `--nogui` and
  `-c/--config FILE`; `has_valid_config_path` tells whether the file exists.
- `cachebench.messages` defines the commands `Resize`, `RotateTriangle`,
  `SetTriangleSpeed`, `KeyEvent` and `Shutdown`, the status `EngineShutdown`,
  the `Key` enum, and `command_for_key`, which maps a key name to its command
  (`"Escape"` to `Shutdown(True)`, unknown keys to `None`).

## What the package does not do

There is no window, renderer or engine loop. The settings, argument and
message modules describe a rotating-triangle application, but nothing in the
package opens a window, draws, or consumes the commands; they are data types
and parsers only, and there is no command that starts such an application.