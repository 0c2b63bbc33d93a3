# Based on Taneli Hukkinen's https://github.com/hukkin/tomli-w/blob/master/benchmark/run.py

from __future__ import annotations

import functools
import io
import math
import timeit
from collections.abc import Callable

import shpcodec


def benchmark(
    name: str,
    run_count: int,
    func: Callable,
    col_widths: tuple,
    compare_to: float | None = None,
) -> float:
    placeholder = "Running..."
    print(f"{name:>{col_widths[0]}} | {placeholder}", end="", flush=True)
    time_taken = timeit.timeit(func, number=run_count)
    print("\b" * len(placeholder), end="")
    time_suffix = " s"
    print(f"{time_taken:{col_widths[1] - len(time_suffix)}.3g}{time_suffix}", end="")
    print()
    return time_taken


def make_points(n: int) -> list[shpcodec.Shape]:
    return [shpcodec.PointZ(i, -i, i / 2, i) for i in range(n)]


def make_polylines(n: int, size: int = 200) -> list[shpcodec.Shape]:
    return [
        shpcodec.PolylineM(
            [(j, math.sin(j / 10) + i, j) for j in range(size)],
            [(j, math.cos(j / 10) - i, None) for j in range(size)],
        )
        for i in range(n)
    ]


def make_polygons(n: int, size: int = 500) -> list[shpcodec.Shape]:
    polys = []
    for i in range(n):
        # Clockwise circle
        outer = [
            (i + math.cos(-2 * math.pi * j / size), math.sin(-2 * math.pi * j / size))
            for j in range(size)
        ]
        hole = shpcodec.PolygonRing.inner([(x / 2, y / 2) for x, y in outer])
        polys.append(shpcodec.Polygon(outer, hole))
    return polys


def write_shapes(shapes: list[shpcodec.Shape]) -> tuple[bytes, bytes]:
    shp, shx = io.BytesIO(), io.BytesIO()
    with shpcodec.Writer(shp=shp, shx=shx) as w:
        w.write_shapes(shapes)
    return shp.getvalue(), shx.getvalue()


def read_shapes(data: tuple[bytes, bytes]) -> None:
    shp, shx = data
    with shpcodec.Reader(shp=io.BytesIO(shp), shx=io.BytesIO(shx)) as r:
        for __shape in r.iterShapes():
            pass


SHAPES = {
    "Points 100k": make_points(100_000),
    "PolylinesM 2k": make_polylines(2_000),
    "Polygons 1k": make_polygons(1_000),
}

FILES = {name: write_shapes(shapes) for name, shapes in SHAPES.items()}

reader_benchmarks = [
    functools.partial(
        benchmark,
        name=f"Read {test_name}",
        func=functools.partial(read_shapes, data=data),
    )
    for test_name, data in FILES.items()
]

writer_benchmarks = [
    functools.partial(
        benchmark,
        name=f"Write {test_name}",
        func=functools.partial(write_shapes, shapes=shapes),
    )
    for test_name, shapes in SHAPES.items()
]


def run(run_count: int, benchmarks: list[Callable[[], None]]) -> None:
    col_widths = (22, 10)
    col_head = ("parser", "exec time", "performance (more is better)")
    print(f"Running benchmarks {run_count} times:")
    print("-" * col_widths[0] + "---" + "-" * col_widths[1])
    print(f"{col_head[0]:>{col_widths[0]}} | {col_head[1]:>{col_widths[1]}}")
    print("-" * col_widths[0] + "-+-" + "-" * col_widths[1])
    for benchmark in benchmarks:
        benchmark(  # type: ignore [call-arg]
            run_count=run_count,
            col_widths=col_widths,
        )


if __name__ == "__main__":
    print("Reader tests:")
    run(1, reader_benchmarks)  # type: ignore [arg-type]
    print("\n\nWriter tests:")
    run(1, writer_benchmarks)  # type: ignore [arg-type]
