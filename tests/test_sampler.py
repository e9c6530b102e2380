"""Unit tests for the counter-based random number generator.

Tests cover:
- Wang hash and LCG step against a pure Python reference
- Float range [0, 1) and uniformity
- Determinism of seeded streams
- Independence of streams for different pixels and samples
"""

import numpy as np
import taichi as ti

MASK = 0xFFFFFFFF


def reference_wang_hash(key: int) -> int:
    k = key & MASK
    k = (k ^ 61) ^ (k >> 16)
    k = (k * 9) & MASK
    k ^= k >> 4
    k = (k * 0x27D4EB2D) & MASK
    k ^= k >> 15
    return k


def reference_next_u32(state: int) -> tuple[int, int]:
    new_state = (state * 1664525 + 1013904223) & MASK
    return reference_wang_hash(new_state), new_state


class TestWangHash:
    """Tests for the integer hash."""

    def test_matches_reference(self):
        """Kernel hash equals the Python reference for assorted keys."""
        from pathtracer.core.sampler import wang_hash

        keys = [0, 1, 2, 61, 12345, 2**31 - 1, 2**31, 2**32 - 1]
        n = len(keys)
        inputs = ti.field(dtype=ti.u32, shape=n)
        outputs = ti.field(dtype=ti.u32, shape=n)
        for i, key in enumerate(keys):
            inputs[i] = key

        @ti.kernel
        def test_kernel():
            for i in range(n):
                outputs[i] = wang_hash(inputs[i])

        test_kernel()
        for i, key in enumerate(keys):
            assert int(outputs[i]) == reference_wang_hash(key)

    def test_seed_stream_matches_reference(self):
        """seed_stream is the cascaded hash of seed, pixel and sample."""
        from pathtracer.core.sampler import seed_stream

        result = ti.field(dtype=ti.u32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = seed_stream(
                ti.cast(42, ti.u32), ti.cast(7, ti.u32), ti.cast(3, ti.u32)
            )

        test_kernel()
        inner = reference_wang_hash(3)
        middle = reference_wang_hash(7 ^ inner)
        assert int(result[None]) == reference_wang_hash(42 ^ middle)


class TestNextValues:
    """Tests for state advance and float generation."""

    def test_next_u32_matches_reference(self):
        """A chain of draws follows the LCG + hash reference."""
        from pathtracer.core.sampler import next_u32

        n = 5
        outputs = ti.field(dtype=ti.u32, shape=n)
        states = ti.field(dtype=ti.u32, shape=n)

        @ti.kernel
        def test_kernel():
            s = ti.cast(99, ti.u32)
            for i in ti.static(range(n)):
                bits, s = next_u32(s)
                outputs[i] = bits
                states[i] = s

        test_kernel()

        state = 99
        for i in range(n):
            bits, state = reference_next_u32(state)
            assert int(outputs[i]) == bits
            assert int(states[i]) == state

    def test_next_float_uses_top_24_bits(self):
        """next_float returns (bits >> 8) / 2^24."""
        from pathtracer.core.sampler import next_float

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            value, _ = next_float(ti.cast(2024, ti.u32))
            result[None] = value

        test_kernel()
        bits, _ = reference_next_u32(2024)
        assert float(result[None]) == (bits >> 8) / 2.0**24

    def test_next_float_range_and_mean(self):
        """Floats lie in [0, 1) and average close to 0.5."""
        from pathtracer.core.sampler import next_float, seed_stream

        n = 20000
        values = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                s = seed_stream(ti.cast(5, ti.u32), ti.cast(k, ti.u32), ti.cast(0, ti.u32))
                v, s = next_float(s)
                values[k] = v

        test_kernel()
        arr = values.to_numpy()
        assert np.all(arr >= 0.0)
        assert np.all(arr < 1.0)
        assert abs(arr.mean() - 0.5) < 0.02

    def test_random_range_bounds(self):
        """random_range stays inside [low, high)."""
        from pathtracer.core.sampler import random_range, seed_stream

        n = 5000
        values = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                s = seed_stream(ti.cast(11, ti.u32), ti.cast(k, ti.u32), ti.cast(1, ti.u32))
                v, s = random_range(s, -3.0, 2.0)
                values[k] = v

        test_kernel()
        arr = values.to_numpy()
        assert np.all(arr >= -3.0)
        assert np.all(arr < 2.0)
        # Both halves of the interval are populated
        assert arr.min() < -2.0
        assert arr.max() > 1.0


class TestStreams:
    """Tests for stream determinism and independence."""

    def test_same_inputs_same_sequence(self):
        """Two runs with the same seed produce identical values."""
        from pathtracer.core.sampler import next_float, seed_stream

        n = 64
        values = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel(seed: ti.u32):
            for k in range(n):
                s = seed_stream(seed, ti.cast(k, ti.u32), ti.cast(0, ti.u32))
                v, s = next_float(s)
                values[k] = v

        test_kernel(1234)
        first = values.to_numpy().copy()
        test_kernel(1234)
        second = values.to_numpy()
        assert np.array_equal(first, second)

        test_kernel(4321)
        assert not np.array_equal(first, values.to_numpy())

    def test_streams_differ_per_sample(self):
        """Different sample indices of one pixel start from different states."""
        from pathtracer.core.sampler import seed_stream

        n = 256
        states = ti.field(dtype=ti.u32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                states[k] = seed_stream(
                    ti.cast(0, ti.u32), ti.cast(17, ti.u32), ti.cast(k, ti.u32)
                )

        test_kernel()
        assert len(set(states.to_numpy().tolist())) == n

    def test_normalize_seed_wraps(self):
        """Host-side seeds are reduced modulo 2^32."""
        from pathtracer.core.sampler import normalize_seed

        assert normalize_seed(0) == 0
        assert normalize_seed(2**32 + 5) == 5
        assert normalize_seed(-1) == 2**32 - 1
