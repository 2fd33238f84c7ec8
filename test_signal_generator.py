# test_signal_generator.py
import math
import unittest

from core.signal_generator import (
    LCG_MODULUS,
    RandomState,
    db_to_linear,
    generate_sample,
)


def _run(seed: int, gain_db: float, dynamics: float, n: int = 200):
    rng = RandomState.from_seed(seed)
    out = []
    for i in range(n):
        sample, rng = generate_sample(rng, seed, gain_db, dynamics, i * 0.016)
        out.append(sample)
    return out, rng


class TestRandomState(unittest.TestCase):
    def test_first_draw_follows_lcg(self) -> None:
        value, nxt = RandomState(1).draw()
        self.assertEqual(nxt.value, 1015568748)
        self.assertEqual(value, 1015568748 / LCG_MODULUS)

    def test_draw_does_not_mutate(self) -> None:
        rng = RandomState(42)
        rng.draw()
        self.assertEqual(rng.value, 42)

    def test_values_stay_in_unit_interval(self) -> None:
        rng = RandomState.from_seed(7)
        for _ in range(1000):
            v, rng = rng.draw()
            self.assertGreaterEqual(v, 0.0)
            self.assertLess(v, 1.0)

    def test_from_seed_wraps_to_32_bits(self) -> None:
        self.assertEqual(RandomState.from_seed(LCG_MODULUS + 5).value, 5)


class TestGenerateSample(unittest.TestCase):
    def test_same_inputs_reproduce_bit_identical_stream(self) -> None:
        a, rng_a = _run(3, -6.0, 0.8)
        b, rng_b = _run(3, -6.0, 0.8)
        self.assertEqual(a, b)
        self.assertEqual(rng_a, rng_b)

    def test_seed_changes_stream(self) -> None:
        a, _ = _run(1, -6.0, 0.6)
        b, _ = _run(2, -6.0, 0.6)
        self.assertNotEqual(a, b)

    def test_sample_clamped_to_one(self) -> None:
        samples, _ = _run(1, 12.0, 1.0, n=500)
        self.assertTrue(all(s <= 1.0 for s in samples))
        self.assertIn(1.0, samples)

    def test_no_dynamics_means_two_draws_and_no_spike(self) -> None:
        rng = RandomState(99)
        sample, nxt = generate_sample(rng, 1, -6.0, 0.0, 0.25)

        _, after_gate = rng.draw()
        noise, after_noise = after_gate.draw()
        self.assertEqual(nxt, after_noise)

        t = 0.25 + 1 * 0.1
        tone = 0.25 * (0.5 + 0.5 * math.sin(2 * math.pi * 2 * t))
        expected = db_to_linear(-6.0) * (0.2 + tone + 0.1 * noise)
        self.assertAlmostEqual(sample, expected, places=12)

    def test_spike_consumes_three_draws_and_adds_scaled_burst(self) -> None:
        dynamics = 1.0
        rng = next(
            RandomState(v) for v in range(10000)
            if RandomState(v).draw()[0] < 0.08 * dynamics
        )
        sample, nxt = generate_sample(rng, 1, -12.0, dynamics, 0.5)

        _, after_gate = rng.draw()
        size, after_size = after_gate.draw()
        noise, after_noise = after_size.draw()
        self.assertEqual(nxt, after_noise)

        t = 0.5 + 1 * 0.1
        tone = 0.25 * (0.5 + 0.5 * math.sin(2 * math.pi * 2 * t))
        spike = (0.6 + 0.4 * size) * dynamics
        expected = db_to_linear(-12.0) * (0.2 + tone + spike + 0.1 * noise)
        self.assertLess(expected, 1.0)
        self.assertAlmostEqual(sample, expected, places=12)

    def test_absurd_gain_saturates_instead_of_raising(self) -> None:
        sample, _ = generate_sample(RandomState(5), 1, 7000.0, 0.6, 0.0)
        self.assertEqual(sample, 1.0)
        self.assertEqual(db_to_linear(7000.0), math.inf)

    def test_db_to_linear(self) -> None:
        self.assertAlmostEqual(db_to_linear(0.0), 1.0)
        self.assertAlmostEqual(db_to_linear(-20.0), 0.1)


if __name__ == "__main__":
    unittest.main()
