"""
Unit tests for the duration allocator.
Covers the sum invariant, positivity, count preservation and configuration validation.
"""
import math
import random
import unittest

from allocation import AllocationDegenerate, allocate_durations, round_durations, validate_allocation


class TestAllocateDurations(unittest.TestCase):
    def test_zero_count_returns_empty(self):
        self.assertEqual(allocate_durations(0, 160, 5), [])

    def test_negative_count_rejected(self):
        with self.assertRaises(ValueError):
            allocate_durations(-1, 160, 5)

    def test_count_preserved(self):
        rng = random.Random(1)
        for count in (1, 2, 7, 50, 300):
            self.assertEqual(len(allocate_durations(count, 160, 5, rng=rng)), count)

    def test_sum_equals_target_without_variation(self):
        rng = random.Random(42)
        for count in (1, 3, 10, 99):
            durations = allocate_durations(count, 160, 0, rng=rng)
            self.assertTrue(math.isclose(sum(durations), 160.0, rel_tol=1e-9), sum(durations))

    def test_sum_within_variation(self):
        for seed in range(50):
            rng = random.Random(seed)
            durations = allocate_durations(20, 160, 5, rng=rng)
            total = sum(durations)
            self.assertGreaterEqual(total, 155.0 - 1e-9)
            self.assertLessEqual(total, 165.0 + 1e-9)

    def test_sum_matches_effective_total_draw(self):
        # the first draw of the rng is the total offset
        seed = 7
        offset = random.Random(seed).uniform(-5, 5)
        durations = allocate_durations(12, 160, 5, rng=random.Random(seed))
        self.assertTrue(math.isclose(sum(durations), 160 + offset, rel_tol=1e-9))

    def test_all_positive(self):
        for seed in range(50):
            rng = random.Random(seed)
            for count in (1, 5, 40):
                self.assertTrue(all(d > 0 for d in allocate_durations(count, 160, 5, rng=rng)))

    def test_positive_when_even_share_is_tiny(self):
        # 1 hour over 50 entries: the even share (0.02h) is far below the -0.5 jitter
        for seed in range(50):
            durations = allocate_durations(50, 1.0, 0.5, rng=random.Random(seed))
            self.assertTrue(all(d > 0 for d in durations))

    def test_single_entry_gets_everything(self):
        durations = allocate_durations(1, 8, 0, rng=random.Random(3))
        self.assertEqual(len(durations), 1)
        self.assertAlmostEqual(durations[0], 8.0)

    def test_default_rng_is_used_when_none_given(self):
        durations = allocate_durations(4, 10, 1)
        self.assertEqual(len(durations), 4)
        self.assertTrue(9.0 - 1e-9 <= sum(durations) <= 11.0 + 1e-9)


class TestRounding(unittest.TestCase):
    def test_rounded_sum_within_tolerance(self):
        for seed in range(20):
            durations = allocate_durations(30, 160, 0, rng=random.Random(seed))
            rounded = round_durations(durations)
            self.assertTrue(all(round(d, 2) == d for d in rounded))
            self.assertLessEqual(abs(sum(rounded) - 160.0), 30 * 0.005 + 1e-9)


class TestValidateAllocation(unittest.TestCase):
    def test_valid_configuration(self):
        validate_allocation(160, 5)
        validate_allocation(160, 0)

    def test_variation_not_smaller_than_total(self):
        with self.assertRaises(AllocationDegenerate):
            validate_allocation(5, 5)
        with self.assertRaises(AllocationDegenerate):
            validate_allocation(5, 10)

    def test_non_positive_total(self):
        with self.assertRaises(AllocationDegenerate):
            validate_allocation(0, 0)

    def test_negative_variation(self):
        with self.assertRaises(AllocationDegenerate):
            validate_allocation(160, -1)

    def test_is_value_error(self):
        self.assertTrue(issubclass(AllocationDegenerate, ValueError))


if __name__ == '__main__':
    unittest.main()
