import unittest

from roulette_engine.core.exceptions import InvalidPocketError
from roulette_engine.core.pockets import (
    AMERICAN_WHEEL,
    BLACK_NUMBERS,
    DOUBLE_ZERO,
    EUROPEAN_WHEEL,
    RED_NUMBERS,
    ZERO,
    Pocket,
    color_of,
    get_wheel,
    is_zero,
)


class TestPocketColors(unittest.TestCase):

    def test_red_and_black_partition_the_numbers(self):
        self.assertEqual(len(RED_NUMBERS), 18)
        self.assertEqual(len(BLACK_NUMBERS), 18)
        self.assertFalse(RED_NUMBERS & BLACK_NUMBERS)
        self.assertEqual(RED_NUMBERS | BLACK_NUMBERS, set(range(1, 37)))

    def test_every_pocket_has_exactly_one_color(self):
        for wheel in (EUROPEAN_WHEEL, AMERICAN_WHEEL):
            for pocket in wheel.sequence:
                color = color_of(pocket)
                self.assertIn(color, ("green", "red", "black"))
                self.assertEqual(color == "green", is_zero(pocket))
                if color == "red":
                    self.assertIn(pocket.number, RED_NUMBERS)
                if color == "black":
                    self.assertIn(pocket.number, BLACK_NUMBERS)

    def test_known_colors(self):
        self.assertEqual(color_of(ZERO), "green")
        self.assertEqual(color_of(DOUBLE_ZERO), "green")
        self.assertEqual(color_of(Pocket(7)), "red")
        self.assertEqual(color_of(Pocket(10)), "black")
        self.assertEqual(color_of(Pocket(19)), "red")


class TestPocketIdentity(unittest.TestCase):

    def test_double_zero_is_distinct_from_zero(self):
        self.assertNotEqual(ZERO, DOUBLE_ZERO)
        self.assertEqual(len({ZERO, DOUBLE_ZERO}), 2)
        self.assertEqual(str(DOUBLE_ZERO), "00")
        self.assertEqual(str(ZERO), "0")

    def test_parse(self):
        self.assertEqual(Pocket.parse("00"), DOUBLE_ZERO)
        self.assertEqual(Pocket.parse("0"), ZERO)
        self.assertEqual(Pocket.parse(17), Pocket(17))
        self.assertEqual(Pocket.parse(" 36 "), Pocket(36))
        self.assertIs(Pocket.parse(DOUBLE_ZERO), DOUBLE_ZERO)

    def test_parse_rejects_garbage(self):
        for value in ("37", "-1", "abc", "", None, 1.5, True):
            with self.assertRaises(InvalidPocketError):
                Pocket.parse(value)

    def test_only_zero_can_be_double_zero(self):
        with self.assertRaises(InvalidPocketError):
            Pocket(5, double_zero=True)


class TestWheels(unittest.TestCase):

    def test_european_wheel(self):
        self.assertEqual(EUROPEAN_WHEEL.pocket_count, 37)
        self.assertEqual(EUROPEAN_WHEEL.pockets, {Pocket(n) for n in range(37)})
        self.assertFalse(EUROPEAN_WHEEL.has_double_zero)
        self.assertNotIn(DOUBLE_ZERO, EUROPEAN_WHEEL)

    def test_american_wheel(self):
        self.assertEqual(AMERICAN_WHEEL.pocket_count, 38)
        self.assertEqual(
            AMERICAN_WHEEL.pockets, {Pocket(n) for n in range(37)} | {DOUBLE_ZERO}
        )
        self.assertTrue(AMERICAN_WHEEL.has_double_zero)

    def test_index_of_follows_the_clockwise_sequence(self):
        self.assertEqual(EUROPEAN_WHEEL.index_of(ZERO), 0)
        self.assertEqual(EUROPEAN_WHEEL.index_of(Pocket(32)), 1)
        self.assertEqual(EUROPEAN_WHEEL.index_of(Pocket(26)), 36)
        self.assertEqual(AMERICAN_WHEEL.index_of(DOUBLE_ZERO), 19)
        for wheel in (EUROPEAN_WHEEL, AMERICAN_WHEEL):
            for i, pocket in enumerate(wheel.sequence):
                self.assertEqual(wheel.index_of(pocket), i)

    def test_index_of_unknown_pocket(self):
        with self.assertRaises(InvalidPocketError):
            EUROPEAN_WHEEL.index_of(DOUBLE_ZERO)

    def test_get_wheel(self):
        self.assertIs(get_wheel("European"), EUROPEAN_WHEEL)
        self.assertIs(get_wheel("american"), AMERICAN_WHEEL)
        with self.assertRaises(ValueError):
            get_wheel("french")


if __name__ == "__main__":
    unittest.main()
