import unittest

from numgate import functions
from numgate.db import InMemoryDbClient, UserRecord


class AddNumberTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def test_inserts_a_number(self):
        functions.add_number(self.db, 42)

        numbers = self.db.collect_numbers()
        self.assertEqual(len(numbers), 1)
        self.assertEqual(numbers[0].value, 42)

    def test_inserts_multiple_numbers_in_order(self):
        for value in (1, 2, 3):
            functions.add_number(self.db, value)

        self.assertEqual([n.value for n in self.db.collect_numbers()], [1, 2, 3])

    def test_duplicates_are_kept(self):
        functions.add_number(self.db, 7)
        functions.add_number(self.db, 7)
        self.assertEqual(len(self.db.collect_numbers()), 2)


class ListNumbersTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def test_empty_log(self):
        result = functions.list_numbers(self.db, 10)
        self.assertEqual(result.numbers, [])
        self.assertIsNone(result.viewer)

    def test_single_append_then_read(self):
        functions.add_number(self.db, 42)
        self.assertEqual(functions.list_numbers(self.db, 10).numbers, [42])

    def test_oldest_first(self):
        for value in (10, 20, 30):
            functions.add_number(self.db, value)
        self.assertEqual(functions.list_numbers(self.db, 10).numbers, [10, 20, 30])

    def test_respects_count_limit(self):
        for value in (1, 2, 3, 4, 5):
            functions.add_number(self.db, value)
        self.assertEqual(functions.list_numbers(self.db, 3).numbers, [3, 4, 5])

    def test_count_zero_is_empty(self):
        functions.add_number(self.db, 100)
        self.assertEqual(functions.list_numbers(self.db, 0).numbers, [])

    def test_returns_min_of_count_and_size(self):
        values = [5, 4, 3, 2, 1]
        for value in values:
            functions.add_number(self.db, value)
        for count in range(0, 8):
            numbers = functions.list_numbers(self.db, count).numbers
            self.assertEqual(len(numbers), min(count, len(values)))
            self.assertEqual(numbers, values[len(values) - len(numbers):])

    def test_negative_count_rejected(self):
        with self.assertRaises(ValueError):
            functions.list_numbers(self.db, -1)

    def test_viewer_is_echoed(self):
        viewer = UserRecord(id="u1", email="ada@example.com", name="Ada")
        result = functions.list_numbers(self.db, 1, viewer)
        self.assertIs(result.viewer, viewer)


class MyActionTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()

    def test_appends_first(self):
        functions.add_number(self.db, 5)
        functions.add_number(self.db, 10)

        functions.my_action(self.db, 15, "test string")

        self.assertEqual([n.value for n in self.db.collect_numbers()], [5, 10, 15])

    def test_works_on_empty_log(self):
        functions.my_action(self.db, 99, "empty db test")

        numbers = self.db.collect_numbers()
        self.assertEqual(len(numbers), 1)
        self.assertEqual(numbers[0].value, 99)

    def test_second_is_not_persisted(self):
        functions.my_action(self.db, 1, "not stored")
        self.assertEqual([n.value for n in self.db.collect_numbers()], [1])

    def test_read_happens_before_append(self):
        calls = []
        original_list = self.db.list_recent_numbers
        original_add = self.db.add_number

        def record_list(count):
            calls.append("read")
            return original_list(count)

        def record_add(value):
            calls.append("append")
            return original_add(value)

        self.db.list_recent_numbers = record_list
        self.db.add_number = record_add

        functions.my_action(self.db, 3, "order")
        self.assertEqual(calls, ["read", "append"])


if __name__ == "__main__":
    unittest.main()
