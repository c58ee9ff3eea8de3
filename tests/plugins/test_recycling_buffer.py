"""
Tests for the Recycling Buffer Module
"""

import pytest
from tvp_benchmark.recycling_buffer import RecyclingBuffer


class TestRecyclingBuffer:
    """Round-robin behaviour of the parameter pool."""

    def test_peek_wraps_around(self):
        buffer = RecyclingBuffer([10, 20, 30])
        assert [buffer.peek() for _ in range(4)] == [10, 20, 30, 10]

    @pytest.mark.parametrize("size", [1, 2, 5, 17])
    def test_one_pass_returns_each_item_once_in_order(self, size):
        items = list(range(100, 100 + size))
        buffer = RecyclingBuffer(items)

        assert [buffer.peek() for _ in range(size)] == items
        assert buffer.peek() == items[0]

    @pytest.mark.parametrize("size,repeats", [(1, 3), (3, 1), (3, 4), (7, 5)])
    def test_periodicity(self, size, repeats):
        items = ['v%d' % i for i in range(size)]
        buffer = RecyclingBuffer(items)

        served = [buffer.peek() for _ in range(size * repeats)]

        assert served == items * repeats

    def test_cursor_stays_in_range(self):
        buffer = RecyclingBuffer(['a', 'b', 'c'])
        for _ in range(10):
            buffer.peek()
            assert 0 <= buffer.cursor < len(buffer)

    def test_cursor_resets_after_last_item(self):
        buffer = RecyclingBuffer([1, 2])
        buffer.peek()
        buffer.peek()
        assert buffer.cursor == 0

    def test_single_item(self):
        buffer = RecyclingBuffer(['only'])
        assert [buffer.peek() for _ in range(3)] == ['only', 'only', 'only']

    def test_empty_input_rejected(self):
        with pytest.raises(ValueError, match="at least one item"):
            RecyclingBuffer([])

    def test_accepts_any_iterable(self):
        buffer = RecyclingBuffer(x * 2 for x in range(3))
        assert len(buffer) == 3
        assert [buffer.peek() for _ in range(3)] == [0, 2, 4]

    def test_source_mutation_not_seen(self):
        source = [1, 2, 3]
        buffer = RecyclingBuffer(source)
        source.append(4)
        source[0] = 99

        assert len(buffer) == 3
        assert [buffer.peek() for _ in range(4)] == [1, 2, 3, 1]

    def test_items_returned_by_identity(self):
        rows = ((1,), (2,))
        buffer = RecyclingBuffer([rows])
        assert buffer.peek() is rows
