"""Tests for the bounded pitch history."""

import pytest

from infant_monitor.core.aggregator import DEFAULT_HISTORY_LENGTH, StreamingAggregator
from infant_monitor.utils.errors import ConfigurationError


class TestCapacity:
    def test_default_capacity(self):
        assert StreamingAggregator().capacity == DEFAULT_HISTORY_LENGTH == 10

    @pytest.mark.parametrize("capacity", [0, -1, 2.5, True])
    def test_invalid_capacity(self, capacity):
        with pytest.raises(ConfigurationError) as exc_info:
            StreamingAggregator(capacity)
        assert exc_info.value.config_key == "monitor.history_length"

    def test_never_exceeds_capacity(self):
        aggregator = StreamingAggregator(4)
        for i in range(100):
            aggregator.push(float(i))
            assert len(aggregator) <= 4

    def test_k_plus_one_evicts_oldest(self):
        aggregator = StreamingAggregator(10)
        for i in range(11):
            aggregator.push(100.0 + i)
        history = aggregator.history()
        assert 100.0 not in history
        assert history == tuple(100.0 + i for i in range(1, 11))


class TestContents:
    def test_empty(self):
        aggregator = StreamingAggregator()
        assert aggregator.history() == ()
        assert aggregator.latest is None

    def test_order_oldest_first(self):
        aggregator = StreamingAggregator(3)
        for pitch in (210.0, 220.0, 230.0):
            aggregator.push(pitch)
        assert aggregator.history() == (210.0, 220.0, 230.0)
        assert aggregator.latest == 230.0

    def test_unvoiced_is_stored_as_gap(self):
        aggregator = StreamingAggregator(5)
        aggregator.push(250.0)
        aggregator.push(None)
        aggregator.push(260.0)
        assert aggregator.history() == (250.0, None, 260.0)
        assert aggregator.voiced() == (250.0, 260.0)

    def test_history_is_a_snapshot(self):
        aggregator = StreamingAggregator(3)
        aggregator.push(1.0)
        snapshot = aggregator.history()
        aggregator.push(2.0)
        assert snapshot == (1.0,)

    def test_clear(self):
        aggregator = StreamingAggregator(3)
        aggregator.push(1.0)
        aggregator.clear()
        assert len(aggregator) == 0

    def test_to_dict(self):
        aggregator = StreamingAggregator(2)
        aggregator.push(None)
        assert aggregator.to_dict() == {'capacity': 2, 'history': [None]}
