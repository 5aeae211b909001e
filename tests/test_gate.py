"""Tests for the confidence gate."""

import pytest

from insect_agent.errors import EmptyInputError
from insect_agent.stage.gate import decide


class TestDecide:

    def test_empty_map_raises(self):
        with pytest.raises(EmptyInputError):
            decide({}, 70.0)

    def test_empty_input_error_is_value_error(self):
        with pytest.raises(ValueError):
            decide({}, 70.0)

    def test_selects_global_maximum(self):
        confidence_map = {"aphid": 10.0, "antlion": 60.0, "mantis": 55.0}
        decision = decide(confidence_map, 70.0)
        assert decision.top_identifier == "antlion"
        assert decision.top_confidence == 60.0
        assert all(c <= decision.top_confidence for c in confidence_map.values())

    def test_equal_to_tau_escalates(self):
        assert decide({"antlion": 70.0}, 70.0).skip_secondary is False

    def test_above_tau_skips(self):
        assert decide({"antlion": 70.1}, 70.0).skip_secondary is True

    def test_below_tau_escalates(self):
        assert decide({"antlion": 12.5}, 70.0).skip_secondary is False

    def test_tie_goes_to_first_listed(self):
        decision = decide({"mantis": 50.0, "antlion": 50.0}, 70.0)
        assert decision.top_identifier == "mantis"

    def test_does_not_mutate_input(self):
        confidence_map = {"antlion": 85.0, "mantis": 40.0}
        decide(confidence_map, 70.0)
        assert confidence_map == {"antlion": 85.0, "mantis": 40.0}
