"""Tests for the parameter handler."""

import numpy as np
import pytest

from rb_offline.errors import ConfigurationError
from rb_offline.pde_problem.parameter_handler import ParameterHandler, ParameterRange, get_closest_value


@pytest.fixture
def handler():
    parameter_handler = ParameterHandler()
    parameter_handler.assign_parameters_bounds({'b': 1.0, 'a': 0.0}, {'b': 100.0, 'a': 1.0},
                                               _log_scaling={'b': True},
                                               _discrete_values={'a': [0.0, 0.5, 1.0]})
    return parameter_handler


class TestParameterRange:
    """Test the description of a single parameter."""

    def test_inverted_bounds_raise(self):
        with pytest.raises(ConfigurationError):
            ParameterRange('a', 2.0, 1.0)

    def test_log_scaling_requires_positive_minimum(self):
        with pytest.raises(ConfigurationError):
            ParameterRange('a', 0.0, 1.0, _log_scaling=True)

    def test_empty_discrete_values_raise(self):
        with pytest.raises(ConfigurationError):
            ParameterRange('a', 0.0, 1.0, _discrete_values=[])

    def test_properties(self):
        param_range = ParameterRange('a', 1, 3, _discrete_values=[1, 2, 3])
        assert param_range.name == 'a'
        assert param_range.min == 1.0
        assert param_range.max == 3.0
        assert param_range.is_discrete
        assert param_range.discrete_values == (1.0, 2.0, 3.0)


class TestParameterHandler:
    """Test bounds, scaling and snapping of the parameters."""

    def test_names_are_sorted(self, handler):
        assert handler.parameter_names == ['a', 'b']
        assert handler.num_parameters == 2

    def test_current_parameter_starts_at_minimum(self, handler):
        assert handler.param == {'a': 0.0, 'b': 1.0}

    def test_param_is_a_copy(self, handler):
        param = handler.param
        param['a'] = 42.0
        assert handler.param['a'] == 0.0

    def test_mismatched_bounds_raise(self):
        with pytest.raises(ConfigurationError):
            ParameterHandler().assign_parameters_bounds({'a': 0.0}, {'b': 1.0})

    def test_unknown_scaling_name_raises(self):
        with pytest.raises(ConfigurationError):
            ParameterHandler().assign_parameters_bounds({'a': 0.0}, {'a': 1.0}, _log_scaling={'c': True})

    def test_assign_parameters_checks_names(self, handler):
        with pytest.raises(ConfigurationError):
            handler.assign_parameters({'a': 0.5})
        handler.assign_parameters({'a': 0.5, 'b': 10.0})
        assert handler.param == {'a': 0.5, 'b': 10.0}

    def test_rescale_and_normalize_are_inverse(self, handler):
        normalized = {'a': 0.25, 'b': 0.5}
        rescaled = handler.rescale_parameters(normalized)

        assert rescaled['a'] == pytest.approx(0.25)
        assert rescaled['b'] == pytest.approx(10.0)
        assert handler.normalize_parameters(rescaled) == pytest.approx(normalized)

    def test_snap_to_discrete(self, handler):
        assert handler.snap_to_discrete('a', 0.3) == 0.5
        assert handler.snap_to_discrete('a', 0.9) == 1.0
        assert handler.snap_to_discrete('b', 3.3) == 3.3

    def test_snapping_is_idempotent(self, handler):
        for value in np.linspace(0.0, 1.0, 11):
            snapped = handler.snap_to_discrete('a', value)
            assert handler.snap_to_discrete('a', snapped) == snapped

    def test_closest_value_ties_pick_first_candidate(self):
        assert get_closest_value(0.25, [0.0, 0.5]) == 0.0
        assert get_closest_value(0.25, [0.5, 0.0]) == 0.5

    def test_is_valid_parameter(self, handler):
        assert handler.is_valid_parameter({'a': 0.5, 'b': 50.0})
        assert not handler.is_valid_parameter({'a': 0.4, 'b': 50.0})
        assert not handler.is_valid_parameter({'a': 0.5, 'b': 500.0})
        assert not handler.is_valid_parameter({'a': 0.5})

    def test_discrete_information(self, handler):
        assert handler.n_discrete_parameters == 1
        assert handler.is_discrete_parameter('a')
        assert handler.get_discrete_parameter_values() == {'a': (0.0, 0.5, 1.0)}
        assert handler.log_scaling == {'a': False, 'b': True}

    def test_clear(self, handler):
        handler.clear()
        assert handler.num_parameters == 0
        assert handler.param == dict()
