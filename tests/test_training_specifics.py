"""Tests for the training specifics."""

import json

import pytest

from rb_offline.errors import ConfigurationError
from rb_offline.pde_problem.training_specifics import (build_training_specifics, default_training_specifics,
                                                       parameter_ranges_from_specifics, read_training_specifics)


class TestBuildTrainingSpecifics:
    """Test the merge with the default values and the validation."""

    def test_defaults(self):
        specifics = build_training_specifics()
        assert specifics == default_training_specifics
        assert specifics is not default_training_specifics

    def test_user_values_override_defaults(self):
        specifics = build_training_specifics({'Nmax': 5, 'deterministic': True})
        assert specifics['Nmax'] == 5
        assert specifics['deterministic']
        assert specifics['delta_N'] == 1

    def test_defaults_are_not_modified(self):
        specifics = build_training_specifics({'parameters': {'a': {'min': 0.0, 'max': 1.0}}})
        specifics['parameters']['b'] = {'min': 0.0, 'max': 1.0}
        assert default_training_specifics['parameters'] == dict()

    @pytest.mark.parametrize("specifics", [
        {'unknown_key': 1},
        {'Nmax': 0},
        {'Nmax': 2.5},
        {'delta_N': True},
        {'n_training_samples': -1},
        {'random_seed': -3},
        {'training_tolerance': 0.0},
        {'quiet_mode': 1},
        {'parameters': [0.0, 1.0]},
        {'parameters': {'a': {'min': 0.0}}},
        {'parameters': {'a': {'min': 0.0, 'max': 1.0, 'scale': 'log'}}},
        {'write_data_during_training': True}
    ])
    def test_invalid_specifics_raise(self, specifics):
        with pytest.raises(ConfigurationError):
            build_training_specifics(specifics)

    def test_write_data_with_directory(self, tmp_path):
        specifics = build_training_specifics({'write_data_during_training': True,
                                              'offline_data_directory': str(tmp_path)})
        assert specifics['offline_data_directory'] == str(tmp_path)


class TestReadTrainingSpecifics:
    """Test the loading of the specifics from JSON files."""

    def test_read(self, tmp_path):
        file_name = tmp_path / 'specifics.json'
        file_name.write_text(json.dumps({'Nmax': 7, 'parameters': {'kappa': {'min': 0.1, 'max': 10.0,
                                                                             'log_scaling': True}}}))

        specifics = read_training_specifics(str(file_name))
        assert specifics['Nmax'] == 7
        assert specifics['parameters']['kappa']['log_scaling']

    def test_invalid_json_raises(self, tmp_path):
        file_name = tmp_path / 'specifics.json'
        file_name.write_text('{"Nmax": ')
        with pytest.raises(ConfigurationError):
            read_training_specifics(str(file_name))

    def test_non_object_raises(self, tmp_path):
        file_name = tmp_path / 'specifics.json'
        file_name.write_text('[1, 2]')
        with pytest.raises(ConfigurationError):
            read_training_specifics(str(file_name))

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_training_specifics(str(tmp_path / 'missing.json'))


class TestParameterRanges:
    """Test the conversion of the parameter block into parameter ranges."""

    def test_ranges_are_sorted_by_name(self):
        specifics = build_training_specifics({'parameters': {
            'b': {'min': 1.0, 'max': 100.0, 'log_scaling': True},
            'a': {'min': 0.0, 'max': 1.0, 'discrete_values': [0.0, 1.0]}
        }})

        ranges = parameter_ranges_from_specifics(specifics)

        assert [param_range.name for param_range in ranges] == ['a', 'b']
        assert ranges[0].is_discrete
        assert not ranges[0].log_scaling
        assert ranges[1].log_scaling
        assert ranges[1].max == 100.0
