#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Specifics of the greedy training: default values, validation and loading from JSON files.
"""

import copy
import json
import os

from rb_offline.errors import ConfigurationError
from rb_offline.pde_problem.parameter_handler import ParameterRange

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


default_training_specifics = {
    'n_training_samples': 100,  # global number of training parameters
    'parameters': dict(),  # name --> {'min', 'max', 'log_scaling', 'discrete_values'}
    'deterministic': False,  # deterministic grid (at most 2 parameters) or random sampling
    'serial_training_set': False,  # every worker holds the full training set
    'random_seed': None,  # seed of the random sampling; wall-clock time if None
    'training_tolerance': 1e-6,  # greedy stops when the max error bound is below it
    'Nmax': 20,  # maximal number of basis functions
    'delta_N': 1,  # number of basis functions added per greedy iteration
    'use_empty_RB_solve_in_greedy': False,  # first greedy iteration driven by the N=0 error bounds
    'write_data_during_training': False,  # write the offline data after every greedy iteration
    'store_non_dirichlet_operators': False,  # store the templates without Dirichlet elimination too
    'return_rel_error_bound': False,  # error bounds relative to the norm of the reduced solution
    'compute_RB_inner_product': False,  # project the inner product matrix onto the basis
    'constrained_problem': False,  # add the constraint matrix to the truth operator
    'low_memory_mode': False,  # do not store the operator templates
    'quiet_mode': False,  # log the greedy iterations at DEBUG level
    'offline_data_directory': None  # where the offline data are written; nothing is written if None
}

_parameter_keys = {'min', 'max', 'log_scaling', 'discrete_values'}


def _check_int(_specifics, _key, _minimum):
    value = _specifics[_key]
    if isinstance(value, bool) or not isinstance(value, int) or value < _minimum:
        logger.critical(f"Invalid value {value} for '{_key}'")
        raise ConfigurationError(f"'{_key}' must be an integer >= {_minimum}, got {value!r}")
    return


def _check_bool(_specifics, _key):
    if not isinstance(_specifics[_key], bool):
        raise ConfigurationError(f"'{_key}' must be a boolean, got {_specifics[_key]!r}")
    return


def check_training_specifics(_specifics):
    """Function which validates a complete dictionary of training specifics

    :param _specifics: training specifics
    :type _specifics: dict
    """

    _check_int(_specifics, 'n_training_samples', 0)
    _check_int(_specifics, 'Nmax', 1)
    _check_int(_specifics, 'delta_N', 1)

    if _specifics['random_seed'] is not None:
        _check_int(_specifics, 'random_seed', 0)

    tolerance = _specifics['training_tolerance']
    if isinstance(tolerance, bool) or not isinstance(tolerance, (int, float)) or tolerance <= 0:
        raise ConfigurationError(f"'training_tolerance' must be a positive number, got {tolerance!r}")

    for key in ('deterministic', 'serial_training_set', 'use_empty_RB_solve_in_greedy',
                'write_data_during_training', 'store_non_dirichlet_operators', 'return_rel_error_bound',
                'compute_RB_inner_product', 'constrained_problem', 'low_memory_mode', 'quiet_mode'):
        _check_bool(_specifics, key)

    if not isinstance(_specifics['parameters'], dict):
        raise ConfigurationError("'parameters' must be a dictionary")
    for name, description in _specifics['parameters'].items():
        if not isinstance(description, dict) or not {'min', 'max'} <= set(description.keys()):
            raise ConfigurationError(f"Parameter '{name}' must declare at least 'min' and 'max'")
        unknown_keys = set(description.keys()) - _parameter_keys
        if unknown_keys:
            raise ConfigurationError(f"Unknown keys {sorted(unknown_keys)} for parameter '{name}'")

    if _specifics['write_data_during_training'] and _specifics['offline_data_directory'] is None:
        raise ConfigurationError("'write_data_during_training' requires an 'offline_data_directory'")

    return


def build_training_specifics(_specifics=None):
    """Function which merges user-defined training specifics with the default ones and validates the result

    :param _specifics: user-defined specifics. Defaults to None
    :type _specifics: dict or NoneType
    :return: complete training specifics
    :rtype: dict
    """

    _specifics = dict() if _specifics is None else _specifics

    unknown_keys = set(_specifics.keys()) - set(default_training_specifics.keys())
    if unknown_keys:
        logger.critical(f"Unknown training specifics {sorted(unknown_keys)}")
        raise ConfigurationError(f"Unknown training specifics {sorted(unknown_keys)}")

    specifics = copy.deepcopy(default_training_specifics)
    specifics.update(copy.deepcopy(_specifics))
    check_training_specifics(specifics)

    return specifics


def read_training_specifics(_file_name):
    """Function which reads the training specifics from a JSON file

    :param _file_name: path to the JSON file
    :type _file_name: str
    :return: complete training specifics
    :rtype: dict
    """

    try:
        with open(_file_name, 'r') as file:
            specifics = json.load(file)
    except json.JSONDecodeError as e:
        logger.critical(f"Invalid JSON in {_file_name}: {e}")
        raise ConfigurationError(f"Impossible to parse the training specifics in {_file_name}: {e}") from e

    if not isinstance(specifics, dict):
        raise ConfigurationError(f"The training specifics in {_file_name} must be a JSON object")

    return build_training_specifics(specifics)


def parameter_ranges_from_specifics(_specifics):
    """Function which converts the 'parameters' block of the training specifics into parameter ranges

    :param _specifics: training specifics
    :type _specifics: dict
    :return: ranges of the parameters, sorted by name
    :rtype: list[ParameterRange]
    """

    return [ParameterRange(name, description['min'], description['max'],
                           _log_scaling=description.get('log_scaling', False),
                           _discrete_values=description.get('discrete_values', None))
            for name, description in sorted(_specifics['parameters'].items())]


__all__ = [
    "default_training_specifics",
    "check_training_specifics",
    "build_training_specifics",
    "read_training_specifics",
    "parameter_ranges_from_specifics"
]
