#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Handling of the characteristic parameters of a parametrized problem. A parameter value (ParameterVector) is a plain
dictionary mapping each parameter name to a scalar value; the set of names is fixed once the bounds are assigned.
"""

import numpy as np
import os

from rb_offline.errors import ConfigurationError

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


class ParameterRange:
    """Read-only description of the admissible values of a single parameter
    """

    def __init__(self, _name, _min, _max, _log_scaling=False, _discrete_values=None):
        """Initialization of the ParameterRange class

        :param _name: name of the parameter
        :type _name: str
        :param _min: minimum value of the parameter
        :type _min: float
        :param _max: maximum value of the parameter
        :type _max: float
        :param _log_scaling: if True, the parameter is sampled uniformly in log10 scale. Defaults to False
        :type _log_scaling: bool
        :param _discrete_values: admissible values, if the parameter is discrete. If None, the parameter is
          continuous. Defaults to None
        :type _discrete_values: list[float] or numpy.ndarray or NoneType
        """

        if _min > _max:
            logger.critical(f"Invalid range for parameter {_name}: min {_min} is larger than max {_max}")
            raise ConfigurationError(f"Invalid range for parameter '{_name}': [{_min}, {_max}]")
        if _log_scaling and _min <= 0.0:
            logger.critical(f"Log scaling requires a strictly positive minimum for parameter {_name}")
            raise ConfigurationError(f"Log scaling of parameter '{_name}' requires min > 0, got {_min}")

        self.M_name = str(_name)
        self.M_min = float(_min)
        self.M_max = float(_max)
        self.M_log_scaling = bool(_log_scaling)

        if _discrete_values is not None:
            if len(_discrete_values) == 0:
                raise ConfigurationError(f"Empty list of discrete values for parameter '{_name}'")
            self.M_discrete_values = tuple(float(value) for value in _discrete_values)
        else:
            self.M_discrete_values = None

        return

    @property
    def name(self):
        return self.M_name

    @property
    def min(self):
        return self.M_min

    @property
    def max(self):
        return self.M_max

    @property
    def log_scaling(self):
        return self.M_log_scaling

    @property
    def discrete_values(self):
        return self.M_discrete_values

    @property
    def is_discrete(self):
        return self.M_discrete_values is not None

    def __repr__(self):
        return (f"ParameterRange({self.M_name!r}, {self.M_min}, {self.M_max}, "
                f"log_scaling={self.M_log_scaling}, discrete_values={self.M_discrete_values})")


def get_closest_value(_value, _candidates):
    """Function which returns the element of '_candidates' closest to '_value' in absolute difference. In case of
    ties, the first candidate (in the given order) wins.

    :param _value: value to be snapped
    :type _value: float
    :param _candidates: admissible values
    :type _candidates: list[float] or tuple[float] or numpy.ndarray
    :return: closest admissible value
    :rtype: float
    """

    if len(_candidates) == 0:
        raise ConfigurationError("Impossible to snap a value onto an empty list of candidates")

    distances = np.abs(np.asarray(_candidates, dtype=float) - _value)
    return float(_candidates[int(np.argmin(distances))])


class ParameterHandler:
    """Class to handle the parameters involved in a parameter-dependent problem: bounds, scaling, discrete values
    and the currently active parameter value
    """

    def __init__(self):
        """Initializing the parameter handler with default values
        """

        self.M_ranges = dict()
        self.M_param = dict()
        self.M_num_parameters = 0

        return

    def assign_parameters_bounds(self, _param_min, _param_max, _log_scaling=None, _discrete_values=None):
        """Method to assign the bounding values (min and max) to the parameters involved in the problem, together
        with their scaling and their admissible discrete values

        :param _param_min: minimum values of the parameters
        :type _param_min: dict[str, float]
        :param _param_max: maximum values of the parameters
        :type _param_max: dict[str, float]
        :param _log_scaling: log-scaling flag of each parameter. Missing names default to False. Defaults to None
        :type _log_scaling: dict[str, bool] or NoneType
        :param _discrete_values: admissible values of the discrete parameters. Defaults to None
        :type _discrete_values: dict[str, list[float]] or NoneType
        """

        if set(_param_min.keys()) != set(_param_max.keys()):
            logger.critical(f"Parameter names of min {sorted(_param_min.keys())} and max {sorted(_param_max.keys())} "
                            f"do not match")
            raise ConfigurationError("The minimum and maximum parameters must declare the same parameter names")

        _log_scaling = dict() if _log_scaling is None else _log_scaling
        _discrete_values = dict() if _discrete_values is None else _discrete_values

        unknown_names = (set(_log_scaling.keys()) | set(_discrete_values.keys())) - set(_param_min.keys())
        if unknown_names:
            raise ConfigurationError(f"Scaling or discrete values given for unknown parameters {sorted(unknown_names)}")

        ranges = [ParameterRange(name, _param_min[name], _param_max[name],
                                 _log_scaling=_log_scaling.get(name, False),
                                 _discrete_values=_discrete_values.get(name, None))
                  for name in sorted(_param_min.keys())]
        self.assign_parameter_ranges(ranges)

        return

    def assign_parameter_ranges(self, _ranges):
        """Method to assign the parameter space from a list of ParameterRange objects. The current parameter is
        initialized at the minimum values

        :param _ranges: ranges of all the parameters
        :type _ranges: list[ParameterRange]
        """

        names = [param_range.name for param_range in _ranges]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Duplicated parameter names in {names}")

        self.M_ranges = {param_range.name: param_range for param_range in sorted(_ranges, key=lambda r: r.name)}
        self.M_num_parameters = len(self.M_ranges)
        self.M_param = {name: param_range.min for name, param_range in self.M_ranges.items()}

        return

    def check_parameter_names(self, _param):
        """Method which checks that a parameter value declares exactly the names of the parameter space

        :param _param: value of the parameter
        :type _param: dict[str, float]
        """

        if set(_param.keys()) != set(self.M_ranges.keys()):
            logger.critical(f"Parameter names {sorted(_param.keys())} differ from {self.parameter_names}")
            raise ConfigurationError(f"Parameter names {sorted(_param.keys())} do not match "
                                     f"the parameter space names {self.parameter_names}")
        return

    def assign_parameters(self, _param):
        """Method to assign the parameter value, provided that it declares the right parameter names. The value is
        copied.

        :param _param: value of the parameter
        :type _param: dict[str, float]
        """

        self.check_parameter_names(_param)
        self.M_param = {name: float(_param[name]) for name in self.M_ranges}
        return

    def rescale_parameters(self, _param):
        """Method to rescale a parameter from [0;1]^P to the parameter box, linearly or in log10 scale depending on
        the parameter

        :param _param: normalized value of the parameter
        :type _param: dict[str, float]
        :return: rescaled value of the parameter
        :rtype: dict[str, float]
        """

        rescaled = dict()
        for name, param_range in self.M_ranges.items():
            rescaled[name] = rescale_value(_param[name], param_range)
        return rescaled

    def normalize_parameters(self, _param):
        """Method to rescale a parameter from the parameter box to [0;1]^P

        :param _param: original value of the parameter
        :type _param: dict[str, float]
        :return: normalized value of the parameter
        :rtype: dict[str, float]
        """

        normalized = dict()
        for name, param_range in self.M_ranges.items():
            if param_range.max == param_range.min:
                normalized[name] = 0.0
            elif param_range.log_scaling:
                normalized[name] = (np.log10(_param[name] / param_range.min) /
                                    np.log10(param_range.max / param_range.min))
            else:
                normalized[name] = (_param[name] - param_range.min) / (param_range.max - param_range.min)
        return normalized

    def is_discrete_parameter(self, _name):
        return self.M_ranges[_name].is_discrete

    @property
    def n_discrete_parameters(self):
        return sum(1 for param_range in self.M_ranges.values() if param_range.is_discrete)

    def get_discrete_parameter_values(self):
        """Getter method, which returns the admissible values of every discrete parameter

        :return: admissible values, keyed by parameter name
        :rtype: dict[str, tuple[float]]
        """
        return {name: param_range.discrete_values
                for name, param_range in self.M_ranges.items() if param_range.is_discrete}

    def snap_to_discrete(self, _name, _value):
        """Method which replaces a value of parameter '_name' with its closest admissible discrete value. Continuous
        parameters are returned unchanged.

        :param _name: name of the parameter
        :type _name: str
        :param _value: value to be snapped
        :type _value: float
        :return: snapped value
        :rtype: float
        """

        if not self.is_discrete_parameter(_name):
            return float(_value)
        return get_closest_value(_value, self.M_ranges[_name].discrete_values)

    def is_valid_parameter(self, _param):
        """Method which checks whether a parameter value lies in the parameter box and, for discrete parameters,
        whether it is an admissible value

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: True if the parameter is valid, False otherwise
        :rtype: bool
        """

        if set(_param.keys()) != set(self.M_ranges.keys()):
            return False

        for name, param_range in self.M_ranges.items():
            value = _param[name]
            if value < param_range.min or value > param_range.max:
                return False
            if param_range.is_discrete and value not in param_range.discrete_values:
                return False
        return True

    def print_parameters(self):
        """Method to log the parameter space and the current parameter value
        """
        logger.info(f"Number of parameters : {self.M_num_parameters}")
        for param_range in self.M_ranges.values():
            logger.info(f"{param_range}")
        logger.info(f"The current parameter is: {self.M_param}")
        return

    @property
    def param(self):
        """Getter method, to get a copy of the current parameter value

        :return: parameter value
        :rtype: dict[str, float]
        """
        return dict(self.M_param)

    @property
    def num_parameters(self):
        return self.M_num_parameters

    @property
    def parameter_names(self):
        """Getter method, to get the (sorted) names of the parameters

        :return: names of the parameters
        :rtype: list[str]
        """
        return list(self.M_ranges.keys())

    @property
    def parameter_ranges(self):
        return dict(self.M_ranges)

    @property
    def param_min(self):
        return {name: param_range.min for name, param_range in self.M_ranges.items()}

    @property
    def param_max(self):
        return {name: param_range.max for name, param_range in self.M_ranges.items()}

    @property
    def log_scaling(self):
        return {name: param_range.log_scaling for name, param_range in self.M_ranges.items()}

    def clear(self):
        """Method which resets the parameter space
        """
        self.M_ranges = dict()
        self.M_param = dict()
        self.M_num_parameters = 0
        return


def rescale_value(_value, _range):
    """Function which maps a value in [0;1] onto a parameter range, either linearly or via
    10^(log_min + t * log_range)

    :param _value: normalized value
    :type _value: float or numpy.ndarray
    :param _range: range of the parameter
    :type _range: ParameterRange
    :return: rescaled value
    :rtype: float or numpy.ndarray
    """

    if _range.log_scaling:
        log_min = np.log10(_range.min)
        log_range = np.log10(_range.max / _range.min)
        return np.power(10., log_min + _value * log_range)
    else:
        return _range.min + _value * (_range.max - _range.min)


__all__ = [
    "ParameterRange",
    "ParameterHandler",
    "get_closest_value",
    "rescale_value"
]
