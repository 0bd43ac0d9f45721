#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Generation, partitioning and access of the training set of parameter samples used by the greedy algorithm.

The training set stores one sequence of values per parameter name. In parallel mode each worker stores only a
contiguous shard [first_local_index, last_local_index) of every sequence, the same shard for all the parameters;
in serial mode every worker stores the full set.
"""

import math
import os
import time

import numpy as np

from rb_offline.errors import ConfigurationError, IndexOutOfRangeError
from rb_offline.pde_problem.parameter_handler import ParameterRange, rescale_value
from rb_offline.tpl_managers.communicator import SerialCommunicator

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)

# keeps log-scaled deterministic grids strictly inside the parameter box
LOG_GRID_EPSILON = 1.e-6


def compute_local_partition(_n_samples, _n_workers, _rank):
    """Function which computes the number of samples owned by worker '_rank' and the global index of its first
    sample. The first (n_samples % n_workers) workers get one sample more than the others and the indices are
    assigned contiguously in rank order.

    :param _n_samples: global number of samples
    :type _n_samples: int
    :param _n_workers: number of workers
    :type _n_workers: int
    :param _rank: rank of the worker
    :type _rank: int
    :return: number of local samples and global index of the first local sample
    :rtype: tuple(int, int)
    """

    quotient, remainder = divmod(_n_samples, _n_workers)
    n_local = quotient + 1 if _rank < remainder else quotient
    first_index = _rank * quotient + min(_rank, remainder)
    return n_local, first_index


class TrainingSet:
    """Local view of a (possibly distributed) training set
    """

    def __init__(self, _values, _n_global, _first_local_index, _serial=False):
        """Initialization of the TrainingSet class

        :param _values: local values of each parameter
        :type _values: dict[str, numpy.ndarray]
        :param _n_global: global number of samples
        :type _n_global: int
        :param _first_local_index: global index of the first local sample
        :type _first_local_index: int
        :param _serial: True if every worker stores the full training set. Defaults to False
        :type _serial: bool
        """

        local_sizes = {len(values) for values in _values.values()}
        if len(local_sizes) > 1:
            raise ConfigurationError(f"All the parameters must have the same number of training samples, "
                                     f"got sizes {sorted(local_sizes)}")

        self.M_values = {name: np.array(_values[name], dtype=float) for name in sorted(_values.keys())}
        self.M_n_global = int(_n_global)
        self.M_n_local = local_sizes.pop() if local_sizes else 0
        self.M_first_local_index = int(_first_local_index)
        self.M_serial = _serial

        assert self.M_first_local_index + self.M_n_local <= self.M_n_global or not self.M_values

        return

    @property
    def parameter_names(self):
        return list(self.M_values.keys())

    @property
    def n_global(self):
        return self.M_n_global if self.M_values else 0

    @property
    def n_local(self):
        return self.M_n_local

    @property
    def first_local_index(self):
        return self.M_first_local_index

    @property
    def last_local_index(self):
        return self.M_first_local_index + self.M_n_local

    @property
    def is_serial(self):
        return self.M_serial

    @property
    def is_empty(self):
        return self.n_global == 0

    def owns(self, _index):
        return self.first_local_index <= _index < self.last_local_index

    def get_local_values(self, _name):
        """Getter method, which returns a copy of the local values of parameter '_name'

        :param _name: name of the parameter
        :type _name: str
        :return: local values
        :rtype: numpy.ndarray
        """
        return self.M_values[_name].copy()

    def set_local_values(self, _name, _values):
        assert len(_values) == self.M_n_local
        self.M_values[_name] = np.array(_values, dtype=float)
        return

    def get_sample(self, _index):
        """Getter method, which returns the parameter value stored at global index '_index'. The index must be
        locally owned.

        :param _index: global index of the sample
        :type _index: int
        :return: parameter value
        :rtype: dict[str, float]
        """

        if not self.owns(_index):
            logger.critical(f"Training index {_index} is not in the local range "
                            f"[{self.first_local_index}, {self.last_local_index})")
            raise IndexOutOfRangeError(f"Training index {_index} is not stored locally; local range is "
                                       f"[{self.first_local_index}, {self.last_local_index})")

        local_index = _index - self.M_first_local_index
        return {name: float(values[local_index]) for name, values in self.M_values.items()}

    def local_samples(self):
        """Generator over the locally owned samples

        :return: pairs of global index and parameter value
        :rtype: generator
        """
        for index in range(self.first_local_index, self.last_local_index):
            yield index, self.get_sample(index)

    def to_dict(self):
        return {name: values.copy() for name, values in self.M_values.items()}


def _build_random_generator(_communicator, _seed, _serial):
    """Function which builds the random generator of the calling worker. In serial mode every worker gets the same
    seed (broadcast from rank 0 if taken from the wall clock); otherwise the streams differ by rank.
    """

    if _seed is None:
        _seed = int(time.time())
        if _serial:
            _seed = _communicator.bcast(_seed, 0)

    if _serial:
        return np.random.default_rng(_seed)
    return np.random.default_rng([_seed, _communicator.rank])


def _allocate_layout(_communicator, _n_samples, _serial):
    if _serial:
        return _n_samples, 0
    return compute_local_partition(_n_samples, _communicator.size, _communicator.rank)


def generate_training_parameters_random(_communicator, _ranges, _n_samples, _seed=None, _serial=False):
    """Function which generates a training set by drawing every coordinate independently and uniformly in [0;1] and
    mapping it onto the parameter range, linearly or in log10 scale

    :param _communicator: communicator of the workers
    :type _communicator: Communicator
    :param _ranges: ranges of the parameters
    :type _ranges: list[ParameterRange]
    :param _n_samples: global number of samples
    :type _n_samples: int
    :param _seed: seed of the random generator. If None, the wall-clock time is used. Defaults to None
    :type _seed: int or NoneType
    :param _serial: if True, every worker generates the full (identical) training set. Defaults to False
    :type _serial: bool
    :return: local training set
    :rtype: TrainingSet
    """

    if not _ranges:
        return TrainingSet(dict(), 0, 0, _serial=_serial)

    rng = _build_random_generator(_communicator, _seed, _serial)
    n_local, first_index = _allocate_layout(_communicator, _n_samples, _serial)

    values = dict()
    for param_range in sorted(_ranges, key=lambda r: r.name):
        values[param_range.name] = rescale_value(rng.random(n_local), param_range)

    return TrainingSet(values, _n_samples, first_index, _serial=_serial)


def deterministic_axis(_range, _n_points):
    """Function which computes '_n_points' evenly spaced values (linearly or in log10 scale) covering a parameter
    range. The last value is snapped onto the maximum of the range.

    :param _range: range of the parameter
    :type _range: ParameterRange
    :param _n_points: number of values
    :type _n_points: int
    :return: the grid values
    :rtype: numpy.ndarray
    """

    steps = np.arange(_n_points, dtype=float)
    divisor = max(1, _n_points - 1)

    if _range.log_scaling:
        log_min = np.log10(_range.min + LOG_GRID_EPSILON)
        log_range = np.log10((_range.max - LOG_GRID_EPSILON) / (_range.min + LOG_GRID_EPSILON))
        axis = np.power(10., log_min + steps * (log_range / divisor))
        if _n_points > 0:
            axis[-1] = _range.max
    else:
        axis = _range.min + steps * ((_range.max - _range.min) / divisor)
        if _n_points > 1:
            axis[-1] = _range.max

    return axis


def check_deterministic_configuration(_n_parameters, _n_samples):
    """Function which checks that a deterministic training set can be generated: at most two parameters and, for
    two parameters, a perfect square number of samples

    :param _n_parameters: number of parameters
    :type _n_parameters: int
    :param _n_samples: global number of samples
    :type _n_samples: int
    :return: number of samples per parameter
    :rtype: int
    """

    if _n_parameters > 2:
        logger.critical("Deterministic training sample generation is not implemented for more than two parameters")
        raise ConfigurationError(f"Deterministic training sample generation supports at most two parameters, "
                                 f"got {_n_parameters}")

    if _n_parameters == 2:
        n_per_parameter = math.isqrt(_n_samples)
        if n_per_parameter * n_per_parameter != _n_samples:
            logger.critical(f"Number of training parameters = {_n_samples} is not a perfect square")
            raise ConfigurationError(f"Deterministic training set generation with two parameters requires the "
                                     f"number of training samples to be a perfect square, got {_n_samples}")
        return n_per_parameter

    return _n_samples


def generate_training_parameters_deterministic(_communicator, _ranges, _n_samples, _serial=False):
    """Function which generates a deterministic training set: an evenly spaced grid for one parameter, the
    row-major Cartesian product k x k (global index = i1 * k + i2) for two parameters

    :param _communicator: communicator of the workers
    :type _communicator: Communicator
    :param _ranges: ranges of the parameters (at most 2)
    :type _ranges: list[ParameterRange]
    :param _n_samples: global number of samples
    :type _n_samples: int
    :param _serial: if True, every worker generates the full training set. Defaults to False
    :type _serial: bool
    :return: local training set
    :rtype: TrainingSet
    """

    n_per_parameter = check_deterministic_configuration(len(_ranges), _n_samples)

    if not _ranges:
        return TrainingSet(dict(), 0, 0, _serial=_serial)

    n_local, first_index = _allocate_layout(_communicator, _n_samples, _serial)
    indices = np.arange(first_index, first_index + n_local)
    ranges = sorted(_ranges, key=lambda r: r.name)

    values = dict()
    if len(ranges) == 1:
        values[ranges[0].name] = deterministic_axis(ranges[0], _n_samples)[indices]
    else:
        axis_0 = deterministic_axis(ranges[0], n_per_parameter)
        axis_1 = deterministic_axis(ranges[1], n_per_parameter)
        values[ranges[0].name] = axis_0[indices // n_per_parameter]
        values[ranges[1].name] = axis_1[indices % n_per_parameter]

    return TrainingSet(values, _n_samples, first_index, _serial=_serial)


def get_global_max_error_pair(_communicator, _error_pair):
    """Function which finds the global maximum error bound and the training index associated with it. The maximum
    and the rank of the worker holding it are found with a single max-with-location reduction (lowest rank wins
    ties); the index is then broadcast from that worker, so that both values come from the same worker.

    :param _communicator: communicator of the workers
    :type _communicator: Communicator
    :param _error_pair: local candidate (global training index, error bound)
    :type _error_pair: tuple(int, float)
    :return: global (training index, maximum error bound)
    :rtype: tuple(int, float)
    """

    index, error = _error_pair
    max_error, owner = _communicator.maxloc(error)
    index = _communicator.bcast(index, owner)
    return int(index), max_error


class TrainingSetSampler:
    """Class which generates, stores and gives access to the training set, keeping the active parameter of the
    ParameterHandler consistent across the workers
    """

    def __init__(self, _parameter_handler, _communicator=None, _serial_training_set=False, _random_seed=None):
        """Initialization of the TrainingSetSampler class

        :param _parameter_handler: handler of the parameter space and of the active parameter
        :type _parameter_handler: ParameterHandler
        :param _communicator: communicator of the workers. If None, a serial communicator is used. Defaults to None
        :type _communicator: Communicator or NoneType
        :param _serial_training_set: if True, every worker stores the full training set. Defaults to False
        :type _serial_training_set: bool
        :param _random_seed: seed for random sampling. If None, the wall-clock time is used. Defaults to None
        :type _random_seed: int or NoneType
        """

        self.M_parameter_handler = _parameter_handler
        self.M_communicator = _communicator if _communicator is not None else SerialCommunicator()
        self.M_serial_training_set = _serial_training_set
        self.M_random_seed = _random_seed

        self.M_training_set = TrainingSet(dict(), 0, 0)
        self.M_training_parameters_initialized = False

        return

    @property
    def parameter_handler(self):
        return self.M_parameter_handler

    @property
    def communicator(self):
        return self.M_communicator

    @property
    def training_set(self):
        return self.M_training_set

    @property
    def serial_training_set(self):
        return self.M_serial_training_set

    @serial_training_set.setter
    def serial_training_set(self, _serial_training_set):
        self.M_serial_training_set = _serial_training_set

    @property
    def random_seed(self):
        return self.M_random_seed

    def set_training_random_seed(self, _seed):
        if _seed is not None and _seed < 0:
            raise ConfigurationError(f"The random seed must be non-negative, got {_seed}")
        self.M_random_seed = _seed
        return

    @property
    def is_initialized(self):
        return self.M_training_parameters_initialized

    def initialize_training_parameters(self, _mu_min, _mu_max, _n_training_samples, _log_param_scale=None,
                                       _deterministic=False, _discrete_values=None):
        """Method which generates the training set, either randomly or deterministically, and snaps the discrete
        parameters onto their admissible values. All configuration checks are performed before any sample is drawn.

        :param _mu_min: minimum values of the parameters
        :type _mu_min: dict[str, float]
        :param _mu_max: maximum values of the parameters
        :type _mu_max: dict[str, float]
        :param _n_training_samples: global number of training samples
        :type _n_training_samples: int
        :param _log_param_scale: log-scaling flag of each parameter. Defaults to None
        :type _log_param_scale: dict[str, bool] or NoneType
        :param _deterministic: if True, a deterministic grid is generated. Defaults to False
        :type _deterministic: bool
        :param _discrete_values: admissible values of the discrete parameters. Defaults to None
        :type _discrete_values: dict[str, list[float]] or NoneType
        """

        if _n_training_samples < 0:
            raise ConfigurationError(f"The number of training samples must be non-negative, "
                                     f"got {_n_training_samples}")
        if set(_mu_min.keys()) != set(_mu_max.keys()):
            logger.critical("Minimum and maximum parameters declare different parameter names")
            raise ConfigurationError(f"Parameter names of mu_min {sorted(_mu_min.keys())} and mu_max "
                                     f"{sorted(_mu_max.keys())} do not match")
        if _deterministic:
            check_deterministic_configuration(len(_mu_min), _n_training_samples)

        logger.info(f"Initializing training parameters with {'deterministic' if _deterministic else 'random'} "
                    f"training set...")
        for name, log_scaling in sorted((_log_param_scale or dict()).items()):
            logger.info(f"Parameter {name}: log scaling = {log_scaling}")

        self.M_parameter_handler.assign_parameters_bounds(_mu_min, _mu_max, _log_scaling=_log_param_scale,
                                                          _discrete_values=_discrete_values)
        ranges = list(self.M_parameter_handler.parameter_ranges.values())

        if _deterministic:
            self.M_training_set = generate_training_parameters_deterministic(self.M_communicator, ranges,
                                                                             _n_training_samples,
                                                                             _serial=self.M_serial_training_set)
        else:
            self.M_training_set = generate_training_parameters_random(self.M_communicator, ranges,
                                                                      _n_training_samples,
                                                                      _seed=self.M_random_seed,
                                                                      _serial=self.M_serial_training_set)

        self.snap_discrete_parameters()
        self.M_training_parameters_initialized = True

        logger.debug(f"Training set: {self.get_n_training_samples()} samples, local range "
                     f"[{self.get_first_local_training_index()}, {self.get_last_local_training_index()})")
        return

    def snap_discrete_parameters(self):
        """Method which replaces every local value of every discrete parameter with its closest admissible value
        """

        if self.M_parameter_handler.n_discrete_parameters == 0:
            return

        for name in self.M_training_set.parameter_names:
            if self.M_parameter_handler.is_discrete_parameter(name):
                snapped = [self.M_parameter_handler.snap_to_discrete(name, value)
                           for value in self.M_training_set.get_local_values(name)]
                self.M_training_set.set_local_values(name, snapped)
        return

    def load_training_set(self, _new_training_set):
        """Method which replaces the content of the training set with externally supplied local values, keeping the
        existing parameter names. The global number of samples is the sum of the local counts of all the workers.

        :param _new_training_set: local values of each parameter
        :type _new_training_set: dict[str, list[float] or numpy.ndarray]
        """

        if not self.M_training_parameters_initialized:
            logger.critical("load_training_set cannot be used to initialize parameters")
            raise ConfigurationError("load_training_set requires the training parameters to be initialized first")

        if set(_new_training_set.keys()) != set(self.M_parameter_handler.parameter_names):
            logger.critical("Incorrect parameter names in load_training_set")
            raise ConfigurationError(f"Parameter names {sorted(_new_training_set.keys())} do not match the "
                                     f"training set names {self.M_parameter_handler.parameter_names}")

        local_sizes = {len(values) for values in _new_training_set.values()}
        if len(local_sizes) > 1:
            raise ConfigurationError(f"All the parameters must have the same number of training samples, "
                                     f"got sizes {sorted(local_sizes)}")
        n_local = local_sizes.pop() if local_sizes else 0

        if self.M_serial_training_set:
            n_global, first_index = n_local, 0
        else:
            local_counts = self.M_communicator.allgather(n_local)
            n_global = sum(local_counts)
            first_index = sum(local_counts[:self.M_communicator.rank])

        self.M_training_set = TrainingSet(_new_training_set, n_global, first_index,
                                          _serial=self.M_serial_training_set)

        logger.info(f"Loaded a training set with {n_global} samples")
        return

    def check_initialized(self):
        if not self.M_training_parameters_initialized:
            logger.critical("The training parameters have not been initialized")
            raise ConfigurationError("The training parameters have not been initialized")
        return

    def get_n_training_samples(self):
        self.check_initialized()
        return self.M_training_set.n_global

    def get_local_n_training_samples(self):
        self.check_initialized()
        return self.M_training_set.n_local

    def get_first_local_training_index(self):
        self.check_initialized()
        return self.M_training_set.first_local_index

    def get_last_local_training_index(self):
        self.check_initialized()
        return self.M_training_set.last_local_index

    def get_params_from_training_set(self, _index):
        """Getter method, which returns the parameter value at global index '_index'; the index must fall in the
        local range of the calling worker

        :param _index: global training index
        :type _index: int
        :return: parameter value
        :rtype: dict[str, float]
        """

        self.check_initialized()
        return self.M_training_set.get_sample(_index)

    def set_params_from_training_set(self, _index):
        self.M_parameter_handler.assign_parameters(self.get_params_from_training_set(_index))
        return

    def broadcast_parameters(self, _root):
        """Method which broadcasts the active parameter of worker '_root' to all the workers

        :param _root: rank of the broadcasting worker
        :type _root: int
        """

        assert 0 <= _root < self.M_communicator.size

        names = self.M_parameter_handler.parameter_names
        current_parameters = self.M_parameter_handler.param
        values = self.M_communicator.bcast([current_parameters[name] for name in names], _root)
        self.M_parameter_handler.assign_parameters(dict(zip(names, values)))
        return

    def set_params_from_training_set_and_broadcast(self, _index):
        """Method which sets the active parameter to the training sample '_index' on all the workers. The owner of
        the index is identified by a max-reduction of the ranks (non-owners contribute 0) and then broadcasts.

        :param _index: global training index
        :type _index: int
        """

        self.check_initialized()

        root_id = 0
        if self.M_training_set.owns(_index):
            self.set_params_from_training_set(_index)
            root_id = self.M_communicator.rank

        root_id = self.M_communicator.max(root_id)
        self.broadcast_parameters(root_id)
        return

    def get_global_max_error_pair(self, _error_pair):
        return get_global_max_error_pair(self.M_communicator, _error_pair)

    def clear(self):
        """Method which discards the training set
        """
        self.M_training_set = TrainingSet(dict(), 0, 0)
        self.M_training_parameters_initialized = False
        return


__all__ = [
    "LOG_GRID_EPSILON",
    "compute_local_partition",
    "TrainingSet",
    "generate_training_parameters_random",
    "generate_training_parameters_deterministic",
    "deterministic_axis",
    "check_deterministic_configuration",
    "get_global_max_error_pair",
    "TrainingSetSampler"
]
