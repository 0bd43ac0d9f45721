#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Empirical Interpolation Method (EIM) for parametrized functions sampled at a fixed set of points. A trained EimSystem
provides the affine approximation

    g(x; mu) ~ sum_{m} c_m(mu) * q_m(x),    B c(mu) = g(x_magic; mu),

whose coefficients c_m act as theta functions of additional affine terms.
"""

import os

import numpy as np
import scipy.linalg

from rb_offline.errors import IndexOutOfRangeError, NotAttachedError, NumericalFailure
import rb_offline.utils.array_utils as arr_utils

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


class EimSystem:
    """Class which trains and evaluates an empirical interpolant of a parametrized function
    """

    def __init__(self, _parametrized_function, _points):
        """Initialization of the EimSystem class

        :param _parametrized_function: function mapping (points, mu) to the values of the function at the points
        :type _parametrized_function: callable
        :param _points: interpolation candidates, one row per point
        :type _points: numpy.ndarray
        """

        self.M_parametrized_function = _parametrized_function
        self.M_points = np.asarray(_points, dtype=float)
        self.M_n_points = self.M_points.shape[0]

        self.M_basis = np.zeros((self.M_n_points, 0))
        self.M_magic_indices = []
        self.M_interpolation_matrix = np.zeros((0, 0))
        self.M_greedy_parameters = []
        self.M_greedy_errors = []

        self.M_last_param = None
        self.M_last_coefficients = np.zeros(0)

        return

    @property
    def points(self):
        return self.M_points

    @property
    def greedy_parameters(self):
        return list(self.M_greedy_parameters)

    @property
    def greedy_errors(self):
        return list(self.M_greedy_errors)

    @property
    def interpolation_matrix(self):
        return self.M_interpolation_matrix.copy()

    def evaluate_function(self, _param):
        values = arr_utils.as_vector(self.M_parametrized_function(self.M_points, _param))
        if values.shape[0] != self.M_n_points:
            raise ValueError(f"The parametrized function returned {values.shape[0]} values "
                             f"for {self.M_n_points} points")
        return values

    def train(self, _training_parameters, _Mmax, _tolerance=1e-8):
        """Greedy construction of the empirical interpolant. At each step the training parameter with the largest
        interpolation error (max norm) is selected; the point where its residual is largest in absolute value
        becomes the next magic point and the residual, normalized to 1 at that point, the next basis function.

        :param _training_parameters: training parameters
        :type _training_parameters: list[dict[str, float]]
        :param _Mmax: maximal number of basis functions
        :type _Mmax: int
        :param _tolerance: the greedy stops when the max interpolation error is not larger than it. Defaults to 1e-8
        :type _tolerance: float
        :return: final maximal interpolation error over the training parameters
        :rtype: float
        """

        self.clear()

        if len(_training_parameters) == 0:
            logger.warning("Empty training set for EIM: no basis function is computed")
            return 0.0

        snapshots = np.column_stack([self.evaluate_function(mu) for mu in _training_parameters])
        residuals = snapshots.copy()
        max_error = float(np.max(np.abs(residuals)))

        for m in range(_Mmax):
            errors = np.max(np.abs(residuals), axis=0)
            idx_mu = int(np.argmax(errors))
            max_error = float(errors[idx_mu])

            logger.debug(f"EIM iteration {m}: max interpolation error {max_error:.6e}")
            if max_error <= _tolerance:
                break

            residual = residuals[:, idx_mu]
            idx_point = int(np.argmax(np.abs(residual)))

            self.M_basis = np.column_stack([self.M_basis, residual / residual[idx_point]])
            self.M_magic_indices.append(idx_point)
            self.M_greedy_parameters.append(dict(_training_parameters[idx_mu]))
            self.M_greedy_errors.append(max_error)
            self.M_interpolation_matrix = self.M_basis[self.M_magic_indices, :]

            coefficients = scipy.linalg.solve_triangular(self.M_interpolation_matrix,
                                                         snapshots[self.M_magic_indices, :], lower=True)
            residuals = snapshots - self.M_basis.dot(coefficients)
            max_error = float(np.max(np.abs(residuals)))

        logger.info(f"EIM trained with {self.get_n_basis_functions()} basis functions; "
                    f"max interpolation error {max_error:.6e}")

        return max_error

    def get_n_basis_functions(self):
        return len(self.M_magic_indices)

    def get_basis_function(self, _i):
        """Getter method, which returns the i-th basis function evaluated at the points

        :param _i: index of the basis function
        :type _i: int
        :return: basis function
        :rtype: numpy.ndarray
        """

        self._check_index(_i)
        return self.M_basis[:, _i].copy()

    def get_interpolation_points(self):
        return self.M_points[self.M_magic_indices].copy()

    def get_interpolation_indices(self):
        return list(self.M_magic_indices)

    def _check_index(self, _i):
        if self.get_n_basis_functions() == 0:
            raise NotAttachedError("The EIM system has not been trained")
        if not 0 <= _i < self.get_n_basis_functions():
            raise IndexOutOfRangeError(f"EIM basis index {_i} out of range "
                                       f"[0, {self.get_n_basis_functions()})")
        return

    def evaluate_coefficients(self, _param):
        """Method which computes the interpolation coefficients at '_param', solving the lower-triangular system
        B c = g(x_magic; mu). The last result is cached.

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: interpolation coefficients
        :rtype: numpy.ndarray
        """

        if self.get_n_basis_functions() == 0:
            return np.zeros(0)

        if self.M_last_param is not None and self.M_last_param == _param:
            return self.M_last_coefficients.copy()

        magic_values = arr_utils.as_vector(
            self.M_parametrized_function(self.M_points[self.M_magic_indices], _param))
        try:
            coefficients = scipy.linalg.solve_triangular(self.M_interpolation_matrix, magic_values, lower=True)
        except np.linalg.LinAlgError as e:
            logger.critical(f"Singular EIM interpolation matrix: {e}")
            raise NumericalFailure(f"Singular EIM interpolation matrix: {e}") from e

        self.M_last_param = dict(_param)
        self.M_last_coefficients = coefficients
        return coefficients.copy()

    def evaluate_theta(self, _i, _param):
        self._check_index(_i)
        return float(self.evaluate_coefficients(_param)[_i])

    def interpolate(self, _param):
        """Method which evaluates the empirical interpolant at all the points

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: interpolated values
        :rtype: numpy.ndarray
        """
        return self.M_basis.dot(self.evaluate_coefficients(_param))

    def clear(self):
        self.M_basis = np.zeros((self.M_n_points, 0))
        self.M_magic_indices = []
        self.M_interpolation_matrix = np.zeros((0, 0))
        self.M_greedy_parameters = []
        self.M_greedy_errors = []
        self.M_last_param = None
        self.M_last_coefficients = np.zeros(0)
        return


__all__ = [
    "EimSystem"
]
