#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Management of the reduced basis: orthonormalization of the new snapshots and Galerkin projection of the truth
templates onto the basis.
"""

import numpy as np
import os

import rb_offline.utils.array_utils as arr_utils

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


class BasisManager:
    """Class which stores the reduced basis as an Nh x N array whose columns are orthonormal with respect to the
    inner product matrix
    """

    def __init__(self, _inner_product=None, _orthogonality_tolerance=1e-12):
        """Initialization of the BasisManager class

        :param _inner_product: inner product matrix. If None, the Euclidean inner product is used. Defaults to None
        :type _inner_product: scipy.sparse matrix or numpy.ndarray or NoneType
        :param _orthogonality_tolerance: snapshots whose orthogonal remainder has a relative norm below it are
          rejected. Defaults to 1e-12
        :type _orthogonality_tolerance: float
        """

        self.M_inner_product = _inner_product
        self.M_orthogonality_tolerance = _orthogonality_tolerance
        self.M_basis = np.zeros((0, 0))
        return

    def set_inner_product(self, _inner_product):
        self.M_inner_product = _inner_product
        return

    @property
    def N(self):
        return self.M_basis.shape[1]

    @property
    def Nh(self):
        return self.M_basis.shape[0]

    @property
    def basis(self):
        return self.M_basis

    def set_basis(self, _basis):
        basis = np.array(_basis, dtype=float)
        if basis.ndim == 1:
            basis = basis[:, None]
        self.M_basis = basis if basis.size else np.zeros((0, 0))
        return

    def get_basis_function(self, _i):
        return self.M_basis[:, _i].copy()

    def _inner_product_with_basis(self, _vector):
        weighted = _vector if self.M_inner_product is None else arr_utils.as_vector(self.M_inner_product.dot(_vector))
        return self.M_basis.T.dot(weighted)

    def append_and_orthogonalize(self, _snapshot):
        """Method which orthogonalizes a snapshot against the current basis (Gram-Schmidt, performed twice for
        stability), normalizes it and appends it to the basis. Snapshots (almost) in the span of the basis are
        rejected.

        :param _snapshot: truth solution
        :type _snapshot: numpy.ndarray
        :return: True if the snapshot has been appended, False otherwise
        :rtype: bool
        """

        vector = arr_utils.as_vector(_snapshot).copy()
        if self.N > 0 and vector.shape[0] != self.Nh:
            raise ValueError(f"Snapshot of size {vector.shape[0]} incompatible with basis functions of size {self.Nh}")

        initial_norm = arr_utils.mynorm(vector, self.M_inner_product)
        if initial_norm == 0.0:
            logger.warning("Zero snapshot: it is not added to the reduced basis")
            return False

        if self.N > 0:
            for _ in range(2):
                vector -= self.M_basis.dot(self._inner_product_with_basis(vector))

        norm = arr_utils.mynorm(vector, self.M_inner_product)
        if norm <= self.M_orthogonality_tolerance * initial_norm:
            logger.warning(f"Snapshot already in the span of the reduced basis (relative remainder "
                           f"{norm / initial_norm:.3e}): it is not added")
            return False

        vector /= norm
        if self.N == 0:
            self.M_basis = vector[:, None]
        else:
            self.M_basis = np.column_stack([self.M_basis, vector])

        logger.debug(f"Basis function {self.N - 1} added to the reduced basis")
        return True

    def project_vector(self, _vector, _start=0):
        """Method which projects a truth vector onto the basis functions with index >= _start

        :param _vector: truth vector
        :type _vector: numpy.ndarray
        :param _start: index of the first basis function. Defaults to 0
        :type _start: int
        :return: the projections, of length N - _start
        :rtype: numpy.ndarray
        """
        return self.M_basis[:, _start:].T.dot(arr_utils.as_vector(_vector))

    def project_operator(self, _operator, _previous=None):
        """Method which computes the Galerkin projection V^T A V of a truth operator. If the projection onto the
        first basis functions is given in '_previous', only the new rows and columns are computed.

        :param _operator: truth operator
        :type _operator: scipy.sparse matrix or numpy.ndarray
        :param _previous: projection onto the first basis functions. Defaults to None
        :type _previous: numpy.ndarray or NoneType
        :return: projected operator, of size N x N
        :rtype: numpy.ndarray
        """

        N_old = 0 if _previous is None else _previous.shape[0]
        assert N_old <= self.N

        reduced = np.zeros((self.N, self.N))
        if N_old > 0:
            reduced[:N_old, :N_old] = _previous

        new_basis = self.M_basis[:, N_old:]
        reduced[:, N_old:] = self.M_basis.T.dot(np.asarray(_operator.dot(new_basis)))
        if N_old > 0:
            reduced[N_old:, :N_old] = np.asarray(_operator.T.dot(new_basis)).T.dot(self.M_basis[:, :N_old])

        return reduced

    def reconstruct(self, _coefficients):
        """Method which maps reduced coordinates back to the truth space

        :param _coefficients: reduced coordinates on the first basis functions
        :type _coefficients: numpy.ndarray
        :return: truth vector
        :rtype: numpy.ndarray
        """

        coefficients = np.asarray(_coefficients, dtype=float)
        if self.Nh == 0:
            return np.zeros(0)
        return self.M_basis[:, :coefficients.shape[0]].dot(coefficients)

    def clear(self):
        self.M_basis = np.zeros((0, 0))
        return


__all__ = [
    "BasisManager"
]
