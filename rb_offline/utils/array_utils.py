#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utilities on dense and sparse arrays: inner products in a given norm, symmetry checks and elimination of the
Dirichlet degrees of freedom.
"""
import os

import numpy as np
from scipy.sparse import coo_matrix, csc_matrix, diags, issparse

from rb_offline.errors import NumericalFailure

import logging.config

log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


def as_vector(_vec):
    """Utility method, which converts a dense or sparse column/row vector into a flat float numpy array

    :param _vec: input vector
    :type _vec: numpy.ndarray or scipy.sparse matrix or list
    :return: flat vector
    :rtype: numpy.ndarray
    """

    if issparse(_vec):
        _vec = _vec.toarray()
    return np.asarray(_vec, dtype=float).reshape(-1)


def mydot(vec1, vec2, norm_matrix=None):
    """Inner product vec1^T * norm_matrix * vec2 of two (possibly sparse) vectors; the Euclidean one if no matrix is
    given.

    :param vec1: first vector
    :type vec1: np.ndarray
    :param vec2: second vector
    :type vec2: np.ndarray
    :param norm_matrix: symmetric positive definite matrix of the inner product, or None for the identity
    :type norm_matrix: scipy.sparse.csc_matrix or np.ndarray or NoneType
    :return: the inner product
    :rtype: float
    """

    vec1 = as_vector(vec1)
    vec2 = as_vector(vec2)

    if norm_matrix is not None:
        return float(vec1.dot(as_vector(norm_matrix.dot(vec2))))
    return float(vec1.dot(vec2))


def mynorm(vec, norm_matrix=None):
    """Norm induced by norm_matrix (Euclidean if None). Round-off negative squared norms
    are clipped to 0.

    :param vec: vector
    :type vec: np.ndarray
    :param norm_matrix: symmetric positive definite matrix of the norm, or None for the identity
    :type norm_matrix: scipy.sparse.csc_matrix or np.ndarray or NoneType
    :return: the norm
    :rtype: float
    """
    return np.sqrt(max(mydot(vec, vec, norm_matrix), 0.0))


def is_symmetric(m, tol=1e-12):
    """Check whether a (dense or sparse) square matrix is symmetric, up to the absolute tolerance 'tol'

    :param m: matrix to be checked
    :type m: numpy.ndarray or scipy.sparse matrix
    :param tol: absolute tolerance on the entries of m - m^T. Defaults to 1e-12
    :type tol: float
    :return: True if the matrix is symmetric
    :rtype: bool
    """

    if m.shape[0] != m.shape[1]:
        raise ValueError('m must be a square matrix')

    if issparse(m):
        diff = coo_matrix(m - m.T)
        return diff.nnz == 0 or np.max(np.abs(diff.data)) <= tol
    return np.allclose(m, m.T, rtol=0.0, atol=tol)


def eliminate_dirichlet_matrix(_matrix, _dirichlet_dofs, _diagonal_value=0.0):
    """Method which zeroes the rows and columns of '_matrix' associated with the Dirichlet degrees of freedom and sets
    their diagonal entries to '_diagonal_value'. A new matrix is returned, the input is left untouched.

    :param _matrix: matrix to be modified
    :type _matrix: scipy.sparse matrix or numpy.ndarray
    :param _dirichlet_dofs: indices of the Dirichlet degrees of freedom
    :type _dirichlet_dofs: numpy.ndarray or list[int]
    :param _diagonal_value: value of the Dirichlet diagonal entries. Defaults to 0
    :type _diagonal_value: float
    :return: matrix with the Dirichlet rows and columns eliminated
    :rtype: scipy.sparse.csc_matrix or numpy.ndarray
    """

    dofs = np.asarray(_dirichlet_dofs, dtype=int)
    if dofs.size == 0:
        return _matrix.copy()

    if issparse(_matrix):
        keep = np.ones(_matrix.shape[0])
        keep[dofs] = 0.0
        diagonal = np.zeros(_matrix.shape[0])
        diagonal[dofs] = _diagonal_value
        mask = diags(keep)
        return csc_matrix(mask @ _matrix @ mask + diags(diagonal))

    result = np.array(_matrix, dtype=float, copy=True)
    result[dofs, :] = 0.0
    result[:, dofs] = 0.0
    result[dofs, dofs] = _diagonal_value
    return result


def eliminate_dirichlet_vector(_vector, _dirichlet_dofs):
    """Method which zeroes the entries of '_vector' associated with the Dirichlet degrees of freedom

    :param _vector: vector to be modified
    :type _vector: numpy.ndarray
    :param _dirichlet_dofs: indices of the Dirichlet degrees of freedom
    :type _dirichlet_dofs: numpy.ndarray or list[int]
    :return: a modified copy of the vector
    :rtype: numpy.ndarray
    """

    result = as_vector(_vector).copy()
    dofs = np.asarray(_dirichlet_dofs, dtype=int)
    if dofs.size > 0:
        result[dofs] = 0.0
    return result


def check_finite(_array, _name):
    """Method which raises a NumericalFailure if '_array' contains NaN or infinite entries

    :param _array: array to be checked
    :type _array: numpy.ndarray
    :param _name: name of the array, used in the error message
    :type _name: str
    """

    values = _array.data if issparse(_array) else np.asarray(_array)
    if not np.all(np.isfinite(values)):
        logger.critical(f"Non-finite entries found in {_name}")
        raise NumericalFailure(f"Non-finite entries found in {_name}")
    return


__all__ = [
    "as_vector",
    "mydot",
    "mynorm",
    "is_symmetric",
    "eliminate_dirichlet_matrix",
    "eliminate_dirichlet_vector",
    "check_finite"
]
