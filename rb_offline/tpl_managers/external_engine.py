#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Engines used to solve the linear systems arising from the truth (full order) discretization.
"""

import os

import numpy as np
from scipy.sparse import csc_matrix, issparse
import scipy.sparse.linalg

from rb_offline.errors import NumericalFailure
import rb_offline.utils.array_utils as arr_utils

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


class ExternalEngine:
    """Base class of the engines solving the truth linear systems. Derived engines provide the start, quit and
    solve hooks.
    """

    def __init__(self, _engine_type):
        """Base engine, not started yet

        :param _engine_type: identificative string of the external engine
        :type _engine_type: str
        """

        self.M_engine_type = _engine_type
        self.M_engine = None
        self.M_started = False
        return

    @property
    def engine_type(self):
        return self.M_engine_type

    @property
    def is_started(self):
        return self.M_started

    def start_engine(self):
        """Start the engine and flag it as started
        """

        self.start_specific_engine()
        self.M_started = True
        return

    def quit_engine(self):
        """Quit the engine and flag it as stopped
        """

        self.quit_specific_engine()
        self.M_started = False
        return

    def start_specific_engine(self):
        """Hook starting the concrete engine; the base engine has none
        """

        raise NotImplementedError(f"Engine '{self.M_engine_type}' does not define how to start")

    def quit_specific_engine(self):
        """Hook quitting the concrete engine; the base engine has none
        """
        raise NotImplementedError(f"Engine '{self.M_engine_type}' does not define how to quit")

    def solve(self, _matrix, _rhs):
        """Solve _matrix * x = _rhs; the base engine cannot solve anything

        :param _matrix: system matrix
        :type _matrix: scipy.sparse matrix or numpy.ndarray
        :param _rhs: right-hand side vector
        :type _rhs: numpy.ndarray
        """

        raise NotImplementedError(f"Engine '{self.M_engine_type}' does not define a linear solver")


class ScipyExternalEngine(ExternalEngine):
    """ External engine solving the truth linear systems with scipy, either with a sparse direct method or with a
    Krylov method (CG for symmetric positive definite systems, GMRES otherwise)
    """

    solver_types = ('direct', 'cg', 'gmres')

    def __init__(self, _solver_type='direct', _tol=1e-10, _maxiter=None):
        """ Initialization of the scipy external engine

        :param _solver_type: one among 'direct', 'cg' and 'gmres'. Defaults to 'direct'
        :type _solver_type: str
        :param _tol: relative tolerance of the iterative solvers. Defaults to 1e-10
        :type _tol: float
        :param _maxiter: maximal number of iterations of the iterative solvers. If None, the scipy default is
          used. Defaults to None
        :type _maxiter: int or NoneType
        """

        if _solver_type not in self.solver_types:
            raise ValueError(f"Unknown solver type {_solver_type}; admissible types are {self.solver_types}")

        super().__init__('scipy')
        self.M_solver_type = _solver_type
        self.M_tol = _tol
        self.M_maxiter = _maxiter
        return

    @property
    def solver_type(self):
        return self.M_solver_type

    def start_specific_engine(self):
        logger.debug(f"Starting the scipy engine with '{self.M_solver_type}' solver")
        return

    def quit_specific_engine(self):
        return

    def solve(self, _matrix, _rhs):
        """ Method which solves the linear system _matrix * x = _rhs. Non-convergence of the iterative solvers and
        singular systems raise a NumericalFailure.

        :param _matrix: system matrix
        :type _matrix: scipy.sparse matrix or numpy.ndarray
        :param _rhs: right-hand side vector
        :type _rhs: numpy.ndarray
        :return: solution of the linear system
        :rtype: numpy.ndarray
        """

        rhs = arr_utils.as_vector(_rhs)
        matrix = csc_matrix(_matrix) if not issparse(_matrix) else _matrix.tocsc()

        if matrix.shape[0] != rhs.shape[0]:
            raise ValueError(f"Incompatible shapes of the linear system: {matrix.shape} and {rhs.shape}")

        if self.M_solver_type == 'direct':
            try:
                factorization = scipy.sparse.linalg.splu(matrix)
            except RuntimeError as e:
                logger.critical(f"Sparse LU factorization failed: {e}")
                raise NumericalFailure(f"The truth system is singular: {e}") from e
            sol = factorization.solve(rhs)

        else:
            solver = scipy.sparse.linalg.cg if self.M_solver_type == 'cg' else scipy.sparse.linalg.gmres
            sol, info = solver(matrix, rhs, rtol=self.M_tol, maxiter=self.M_maxiter)
            if info != 0:
                logger.critical(f"The {self.M_solver_type} solver did not converge (info = {info})")
                raise NumericalFailure(f"The {self.M_solver_type} solver did not converge for tolerance "
                                       f"{self.M_tol} and maximal number of iterations {self.M_maxiter} "
                                       f"(info = {info})")

        if not np.all(np.isfinite(sol)):
            logger.critical("The truth solution contains non-finite values")
            raise NumericalFailure("The truth solution contains non-finite values")

        return sol


__all__ = [
    "ExternalEngine",
    "ScipyExternalEngine"
]
