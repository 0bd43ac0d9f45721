#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Online evaluation of the reduced basis approximation: reduced solves, outputs and a posteriori error bounds. The
residual dual norm is evaluated through the affine expansion

    ||r(mu)||^2 = sum theta^f theta^f (F, F) + 2 sum theta^f theta^a u_i (F, A_i) + sum theta^a theta^a u_i u_j (A_i, A_j)

where (F, F), (F, A_i) and (A_i, A_j) are inner products of Riesz representors, precomputed offline.
"""

import numpy as np
import os

from rb_offline.errors import ConfigurationError, IndexOutOfRangeError, NumericalFailure

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


def default_stability_lower_bound(_param):
    return 1.0


def default_residual_scaling_denom(_alpha_LB):
    return np.sqrt(_alpha_LB)


class RbEvaluation:
    """Class which stores the reduced (basis dependent) data of the problem and evaluates the reduced basis solution
    and its error bound for any parameter value
    """

    def __init__(self, _registry, _basis_manager, _stability_lower_bound=None, _residual_scaling_denom=None,
                 _return_rel_error_bound=False):
        """Initialization of the RbEvaluation class

        :param _registry: affine decomposition of the problem
        :type _registry: AffineDecompositionRegistry
        :param _basis_manager: manager of the reduced basis
        :type _basis_manager: BasisManager
        :param _stability_lower_bound: function returning a lower bound of the stability constant at a parameter
          value. If None, the constant 1 is used. Defaults to None
        :type _stability_lower_bound: callable or NoneType
        :param _residual_scaling_denom: function mapping the stability lower bound to the denominator of the error
          bound. If None, the square root is used. Defaults to None
        :type _residual_scaling_denom: callable or NoneType
        :param _return_rel_error_bound: if True, the error bound is divided by the norm of the reduced solution.
          Defaults to False
        :type _return_rel_error_bound: bool
        """

        self.M_registry = _registry
        self.M_basis_manager = _basis_manager

        self.M_stability_lower_bound = _stability_lower_bound if _stability_lower_bound is not None \
            else default_stability_lower_bound
        self.M_residual_scaling_denom = _residual_scaling_denom if _residual_scaling_denom is not None \
            else default_residual_scaling_denom
        self.M_return_rel_error_bound = _return_rel_error_bound

        self.initialize_data_structures(0, 0, [])

        return

    def initialize_data_structures(self, _qa=None, _qf=None, _ql=None):
        """Method which allocates empty reduced data structures (N = 0) for Qa operator terms, Qf right-hand side
        terms and the given number of terms per output. Missing values are taken from the registry.
        """

        qa = self.M_registry.qa if _qa is None else _qa
        qf = self.M_registry.qf if _qf is None else _qf
        ql = [self.M_registry.get_ql(n) for n in range(self.M_registry.n_outputs)] if _ql is None else list(_ql)

        self.M_N = 0

        self.M_RB_Aq_vector = [np.zeros((0, 0)) for _ in range(qa)]
        self.M_RB_Fq_vector = [np.zeros(0) for _ in range(qf)]
        self.M_RB_output_vectors = [[np.zeros(0) for _ in range(n_terms)] for n_terms in ql]
        self.M_RB_inner_product_matrix = np.zeros((0, 0))

        self.M_Fq_representor_norms = np.zeros((qf, qf))
        self.M_Fq_Aq_representor_norms = np.zeros((qf, qa, 0))
        self.M_Aq_Aq_representor_norms = np.zeros((qa, qa, 0, 0))
        self.M_Aq_representor = [[] for _ in range(qa)]
        self.M_output_dual_norms = [np.zeros((n_terms, n_terms)) for n_terms in ql]
        self.M_Fq_representor_norms_set = False

        self.M_greedy_params = []

        self.M_RB_solution = np.zeros(0)
        self.M_RB_outputs = np.zeros(len(ql))
        self.M_RB_output_error_bounds = np.zeros(len(ql))

        return

    @property
    def n_basis_functions(self):
        return self.M_N

    @property
    def basis_manager(self):
        return self.M_basis_manager

    @property
    def qa(self):
        return len(self.M_RB_Aq_vector)

    @property
    def qf(self):
        return len(self.M_RB_Fq_vector)

    @property
    def n_outputs(self):
        return len(self.M_RB_output_vectors)

    @property
    def return_rel_error_bound(self):
        return self.M_return_rel_error_bound

    @return_rel_error_bound.setter
    def return_rel_error_bound(self, _return_rel_error_bound):
        self.M_return_rel_error_bound = _return_rel_error_bound

    @property
    def stability_lower_bound(self):
        return self.M_stability_lower_bound

    @stability_lower_bound.setter
    def stability_lower_bound(self, _stability_lower_bound):
        self.M_stability_lower_bound = _stability_lower_bound

    @property
    def residual_scaling_denom(self):
        return self.M_residual_scaling_denom

    @residual_scaling_denom.setter
    def residual_scaling_denom(self, _residual_scaling_denom):
        self.M_residual_scaling_denom = _residual_scaling_denom

    @property
    def RB_Aq_vector(self):
        return self.M_RB_Aq_vector

    @property
    def RB_Fq_vector(self):
        return self.M_RB_Fq_vector

    @property
    def RB_output_vectors(self):
        return self.M_RB_output_vectors

    @property
    def RB_inner_product_matrix(self):
        return self.M_RB_inner_product_matrix

    @property
    def Fq_representor_norms(self):
        return self.M_Fq_representor_norms

    @property
    def Fq_Aq_representor_norms(self):
        return self.M_Fq_Aq_representor_norms

    @property
    def Aq_Aq_representor_norms(self):
        return self.M_Aq_Aq_representor_norms

    @property
    def Aq_representor(self):
        return self.M_Aq_representor

    @property
    def output_dual_norms(self):
        return self.M_output_dual_norms

    @property
    def greedy_params(self):
        return self.M_greedy_params

    @property
    def RB_solution(self):
        return self.M_RB_solution.copy()

    @property
    def RB_outputs(self):
        return self.M_RB_outputs.copy()

    @property
    def RB_output_error_bounds(self):
        return self.M_RB_output_error_bounds.copy()

    def set_reduced_system(self, _RB_Aq_vector, _RB_Fq_vector, _RB_output_vectors, _RB_inner_product_matrix=None):
        """Method which replaces the reduced matrices and vectors; their size defines the number of basis functions

        :param _RB_Aq_vector: reduced operator terms, N x N each
        :type _RB_Aq_vector: list[numpy.ndarray]
        :param _RB_Fq_vector: reduced right-hand side terms, of length N each
        :type _RB_Fq_vector: list[numpy.ndarray]
        :param _RB_output_vectors: reduced output terms, of length N each
        :type _RB_output_vectors: list[list[numpy.ndarray]]
        :param _RB_inner_product_matrix: reduced inner product matrix. Defaults to None
        :type _RB_inner_product_matrix: numpy.ndarray or NoneType
        """

        sizes = {matrix.shape[0] for matrix in _RB_Aq_vector} | {vector.shape[0] for vector in _RB_Fq_vector}
        if len(sizes) > 1:
            raise ConfigurationError(f"Inconsistent sizes of the reduced matrices and vectors: {sorted(sizes)}")

        self.M_RB_Aq_vector = [np.asarray(matrix, dtype=float) for matrix in _RB_Aq_vector]
        self.M_RB_Fq_vector = [np.asarray(vector, dtype=float) for vector in _RB_Fq_vector]
        self.M_RB_output_vectors = [[np.asarray(vector, dtype=float) for vector in output_vectors]
                                    for output_vectors in _RB_output_vectors]
        if _RB_inner_product_matrix is not None:
            self.M_RB_inner_product_matrix = np.asarray(_RB_inner_product_matrix, dtype=float)

        self.M_N = sizes.pop() if sizes else self.M_basis_manager.N
        return

    def set_Fq_representor_norms(self, _Fq_representor_norms):
        self.M_Fq_representor_norms = np.asarray(_Fq_representor_norms, dtype=float)
        self.M_Fq_representor_norms_set = True
        return

    def set_output_dual_norms(self, _output_dual_norms):
        self.M_output_dual_norms = [np.asarray(norms, dtype=float) for norms in _output_dual_norms]
        return

    def set_residual_terms(self, _Fq_Aq_representor_norms, _Aq_Aq_representor_norms, _Aq_representor=None):
        """Method which replaces the basis dependent residual terms

        :param _Fq_Aq_representor_norms: inner products (F_q1, A_q2 zeta_i), of shape (Qf, Qa, N)
        :type _Fq_Aq_representor_norms: numpy.ndarray
        :param _Aq_Aq_representor_norms: inner products (A_q1 zeta_i, A_q2 zeta_j), of shape (Qa, Qa, N, N)
        :type _Aq_Aq_representor_norms: numpy.ndarray
        :param _Aq_representor: representors of A_q zeta_i, one list per q. Defaults to None
        :type _Aq_representor: list[list[numpy.ndarray]] or NoneType
        """

        self.M_Fq_Aq_representor_norms = np.asarray(_Fq_Aq_representor_norms, dtype=float)
        self.M_Aq_Aq_representor_norms = np.asarray(_Aq_Aq_representor_norms, dtype=float)
        if _Aq_representor is not None:
            self.M_Aq_representor = _Aq_representor
        return

    def _check_N(self, _N):
        N = self.M_N if _N is None else _N
        if not 0 <= N <= self.M_N:
            logger.critical(f"Requested {N} basis functions, but only {self.M_N} are available")
            raise IndexOutOfRangeError(f"Requested {N} basis functions, but only {self.M_N} are available")
        return N

    def solve_reduced(self, _param, _N=None):
        """Method which solves the reduced problem with the first N basis functions

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :param _N: number of basis functions. If None, all of them are used. Defaults to None
        :type _N: int or NoneType
        :return: reduced coordinates
        :rtype: numpy.ndarray
        """

        N = self._check_N(_N)
        if N == 0:
            return np.zeros(0)

        theta_a = self.M_registry.get_theta_a(_param)
        theta_f = self.M_registry.get_theta_f(_param)

        A_N = np.zeros((N, N))
        for q, RB_Aq in enumerate(self.M_RB_Aq_vector):
            A_N += theta_a[q] * RB_Aq[:N, :N]
        F_N = np.zeros(N)
        for q, RB_Fq in enumerate(self.M_RB_Fq_vector):
            F_N += theta_f[q] * RB_Fq[:N]

        try:
            return np.linalg.solve(A_N, F_N)
        except np.linalg.LinAlgError as e:
            logger.critical(f"Singular reduced system with N = {N}: {e}")
            raise NumericalFailure(f"Singular reduced system with N = {N}: {e}") from e

    def compute_residual_dual_norm(self, _param, _N=None, _solution=None):
        """Method which computes the dual norm of the residual of the reduced solution

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :param _N: number of basis functions. If None, all of them are used. Defaults to None
        :type _N: int or NoneType
        :param _solution: reduced solution; if None it is computed. Defaults to None
        :type _solution: numpy.ndarray or NoneType
        :return: residual dual norm
        :rtype: float
        """

        N = self._check_N(_N)
        if not self.M_Fq_representor_norms_set:
            logger.critical("The right-hand side representor norms are not available")
            raise ConfigurationError("The right-hand side representor norms have not been computed")
        if N > self.M_Fq_Aq_representor_norms.shape[2]:
            raise ConfigurationError(f"Residual terms are available for {self.M_Fq_Aq_representor_norms.shape[2]} "
                                     f"basis functions, {N} requested")

        solution = self.solve_reduced(_param, N) if _solution is None else np.asarray(_solution)
        theta_a = self.M_registry.get_theta_a(_param)
        theta_f = self.M_registry.get_theta_f(_param)

        residual_norm_sq = theta_f.dot(self.M_Fq_representor_norms.dot(theta_f))
        if N > 0:
            residual_norm_sq += 2. * np.einsum('f,a,fai,i->', theta_f, theta_a,
                                               self.M_Fq_Aq_representor_norms[:, :, :N], solution)
            residual_norm_sq += np.einsum('a,b,abij,i,j->', theta_a, theta_a,
                                          self.M_Aq_Aq_representor_norms[:, :, :N, :N], solution, solution)

        # round-off can make the expansion slightly negative
        if residual_norm_sq < 0.0:
            logger.debug(f"Negative squared residual dual norm {residual_norm_sq:.3e}: its absolute value is used")
            residual_norm_sq = abs(residual_norm_sq)

        return float(np.sqrt(residual_norm_sq))

    def RB_solve(self, _param, _N=None):
        """Method which computes the reduced solution, the outputs and their error bounds at '_param'

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :param _N: number of basis functions. If None, all of them are used. Defaults to None
        :type _N: int or NoneType
        :return: error bound on the reduced solution (relative, if requested)
        :rtype: float
        """

        N = self._check_N(_N)

        solution = self.solve_reduced(_param, N)
        self.M_RB_solution = solution

        self.M_RB_outputs = np.zeros(self.n_outputs)
        for n, output_vectors in enumerate(self.M_RB_output_vectors):
            if N > 0:
                theta_l = self.M_registry.get_theta_l(n, _param)
                for q_l, RB_Lq in enumerate(output_vectors):
                    self.M_RB_outputs[n] += theta_l[q_l] * RB_Lq[:N].dot(solution)

        alpha_LB = self.M_stability_lower_bound(_param)
        if alpha_LB <= 0.0:
            logger.critical(f"Non-positive stability lower bound {alpha_LB} at {_param}")
            raise NumericalFailure(f"The stability lower bound must be positive, got {alpha_LB}")

        residual_norm = self.compute_residual_dual_norm(_param, N, solution)
        abs_error_bound = residual_norm / self.M_residual_scaling_denom(alpha_LB)

        self.M_RB_output_error_bounds = np.zeros(self.n_outputs)
        for n in range(self.n_outputs):
            if n < len(self.M_output_dual_norms) and self.M_output_dual_norms[n].size:
                theta_l = self.M_registry.get_theta_l(n, _param)
                dual_norm = np.sqrt(max(theta_l.dot(self.M_output_dual_norms[n].dot(theta_l)), 0.0))
                self.M_RB_output_error_bounds[n] = abs_error_bound * dual_norm

        if self.M_return_rel_error_bound:
            solution_norm = np.linalg.norm(solution)
            if solution_norm > 0.0:
                return abs_error_bound / solution_norm

        return abs_error_bound

    def error_bound(self, _param, _N=None):
        return self.RB_solve(_param, _N)

    def reconstruct_solution(self, _solution=None):
        solution = self.M_RB_solution if _solution is None else _solution
        return self.M_basis_manager.reconstruct(solution)

    def clear(self):
        """Method which empties the basis dependent data, keeping the number of affine terms and the basis
        independent norms
        """
        Fq_representor_norms, Fq_representor_norms_set = self.M_Fq_representor_norms, self.M_Fq_representor_norms_set
        output_dual_norms = self.M_output_dual_norms

        self.initialize_data_structures(self.qa, self.qf, [len(output_vectors)
                                                           for output_vectors in self.M_RB_output_vectors])

        self.M_Fq_representor_norms, self.M_Fq_representor_norms_set = Fq_representor_norms, Fq_representor_norms_set
        self.M_output_dual_norms = output_dual_norms
        return


__all__ = [
    "RbEvaluation",
    "default_stability_lower_bound",
    "default_residual_scaling_denom"
]
