#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Truth-level assembly of the affine templates, of the inner product and constraint matrices, and of the basis
independent Riesz representors used by the a posteriori error bounds.
"""

import numpy as np
import os

from scipy.sparse import csc_matrix, diags
import scipy.sparse.linalg

from rb_offline.errors import ConfigurationError, NumericalFailure
import rb_offline.utils.array_utils as arr_utils

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


class OfflineAssembler:
    """Class which assembles and caches the truth-level quantities of an affinely decomposed problem. The Dirichlet
    degrees of freedom are eliminated from every stored template. If requested, the templates and the inner product
    matrix are stored without elimination too; these stores are not used by the error bounds of the greedy loop and
    are kept for the callers that estimate the effect of imposing the boundary conditions approximately.
    """

    def __init__(self, _registry, _external_engine=None, _dirichlet_dofs=None, _store_non_dirichlet_operators=False,
                 _constrained_problem=False, _low_memory_mode=False):
        """Initialization of the OfflineAssembler class

        :param _registry: affine decomposition of the problem
        :type _registry: AffineDecompositionRegistry
        :param _external_engine: engine used for the truth solves. Defaults to None
        :type _external_engine: ExternalEngine or NoneType
        :param _dirichlet_dofs: indices of the (homogeneous) Dirichlet degrees of freedom. Defaults to None
        :type _dirichlet_dofs: list[int] or numpy.ndarray or NoneType
        :param _store_non_dirichlet_operators: if True, the templates and the inner product matrix are also stored
          without Dirichlet elimination. Defaults to False
        :type _store_non_dirichlet_operators: bool
        :param _constrained_problem: if True, the constraint matrix is added to the truth operator. Defaults to False
        :type _constrained_problem: bool
        :param _low_memory_mode: if True, the operator templates are not stored but assembled on demand.
          Defaults to False
        :type _low_memory_mode: bool
        """

        self.M_registry = _registry
        self.M_external_engine = _external_engine
        self.M_dirichlet_dofs = np.unique(np.asarray(_dirichlet_dofs if _dirichlet_dofs is not None else [],
                                                     dtype=int))
        self.M_store_non_dirichlet_operators = _store_non_dirichlet_operators
        self.M_constrained_problem = _constrained_problem
        self.M_low_memory_mode = _low_memory_mode

        self.M_Nh = 0
        self.M_inner_product_matrix = None
        self.M_inner_product_factorization = None
        self.M_non_dirichlet_inner_product_matrix = None
        self.M_constraint_matrix = None

        self.M_Fq_representor = []
        self.M_Fq_representor_norms = np.zeros((0, 0))
        self.M_Fq_representor_norms_computed = False

        self.M_output_dual_norms = []
        self.M_output_dual_norms_computed = False

        self.M_affine_storage_initialized = False

        return

    @property
    def registry(self):
        return self.M_registry

    @property
    def external_engine(self):
        return self.M_external_engine

    @property
    def dirichlet_dofs(self):
        return self.M_dirichlet_dofs.copy()

    @property
    def Nh(self):
        return self.M_Nh

    @property
    def store_non_dirichlet_operators(self):
        return self.M_store_non_dirichlet_operators

    @property
    def constrained_problem(self):
        return self.M_constrained_problem

    @property
    def low_memory_mode(self):
        return self.M_low_memory_mode

    @property
    def is_affine_storage_initialized(self):
        return self.M_affine_storage_initialized

    @property
    def Fq_representor_norms_computed(self):
        return self.M_Fq_representor_norms_computed

    @property
    def output_dual_norms_computed(self):
        return self.M_output_dual_norms_computed

    def _set_Nh(self, _Nh, _what):
        if self.M_Nh == 0:
            self.M_Nh = _Nh
        elif self.M_Nh != _Nh:
            logger.critical(f"The {_what} has size {_Nh}, while the truth dimension is {self.M_Nh}")
            raise ConfigurationError(f"The {_what} has size {_Nh}, incompatible with the truth dimension "
                                     f"{self.M_Nh}")
        return

    def _eliminate_matrix(self, _matrix, _diagonal_value=0.0):
        matrix = csc_matrix(_matrix, dtype=float)
        if self.M_dirichlet_dofs.size and self.M_dirichlet_dofs.max() >= matrix.shape[0]:
            raise ConfigurationError(f"Dirichlet degree of freedom {self.M_dirichlet_dofs.max()} out of range "
                                     f"for a matrix of size {matrix.shape[0]}")
        return csc_matrix(arr_utils.eliminate_dirichlet_matrix(matrix, self.M_dirichlet_dofs,
                                                               _diagonal_value=_diagonal_value))

    def _dirichlet_identity(self):
        diagonal = np.zeros(self.M_Nh)
        diagonal[self.M_dirichlet_dofs] = 1.0
        return diags(diagonal, format='csc')

    def assemble_misc_matrices(self):
        """Method which assembles the parameter-independent inner product matrix (Dirichlet rows and columns replaced
        by the identity) and, for constrained problems, the constraint matrix. The inner product matrix must be
        symmetric. The matrix before elimination is kept if the non-Dirichlet stores are enabled.
        """

        inner_product = self.M_registry.assemble_inner_product()
        self._set_Nh(inner_product.shape[0], "inner product matrix")
        arr_utils.check_finite(inner_product, "inner product matrix")

        if self.M_store_non_dirichlet_operators:
            self.M_non_dirichlet_inner_product_matrix = csc_matrix(inner_product, dtype=float)

        inner_product = self._eliminate_matrix(inner_product, _diagonal_value=1.0)
        if not arr_utils.is_symmetric(inner_product, tol=1e-10 * max(1.0, abs(inner_product).max())):
            logger.critical("The inner product matrix is not symmetric")
            raise NumericalFailure("The inner product matrix must be symmetric positive semi-definite")

        self.M_inner_product_matrix = inner_product
        self.M_inner_product_factorization = None

        if self.M_constrained_problem:
            constraint = self.M_registry.assemble_constraint()
            self._set_Nh(constraint.shape[0], "constraint matrix")
            self.M_constraint_matrix = self._eliminate_matrix(constraint)

        return

    def assemble_all_affine_operators(self):
        """Method which assembles all the operator templates, unless the low memory mode is active
        """

        non_dirichlet = []
        eliminated = []

        if self.M_low_memory_mode:
            logger.debug("Low memory mode: the operator templates are assembled on demand")
            if self.M_registry.qa > 0:
                self._set_Nh(self.M_registry.assemble_A_q(0).shape[0], "operator template 0")
        else:
            for q in range(self.M_registry.qa):
                A_q = csc_matrix(self.M_registry.assemble_A_q(q), dtype=float)
                self._set_Nh(A_q.shape[0], f"operator template {q}")
                arr_utils.check_finite(A_q, f"operator template {q}")

                if self.M_store_non_dirichlet_operators:
                    non_dirichlet.append(A_q.copy())
                eliminated.append(self._eliminate_matrix(A_q))

        self.M_registry.set_affine_matrices(eliminated)
        self.M_registry.set_non_dirichlet_affine_matrices(non_dirichlet)
        return

    def assemble_all_affine_vectors(self):
        """Method which assembles all the right-hand side templates
        """

        non_dirichlet = []
        eliminated = []

        for q in range(self.M_registry.qf):
            F_q = arr_utils.as_vector(self.M_registry.assemble_F_q(q))
            self._set_Nh(F_q.shape[0], f"right-hand side template {q}")
            arr_utils.check_finite(F_q, f"right-hand side template {q}")

            if self.M_store_non_dirichlet_operators:
                non_dirichlet.append(F_q.copy())
            eliminated.append(arr_utils.eliminate_dirichlet_vector(F_q, self.M_dirichlet_dofs))

        self.M_registry.set_affine_vectors(eliminated)
        self.M_registry.set_non_dirichlet_affine_vectors(non_dirichlet)
        return

    def assemble_all_output_vectors(self):
        outputs = []
        for n in range(self.M_registry.n_outputs):
            output_vectors = []
            for q_l in range(self.M_registry.get_ql(n)):
                L_q = arr_utils.as_vector(self.M_registry.assemble_L_q(n, q_l))
                self._set_Nh(L_q.shape[0], f"output {n} template {q_l}")
                output_vectors.append(arr_utils.eliminate_dirichlet_vector(L_q, self.M_dirichlet_dofs))
            outputs.append(output_vectors)

        self.M_registry.set_output_vectors(outputs)
        return

    def initialize_affine_storage(self):
        """Method which finalizes the affine decomposition and assembles every truth-level template. No term can be
        attached to the registry afterwards.
        """

        self.M_registry.finalize()

        self.assemble_misc_matrices()
        self.assemble_all_affine_operators()
        self.assemble_all_affine_vectors()
        self.assemble_all_output_vectors()

        self.M_affine_storage_initialized = True

        logger.info(f"Affine storage initialized: Nh = {self.M_Nh}, Qa = {self.M_registry.qa}, "
                    f"Qf = {self.M_registry.qf}, {self.M_registry.n_outputs} outputs, "
                    f"{self.M_dirichlet_dofs.size} Dirichlet dofs")
        return

    def check_affine_storage(self):
        if not self.M_affine_storage_initialized:
            logger.critical("The affine storage has not been initialized")
            raise ConfigurationError("The affine storage has not been initialized")
        return

    def get_A_q(self, _q):
        """Getter method, which returns the q-th operator template with the Dirichlet elimination applied; in low
        memory mode it is assembled on the fly

        :param _q: index of the term
        :type _q: int
        :return: operator template
        :rtype: scipy.sparse.csc_matrix
        """

        if self.M_low_memory_mode:
            return self._eliminate_matrix(self.M_registry.assemble_A_q(_q))
        return self.M_registry.get_affine_matrix(_q)

    def get_F_q(self, _q):
        return self.M_registry.get_affine_vector(_q)

    def get_non_dirichlet_A_q(self, _q):
        if self.M_low_memory_mode:
            return csc_matrix(self.M_registry.assemble_A_q(_q), dtype=float)
        return self.M_registry.get_non_dirichlet_affine_matrix(_q)

    @property
    def inner_product_matrix(self):
        self.check_affine_storage()
        return self.M_inner_product_matrix

    @property
    def non_dirichlet_inner_product_matrix(self):
        self.check_affine_storage()
        if self.M_non_dirichlet_inner_product_matrix is None:
            raise ConfigurationError("The non-Dirichlet stores are disabled")
        return self.M_non_dirichlet_inner_product_matrix

    @property
    def constraint_matrix(self):
        return self.M_constraint_matrix

    def assemble_affine_operator(self, _param):
        """Method which computes sum_q theta^a_q(mu) A_q, with the identity on the Dirichlet degrees of freedom
        and, for constrained problems, the constraint matrix added

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: the truth operator
        :rtype: scipy.sparse.csc_matrix
        """

        self.check_affine_storage()

        operator = csc_matrix((self.M_Nh, self.M_Nh))
        for q in range(self.M_registry.qa):
            operator = operator + self.M_registry.eval_theta_q_a(q, _param) * self.get_A_q(q)

        operator = operator + self._dirichlet_identity()
        if self.M_constrained_problem and self.M_constraint_matrix is not None:
            operator = operator + self.M_constraint_matrix

        return csc_matrix(operator)

    def assemble_affine_vector(self, _param):
        """Method which computes sum_q theta^f_q(mu) F_q

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: the truth right-hand side
        :rtype: numpy.ndarray
        """

        self.check_affine_storage()

        vector = np.zeros(self.M_Nh)
        for q in range(self.M_registry.qf):
            vector += self.M_registry.eval_theta_q_f(q, _param) * self.get_F_q(q)
        return vector

    def assemble_non_dirichlet_affine_operator(self, _param):
        """Method which computes sum_q theta^a_q(mu) A_q with the templates assembled without Dirichlet elimination.
        Storage only: the greedy error bounds never use it.

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: the operator without boundary conditions
        :rtype: scipy.sparse.csc_matrix
        """

        self.check_affine_storage()
        operator = csc_matrix((self.M_Nh, self.M_Nh))
        for q in range(self.M_registry.qa):
            operator = operator + self.M_registry.eval_theta_q_a(q, _param) * self.get_non_dirichlet_A_q(q)
        return csc_matrix(operator)

    def evaluate_outputs(self, _solution, _param):
        """Method which evaluates all the outputs on a truth solution

        :param _solution: truth solution
        :type _solution: numpy.ndarray
        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: values of the outputs
        :rtype: numpy.ndarray
        """

        outputs = np.zeros(self.M_registry.n_outputs)
        for n in range(self.M_registry.n_outputs):
            for q_l in range(self.M_registry.get_ql(n)):
                outputs[n] += (self.M_registry.eval_theta_q_l(n, q_l, _param) *
                               self.M_registry.get_output_vector(n, q_l).dot(_solution))
        return outputs

    def truth_solve(self, _param):
        """Method which assembles and solves the truth system at '_param' with the external engine

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: truth solution
        :rtype: numpy.ndarray
        """

        if self.M_external_engine is None:
            raise ConfigurationError("No external engine is available to perform the truth solve")

        return self.M_external_engine.solve(self.assemble_affine_operator(_param),
                                            self.assemble_affine_vector(_param))

    def inner_product(self, _u, _v):
        return arr_utils.mydot(_u, _v, self.inner_product_matrix)

    def inner_product_solve(self, _rhs):
        """Method which solves X r = rhs with the (cached) sparse LU factorization of the inner product matrix X

        :param _rhs: right-hand side
        :type _rhs: numpy.ndarray
        :return: Riesz representor of the right-hand side
        :rtype: numpy.ndarray
        """

        if self.M_inner_product_factorization is None:
            try:
                self.M_inner_product_factorization = scipy.sparse.linalg.splu(csc_matrix(self.inner_product_matrix))
            except RuntimeError as e:
                logger.critical(f"Factorization of the inner product matrix failed: {e}")
                raise NumericalFailure(f"The inner product matrix is singular: {e}") from e

        solution = self.M_inner_product_factorization.solve(arr_utils.as_vector(_rhs))
        arr_utils.check_finite(solution, "Riesz representor")
        return solution

    def compute_Fq_representors(self):
        """Method which computes the Riesz representors of the right-hand side templates, if not available yet
        """

        if len(self.M_Fq_representor) == self.M_registry.qf:
            return self.M_Fq_representor

        self.M_Fq_representor = [self.inner_product_solve(self.get_F_q(q)) for q in range(self.M_registry.qf)]
        return self.M_Fq_representor

    def get_Fq_representor(self, _q):
        return self.compute_Fq_representors()[_q]

    def compute_Fq_representor_norms(self, _compute_inner_products=True):
        """Method which computes the matrix of the inner products between the Riesz representors of the right-hand
        side templates. The computation is performed only once, unless the norms are invalidated.

        :param _compute_inner_products: if False, only the representors are computed. Defaults to True
        :type _compute_inner_products: bool
        :return: matrix of the inner products, of size Qf x Qf
        :rtype: numpy.ndarray
        """

        if self.M_Fq_representor_norms_computed:
            return self.M_Fq_representor_norms.copy()

        self.check_affine_storage()
        representors = self.compute_Fq_representors()

        if not _compute_inner_products:
            return self.M_Fq_representor_norms.copy()

        qf = self.M_registry.qf
        norms = np.zeros((qf, qf))
        for q1 in range(qf):
            X_rep = self.inner_product_matrix.dot(representors[q1])
            for q2 in range(q1, qf):
                norms[q1, q2] = norms[q2, q1] = representors[q2].dot(X_rep)

        self.M_Fq_representor_norms = norms
        self.M_Fq_representor_norms_computed = True

        logger.debug(f"Computed the {qf}x{qf} matrix of right-hand side representor norms")
        return norms.copy()

    def invalidate_Fq_representor_norms(self):
        self.M_Fq_representor = []
        self.M_Fq_representor_norms = np.zeros((0, 0))
        self.M_Fq_representor_norms_computed = False
        return

    def compute_output_dual_norms(self):
        """Method which computes, for each output, the matrix of the inner products between the Riesz
        representors of its templates. The computation is performed only once.

        :return: one Ql x Ql matrix per output
        :rtype: list[numpy.ndarray]
        """

        if self.M_output_dual_norms_computed:
            return [norms.copy() for norms in self.M_output_dual_norms]

        self.check_affine_storage()

        self.M_output_dual_norms = []
        for n in range(self.M_registry.n_outputs):
            ql = self.M_registry.get_ql(n)
            representors = [self.inner_product_solve(self.M_registry.get_output_vector(n, q_l))
                            for q_l in range(ql)]
            norms = np.zeros((ql, ql))
            for q1 in range(ql):
                X_rep = self.inner_product_matrix.dot(representors[q1])
                for q2 in range(q1, ql):
                    norms[q1, q2] = norms[q2, q1] = representors[q2].dot(X_rep)
            self.M_output_dual_norms.append(norms)

        self.M_output_dual_norms_computed = True
        return [norms.copy() for norms in self.M_output_dual_norms]

    def eval_output_dual_norm(self, _n, _param):
        """Method which evaluates the dual norm of the n-th output functional at '_param'

        :param _n: index of the output
        :type _n: int
        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: dual norm of the output
        :rtype: float
        """

        if not self.M_output_dual_norms_computed:
            self.compute_output_dual_norms()
        norms = self.M_output_dual_norms[_n]
        theta = self.M_registry.get_theta_l(_n, _param)
        return float(np.sqrt(max(theta.dot(norms.dot(theta)), 0.0)))

    def clear(self):
        """Method which discards every assembled and cached quantity
        """
        self.M_Nh = 0
        self.M_inner_product_matrix = None
        self.M_inner_product_factorization = None
        self.M_non_dirichlet_inner_product_matrix = None
        self.M_constraint_matrix = None
        self.invalidate_Fq_representor_norms()
        self.M_output_dual_norms = []
        self.M_output_dual_norms_computed = False
        self.M_affine_storage_initialized = False
        return


__all__ = [
    "OfflineAssembler"
]
