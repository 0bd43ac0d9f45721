#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Affine decomposition of a parametrized problem:

    A(mu) = sum_q theta^a_q(mu) A_q,    F(mu) = sum_q theta^f_q(mu) F_q,    L_n(mu) = sum_q theta^l_{n,q}(mu) L_{n,q}

The registry stores the theta functions and the assembly routines of the parameter-independent templates, in attach
order. Terms contributed by EIM systems are appended after the hand-attached ones and their number is queried from
the EIM systems every time, since it changes whenever an EIM system is retrained. The assembled templates are stored
here as well, filled by the OfflineAssembler.
"""

import numpy as np
import os

from rb_offline.errors import ConfigurationError, IndexOutOfRangeError, NotAttachedError

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


def _as_list(_items):
    if callable(_items):
        return [_items]
    return list(_items)


class AffineDecompositionRegistry:
    """Class which owns the affine expansions of the operator, of the right-hand side and of the outputs, together
    with the inner product and constraint assembly routines. Attached routines and EIM systems are borrowed: the
    registry never modifies nor destroys them.
    """

    def __init__(self):
        """Initialization of an empty registry
        """

        self.M_theta_a = []
        self.M_assembly_a = []
        self.M_theta_f = []
        self.M_assembly_f = []
        self.M_theta_l = []
        self.M_assembly_l = []

        self.M_A_EIM_systems = []
        self.M_F_EIM_systems = []

        self.M_inner_prod_assembly = None
        self.M_constraint_assembly = None

        self.M_finalized = False

        self.M_feAffineAq = []
        self.M_feAffineFq = []
        self.M_feAffineLq = []
        self.M_feNonDirichletAq = []
        self.M_feNonDirichletFq = []

        return

    def _check_not_finalized(self, _what):
        if self.M_finalized:
            logger.critical(f"Impossible to attach {_what}: the affine decomposition has already been finalized")
            raise ConfigurationError(f"Cannot attach {_what} after the affine decomposition has been finalized; "
                                     f"call clear() first")
        return

    @staticmethod
    def _check_callables(_what, *_functions):
        for function in _functions:
            if not callable(function):
                raise ConfigurationError(f"The {_what} must be callable, got {type(function).__name__}")
        return

    def attach_A_q(self, _theta_q_a, _A_q_assembly):
        """Method which appends an affine term to the operator

        :param _theta_q_a: theta function, mapping a parameter value to a scalar
        :type _theta_q_a: callable
        :param _A_q_assembly: zero-argument routine returning the parameter-independent operator
        :type _A_q_assembly: callable
        :return: index of the new term
        :rtype: int
        """

        self._check_not_finalized("an operator term")
        self._check_callables("operator theta function and assembly routine", _theta_q_a, _A_q_assembly)

        self.M_theta_a.append(_theta_q_a)
        self.M_assembly_a.append(_A_q_assembly)
        return len(self.M_theta_a) - 1

    def attach_F_q(self, _theta_q_f, _F_q_assembly):
        """Method which appends an affine term to the right-hand side

        :param _theta_q_f: theta function, mapping a parameter value to a scalar
        :type _theta_q_f: callable
        :param _F_q_assembly: zero-argument routine returning the parameter-independent vector
        :type _F_q_assembly: callable
        :return: index of the new term
        :rtype: int
        """

        self._check_not_finalized("a right-hand side term")
        self._check_callables("right-hand side theta function and assembly routine", _theta_q_f, _F_q_assembly)

        self.M_theta_f.append(_theta_q_f)
        self.M_assembly_f.append(_F_q_assembly)
        return len(self.M_theta_f) - 1

    def attach_output(self, _theta_q_l, _L_q_assembly):
        """Method which appends an output functional, itself a sum of Q_l affine terms

        :param _theta_q_l: theta function(s) of the output
        :type _theta_q_l: callable or list[callable]
        :param _L_q_assembly: assembly routine(s) of the output vectors
        :type _L_q_assembly: callable or list[callable]
        :return: index of the new output
        :rtype: int
        """

        self._check_not_finalized("an output")

        thetas = _as_list(_theta_q_l)
        assemblies = _as_list(_L_q_assembly)
        if len(thetas) != len(assemblies) or not thetas:
            raise ConfigurationError(f"An output needs the same positive number of theta functions and assembly "
                                     f"routines, got {len(thetas)} and {len(assemblies)}")
        self._check_callables("output theta functions and assembly routines", *thetas, *assemblies)

        self.M_theta_l.append(thetas)
        self.M_assembly_l.append(assemblies)
        return len(self.M_theta_l) - 1

    def attach_A_EIM_operators(self, _eim_system, _eim_assembly):
        """Method which registers an EIM system as a source of operator terms, one per EIM basis function

        :param _eim_system: EIM system; its coefficients are the theta functions of the terms
        :type _eim_system: EimSystem
        :param _eim_assembly: routine mapping an EIM basis function to the operator it induces
        :type _eim_assembly: callable
        """

        self._check_not_finalized("EIM operators")
        self._check_callables("EIM operator assembly routine", _eim_assembly)

        self.M_A_EIM_systems.append((_eim_system, _eim_assembly))
        return

    def attach_F_EIM_vectors(self, _eim_system, _eim_assembly):
        """Method which registers an EIM system as a source of right-hand side terms, one per EIM basis function

        :param _eim_system: EIM system; its coefficients are the theta functions of the terms
        :type _eim_system: EimSystem
        :param _eim_assembly: routine mapping an EIM basis function to the vector it induces
        :type _eim_assembly: callable
        """

        self._check_not_finalized("EIM vectors")
        self._check_callables("EIM vector assembly routine", _eim_assembly)

        self.M_F_EIM_systems.append((_eim_system, _eim_assembly))
        return

    def attach_inner_prod_assembly(self, _inner_prod_assembly):
        self._check_not_finalized("the inner product assembly")
        self._check_callables("inner product assembly routine", _inner_prod_assembly)
        self.M_inner_prod_assembly = _inner_prod_assembly
        return

    def attach_constraint_assembly(self, _constraint_assembly):
        self._check_not_finalized("the constraint assembly")
        self._check_callables("constraint assembly routine", _constraint_assembly)
        self.M_constraint_assembly = _constraint_assembly
        return

    def finalize(self):
        """Method which freezes the registry: no further term can be attached until clear() is called
        """
        self.M_finalized = True
        logger.debug(f"Affine decomposition finalized with Qa = {self.qa}, Qf = {self.qf}, "
                     f"{self.n_outputs} outputs")
        return

    @property
    def is_finalized(self):
        return self.M_finalized

    @property
    def qa(self):
        """Getter method, which returns the number of affine components of the operator, EIM terms included

        :return: number of affine components of the operator
        :rtype: int
        """
        return len(self.M_theta_a) + self.get_n_A_EIM_functions()

    @property
    def qf(self):
        """Getter method, which returns the number of affine components of the right-hand side, EIM terms included

        :return: number of affine components of the right-hand side
        :rtype: int
        """
        return len(self.M_theta_f) + self.get_n_F_EIM_functions()

    @property
    def n_outputs(self):
        return len(self.M_theta_l)

    def get_ql(self, _n):
        self._check_output_index(_n)
        return len(self.M_theta_l[_n])

    def get_n_A_EIM_functions(self):
        return sum(eim_system.get_n_basis_functions() for eim_system, _ in self.M_A_EIM_systems)

    def get_n_F_EIM_functions(self):
        return sum(eim_system.get_n_basis_functions() for eim_system, _ in self.M_F_EIM_systems)

    @property
    def has_inner_prod_assembly(self):
        return self.M_inner_prod_assembly is not None

    @property
    def has_constraint_assembly(self):
        return self.M_constraint_assembly is not None

    @staticmethod
    def _check_q(_kind, _q, _Q):
        if not 0 <= _q < _Q:
            logger.critical(f"Affine index {_q} out of range for {_kind} (Q = {_Q})")
            raise IndexOutOfRangeError(f"Affine index {_q} out of range for {_kind}: Q = {_Q}")
        return

    def _check_output_index(self, _n):
        if self.n_outputs == 0:
            raise NotAttachedError("No output has been attached")
        if not 0 <= _n < self.n_outputs:
            raise IndexOutOfRangeError(f"Output index {_n} out of range [0, {self.n_outputs})")
        return

    @staticmethod
    def _locate_EIM_function(_q_eim, _eim_systems):
        """Map an index among the EIM-contributed terms onto (EIM system index, basis function index)"""
        for cnt, (eim_system, _) in enumerate(_eim_systems):
            n_functions = eim_system.get_n_basis_functions()
            if _q_eim < n_functions:
                return cnt, _q_eim
            _q_eim -= n_functions
        raise IndexOutOfRangeError("EIM term index out of range")

    def is_A_EIM_function(self, _q):
        self._check_q("A", _q, self.qa)
        return _q >= len(self.M_theta_a)

    def is_F_EIM_function(self, _q):
        self._check_q("F", _q, self.qf)
        return _q >= len(self.M_theta_f)

    def get_A_EIM_indices(self, _q):
        """Getter method, which returns the index of the EIM system and of its basis function behind operator term q

        :param _q: index of an EIM-contributed operator term
        :type _q: int
        :return: index of the EIM system and of the basis function
        :rtype: tuple(int, int)
        """
        if not self.is_A_EIM_function(_q):
            raise NotAttachedError(f"Operator term {_q} is not an EIM term")
        return self._locate_EIM_function(_q - len(self.M_theta_a), self.M_A_EIM_systems)

    def get_F_EIM_indices(self, _q):
        if not self.is_F_EIM_function(_q):
            raise NotAttachedError(f"Right-hand side term {_q} is not an EIM term")
        return self._locate_EIM_function(_q - len(self.M_theta_f), self.M_F_EIM_systems)

    def eval_theta_q_a(self, _q, _param):
        """Method which evaluates the q-th operator theta function, routing it to the hand-attached function or to
        the coefficient of the EIM system contributing the term

        :param _q: index of the term
        :type _q: int
        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: value of the theta function
        :rtype: float
        """

        if self.is_A_EIM_function(_q):
            idx_system, idx_function = self.get_A_EIM_indices(_q)
            return self.M_A_EIM_systems[idx_system][0].evaluate_theta(idx_function, _param)
        return float(self.M_theta_a[_q](_param))

    def eval_theta_q_f(self, _q, _param):
        if self.is_F_EIM_function(_q):
            idx_system, idx_function = self.get_F_EIM_indices(_q)
            return self.M_F_EIM_systems[idx_system][0].evaluate_theta(idx_function, _param)
        return float(self.M_theta_f[_q](_param))

    def eval_theta_q_l(self, _n, _q_l, _param):
        self._check_q(f"output {_n}", _q_l, self.get_ql(_n))
        return float(self.M_theta_l[_n][_q_l](_param))

    def evaluate_theta(self, _kind, _q, _param, _n=None):
        """Method which evaluates a theta function of the given kind: 'A' (operator), 'F' (right-hand side) or
        'L' (output '_n')

        :param _kind: kind of the term
        :type _kind: str
        :param _q: index of the term
        :type _q: int
        :param _param: value of the parameter
        :type _param: dict[str, float]
        :param _n: index of the output, only for kind 'L'. Defaults to None
        :type _n: int or NoneType
        :return: value of the theta function
        :rtype: float
        """

        if _kind == 'A':
            return self.eval_theta_q_a(_q, _param)
        elif _kind == 'F':
            return self.eval_theta_q_f(_q, _param)
        elif _kind == 'L':
            if _n is None:
                raise ConfigurationError("The output index is required to evaluate an output theta function")
            return self.eval_theta_q_l(_n, _q, _param)
        else:
            raise ConfigurationError(f"Unknown kind of affine term '{_kind}'; admissible kinds are 'A', 'F', 'L'")

    def get_theta_a(self, _param):
        return np.array([self.eval_theta_q_a(q, _param) for q in range(self.qa)])

    def get_theta_f(self, _param):
        return np.array([self.eval_theta_q_f(q, _param) for q in range(self.qf)])

    def get_theta_l(self, _n, _param):
        return np.array([self.eval_theta_q_l(_n, q, _param) for q in range(self.get_ql(_n))])

    def compute_theta_functions(self, _params, _kind='A', _n=None):
        """Method which evaluates all the theta functions of a given kind over many parameter values

        :param _params: values of the parameter
        :type _params: list[dict[str, float]]
        :param _kind: kind of the terms, one among 'A', 'F' and 'L'. Defaults to 'A'
        :type _kind: str
        :param _n: index of the output, only for kind 'L'. Defaults to None
        :type _n: int or NoneType
        :return: matrix of the theta values, one row per parameter value
        :rtype: numpy.ndarray
        """

        Q = {'A': lambda: self.qa, 'F': lambda: self.qf, 'L': lambda: self.get_ql(_n)}
        if _kind not in Q:
            raise ConfigurationError(f"Unknown kind of affine term '{_kind}'; admissible kinds are 'A', 'F', 'L'")

        theta_matrix = np.zeros((len(_params), Q[_kind]()))
        for cnt, param in enumerate(_params):
            for q in range(theta_matrix.shape[1]):
                theta_matrix[cnt, q] = self.evaluate_theta(_kind, q, param, _n=_n)
        return theta_matrix

    def assemble_A_q(self, _q):
        """Method which runs the assembly routine of the q-th operator template

        :param _q: index of the term
        :type _q: int
        :return: the operator template
        :rtype: scipy.sparse matrix or numpy.ndarray
        """

        if self.is_A_EIM_function(_q):
            idx_system, idx_function = self.get_A_EIM_indices(_q)
            eim_system, eim_assembly = self.M_A_EIM_systems[idx_system]
            return eim_assembly(eim_system.get_basis_function(idx_function))
        return self.M_assembly_a[_q]()

    def assemble_F_q(self, _q):
        if self.is_F_EIM_function(_q):
            idx_system, idx_function = self.get_F_EIM_indices(_q)
            eim_system, eim_assembly = self.M_F_EIM_systems[idx_system]
            return eim_assembly(eim_system.get_basis_function(idx_function))
        return self.M_assembly_f[_q]()

    def assemble_L_q(self, _n, _q_l):
        self._check_q(f"output {_n}", _q_l, self.get_ql(_n))
        return self.M_assembly_l[_n][_q_l]()

    def assemble_inner_product(self):
        if self.M_inner_prod_assembly is None:
            logger.critical("No inner product assembly has been attached")
            raise NotAttachedError("No inner product assembly has been attached")
        return self.M_inner_prod_assembly()

    def assemble_constraint(self):
        if self.M_constraint_assembly is None:
            logger.critical("No constraint assembly has been attached")
            raise NotAttachedError("No constraint assembly has been attached")
        return self.M_constraint_assembly()

    def set_affine_matrices(self, _matrices):
        self.M_feAffineAq = list(_matrices)
        return

    def set_affine_vectors(self, _vectors):
        self.M_feAffineFq = list(_vectors)
        return

    def set_output_vectors(self, _vectors):
        self.M_feAffineLq = [list(output_vectors) for output_vectors in _vectors]
        return

    def set_non_dirichlet_affine_matrices(self, _matrices):
        self.M_feNonDirichletAq = list(_matrices)
        return

    def set_non_dirichlet_affine_vectors(self, _vectors):
        self.M_feNonDirichletFq = list(_vectors)
        return

    @staticmethod
    def _get_stored(_store, _q, _what):
        if not _store:
            raise NotAttachedError(f"The {_what} have not been assembled")
        if not 0 <= _q < len(_store):
            raise IndexOutOfRangeError(f"Index {_q} out of range for the {_what} (stored: {len(_store)})")
        return _store[_q]

    def get_affine_matrix(self, _q):
        return self._get_stored(self.M_feAffineAq, _q, "affine matrices")

    def get_affine_vector(self, _q):
        return self._get_stored(self.M_feAffineFq, _q, "affine vectors")

    def get_output_vector(self, _n, _q_l):
        return self._get_stored(self._get_stored(self.M_feAffineLq, _n, "output vectors"), _q_l, "output vectors")

    def get_non_dirichlet_affine_matrix(self, _q):
        return self._get_stored(self.M_feNonDirichletAq, _q, "non-Dirichlet affine matrices")

    def get_non_dirichlet_affine_vector(self, _q):
        return self._get_stored(self.M_feNonDirichletFq, _q, "non-Dirichlet affine vectors")

    @property
    def n_stored_affine_matrices(self):
        return len(self.M_feAffineAq)

    def print_ad_summary(self):
        """Method to log the main features of the affine decomposition
        """
        logger.info(f"\n------------- AD SUMMARY -------------\n"
                    f"Number of affine decomposition matrices A {self.qa} "
                    f"({self.get_n_A_EIM_functions()} from EIM)\n"
                    f"Number of affine decomposition vectors  f {self.qf} "
                    f"({self.get_n_F_EIM_functions()} from EIM)\n"
                    f"Number of outputs {self.n_outputs}, "
                    f"with Ql = {[len(thetas) for thetas in self.M_theta_l]}\n"
                    f"Finalized: {self.M_finalized}")
        return

    def clear_affine_storage(self):
        """Method which discards the assembled templates and unfreezes the registry, keeping the attached terms
        """
        self.M_feAffineAq = []
        self.M_feAffineFq = []
        self.M_feAffineLq = []
        self.M_feNonDirichletAq = []
        self.M_feNonDirichletFq = []
        self.M_finalized = False
        return

    def clear(self):
        """Method which resets the registry, detaching every term
        """
        self.M_theta_a = []
        self.M_assembly_a = []
        self.M_theta_f = []
        self.M_assembly_f = []
        self.M_theta_l = []
        self.M_assembly_l = []
        self.M_A_EIM_systems = []
        self.M_F_EIM_systems = []
        self.M_inner_prod_assembly = None
        self.M_constraint_assembly = None
        self.clear_affine_storage()
        return


__all__ = [
    "AffineDecompositionRegistry"
]
