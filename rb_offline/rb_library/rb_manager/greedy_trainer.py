#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Greedy construction of a certified reduced basis. At every iteration the a posteriori error bound is evaluated on the
training set with the current basis, the worst approximated parameter is selected, the truth problem is solved there
and the orthonormalized snapshot enriches the basis; the reduced data are then updated incrementally.
"""

import os
import time
from enum import Enum
from itertools import chain

import numpy as np

from rb_offline.errors import ConfigurationError, IndexOutOfRangeError
from rb_offline.pde_problem.training_specifics import build_training_specifics, parameter_ranges_from_specifics
from rb_offline.rb_library.affine_decomposition.offline_assembler import OfflineAssembler
from rb_offline.rb_library.basis_manager import BasisManager
from rb_offline.rb_library.offline_data_io import OfflineDataIO, RBDataIO
from rb_offline.rb_library.rb_evaluation import RbEvaluation
from rb_offline.rb_library.training_set import TrainingSetSampler
from rb_offline.tpl_managers.communicator import SerialCommunicator
import rb_offline.utils.array_utils as arr_utils

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


class TrainingStatus(Enum):
    UNINITIALIZED = 0
    TRAINING_SET_READY = 1
    ITERATING = 2
    CONVERGED = 3
    ABORTED = 4


def default_greedy_termination_test(_max_error_bound, _count, _trainer):
    """Default stopping criterion of the greedy algorithm: the maximum error bound is below the training tolerance
    or the basis has reached Nmax functions

    :param _max_error_bound: maximum error bound over the training set
    :type _max_error_bound: float
    :param _count: number of completed greedy iterations
    :type _count: int
    :param _trainer: the trainer running the greedy algorithm
    :type _trainer: GreedyTrainer
    :return: True if the greedy algorithm has to stop
    :rtype: bool
    """

    if _max_error_bound < _trainer.training_tolerance:
        logger.info(f"Specified error tolerance {_trainer.training_tolerance:.3e} reached")
        return True

    if _trainer.get_n_basis_functions() >= _trainer.Nmax:
        logger.info(f"Maximum number of basis functions Nmax = {_trainer.Nmax} reached")
        return True

    return False


class GreedyTrainer:
    """Class which drives the Offline stage of the certified reduced basis method: generation of the training set,
    assembly of the affine templates, greedy enrichment of the basis and storage of the offline data
    """

    def __init__(self, _fom_problem, _registry, _communicator=None, _training_specifics=None,
                 _greedy_termination_test=None):
        """Initialization of the GreedyTrainer class. The affine decomposition of the FOM problem is attached to
        the registry here.

        :param _fom_problem: FOM problem, acting as truth solver
        :type _fom_problem: FomProblem
        :param _registry: affine decomposition registry of the problem
        :type _registry: AffineDecompositionRegistry
        :param _communicator: communicator of the workers. If None, a serial communicator is used. Defaults to None
        :type _communicator: Communicator or NoneType
        :param _training_specifics: training specifics, merged with the default ones. Defaults to None
        :type _training_specifics: dict or NoneType
        :param _greedy_termination_test: stopping criterion, called as (max error bound, count, trainer). If None,
          :func:`~greedy_trainer.default_greedy_termination_test` is used. Defaults to None
        :type _greedy_termination_test: callable or NoneType
        """

        self.M_fom_problem = _fom_problem
        self.M_registry = _registry
        self.M_communicator = _communicator if _communicator is not None else SerialCommunicator()
        self.M_training_specifics = build_training_specifics(_training_specifics)

        self.M_greedy_termination_test = _greedy_termination_test if _greedy_termination_test is not None \
            else default_greedy_termination_test

        specifics = self.M_training_specifics
        self.M_sampler = TrainingSetSampler(_fom_problem.parameter_handler, self.M_communicator,
                                            _serial_training_set=specifics['serial_training_set'],
                                            _random_seed=specifics['random_seed'])
        self.M_assembler = OfflineAssembler(_registry, _fom_problem.external_engine,
                                            _dirichlet_dofs=_fom_problem.get_dirichlet_dofs(),
                                            _store_non_dirichlet_operators=specifics['store_non_dirichlet_operators'],
                                            _constrained_problem=specifics['constrained_problem'],
                                            _low_memory_mode=specifics['low_memory_mode'])
        self.M_basis_manager = BasisManager()
        self.M_rb_evaluation = RbEvaluation(_registry, self.M_basis_manager,
                                            _stability_lower_bound=_fom_problem.get_stability_lower_bound,
                                            _return_rel_error_bound=specifics['return_rel_error_bound'])
        self.M_data_io = OfflineDataIO(self.M_rb_evaluation, self.M_communicator)

        self.M_status = TrainingStatus.UNINITIALIZED
        self.M_training_error_bounds = np.zeros(0)
        self.M_greedy_error_bounds = []
        self.M_truth_solution = None
        self.M_truth_outputs = None

        self.M_fom_problem.define_affine_decomposition(self.M_registry)
        self.M_fom_problem.bind_assembler(self.M_assembler)

        return

    @property
    def status(self):
        return self.M_status

    @property
    def fom_problem(self):
        return self.M_fom_problem

    @property
    def registry(self):
        return self.M_registry

    @property
    def communicator(self):
        return self.M_communicator

    @property
    def parameter_handler(self):
        return self.M_fom_problem.parameter_handler

    @property
    def sampler(self):
        return self.M_sampler

    @property
    def assembler(self):
        return self.M_assembler

    @property
    def basis_manager(self):
        return self.M_basis_manager

    @property
    def rb_evaluation(self):
        return self.M_rb_evaluation

    @property
    def data_io(self):
        return self.M_data_io

    @property
    def training_specifics(self):
        return dict(self.M_training_specifics)

    @property
    def Nmax(self):
        return self.M_training_specifics['Nmax']

    def set_Nmax(self, _Nmax):
        if isinstance(_Nmax, bool) or not isinstance(_Nmax, (int, np.integer)) or _Nmax < 1:
            raise ConfigurationError(f"Nmax must be a positive integer, got {_Nmax!r}")
        self.M_training_specifics['Nmax'] = int(_Nmax)
        return

    @property
    def delta_N(self):
        return self.M_training_specifics['delta_N']

    @property
    def training_tolerance(self):
        return self.M_training_specifics['training_tolerance']

    def set_training_tolerance(self, _training_tolerance):
        if _training_tolerance <= 0:
            raise ConfigurationError(f"The training tolerance must be positive, got {_training_tolerance}")
        self.M_training_specifics['training_tolerance'] = _training_tolerance
        return

    @property
    def quiet_mode(self):
        return self.M_training_specifics['quiet_mode']

    @quiet_mode.setter
    def quiet_mode(self, _quiet_mode):
        self.M_training_specifics['quiet_mode'] = bool(_quiet_mode)

    @property
    def greedy_termination_test(self):
        return self.M_greedy_termination_test

    @greedy_termination_test.setter
    def greedy_termination_test(self, _greedy_termination_test):
        self.M_greedy_termination_test = _greedy_termination_test

    @property
    def training_error_bounds(self):
        return self.M_training_error_bounds.copy()

    @property
    def greedy_error_bounds(self):
        return list(self.M_greedy_error_bounds)

    @property
    def truth_solution(self):
        return self.M_truth_solution

    @property
    def truth_outputs(self):
        return self.M_truth_outputs

    def get_n_basis_functions(self):
        return self.M_rb_evaluation.n_basis_functions

    def _log(self, _message):
        if self.quiet_mode:
            logger.debug(_message)
        else:
            logger.info(_message)
        return

    def _check_can_configure(self):
        if self.M_status in (TrainingStatus.ITERATING, TrainingStatus.CONVERGED, TrainingStatus.ABORTED):
            logger.critical(f"Impossible to configure the training set in status {self.M_status.name}")
            raise ConfigurationError(f"The training set cannot be changed in status {self.M_status.name}; "
                                     f"call clear() first")
        return

    def initialize_training_parameters(self, _mu_min=None, _mu_max=None, _n_training_samples=None,
                                       _log_param_scale=None, _deterministic=None, _discrete_values=None):
        """Method which generates the training set and allocates the offline data structures. Missing arguments are
        taken from the training specifics.

        :param _mu_min: minimum values of the parameters. Defaults to None
        :type _mu_min: dict[str, float] or NoneType
        :param _mu_max: maximum values of the parameters. Defaults to None
        :type _mu_max: dict[str, float] or NoneType
        :param _n_training_samples: global number of training samples. Defaults to None
        :type _n_training_samples: int or NoneType
        :param _log_param_scale: log-scaling flag of each parameter. Defaults to None
        :type _log_param_scale: dict[str, bool] or NoneType
        :param _deterministic: deterministic or random training set. Defaults to None
        :type _deterministic: bool or NoneType
        :param _discrete_values: admissible values of the discrete parameters. Defaults to None
        :type _discrete_values: dict[str, list[float]] or NoneType
        """

        self._check_can_configure()

        if (_mu_min is None) != (_mu_max is None):
            raise ConfigurationError("Both the minimum and the maximum parameters must be provided")

        if _mu_min is None:
            ranges = parameter_ranges_from_specifics(self.M_training_specifics)
            _mu_min = {param_range.name: param_range.min for param_range in ranges}
            _mu_max = {param_range.name: param_range.max for param_range in ranges}
            if _log_param_scale is None:
                _log_param_scale = {param_range.name: param_range.log_scaling for param_range in ranges}
            if _discrete_values is None:
                _discrete_values = {param_range.name: param_range.discrete_values
                                    for param_range in ranges if param_range.is_discrete}

        n_training_samples = self.M_training_specifics['n_training_samples'] if _n_training_samples is None \
            else _n_training_samples
        deterministic = self.M_training_specifics['deterministic'] if _deterministic is None else _deterministic

        self.M_sampler.initialize_training_parameters(_mu_min, _mu_max, n_training_samples,
                                                      _log_param_scale=_log_param_scale,
                                                      _deterministic=deterministic,
                                                      _discrete_values=_discrete_values)
        self.allocate_data_structures()

        self.M_status = TrainingStatus.TRAINING_SET_READY
        return

    def load_training_set(self, _new_training_set):
        """Method which replaces the local training set with externally supplied values

        :param _new_training_set: local values of each parameter
        :type _new_training_set: dict[str, list[float] or numpy.ndarray]
        """

        self._check_can_configure()
        self.M_sampler.load_training_set(_new_training_set)
        self.allocate_data_structures()

        self.M_status = TrainingStatus.TRAINING_SET_READY
        return

    def allocate_data_structures(self):
        """Method which finalizes the affine decomposition, assembles the truth templates and allocates the reduced
        data, if not done yet
        """

        if self.M_assembler.is_affine_storage_initialized:
            return

        self.M_assembler.initialize_affine_storage()
        self.M_basis_manager.set_inner_product(self.M_assembler.inner_product_matrix)
        self.M_rb_evaluation.initialize_data_structures()
        return

    def compute_basis_independent_terms(self):
        self.M_rb_evaluation.set_Fq_representor_norms(self.M_assembler.compute_Fq_representor_norms())
        self.M_rb_evaluation.set_output_dual_norms(self.M_assembler.compute_output_dual_norms())
        return

    def train_reduced_basis(self, _directory=None):
        """Method which runs the greedy algorithm until the termination test is satisfied. Any error raised during
        an iteration aborts the training and is propagated; the data written so far remain valid.

        :param _directory: directory where the offline data are written. If None, the 'offline_data_directory' of
          the training specifics is used. Defaults to None
        :type _directory: str or NoneType
        :return: maximum error bound over the training set at the end of the training
        :rtype: float
        """

        if self.M_status in (TrainingStatus.CONVERGED, TrainingStatus.ABORTED):
            logger.critical(f"Training cannot be restarted from status {self.M_status.name}")
            raise ConfigurationError(f"Training cannot be restarted from status {self.M_status.name}; "
                                     f"call clear() first")
        if self.M_status != TrainingStatus.TRAINING_SET_READY:
            raise ConfigurationError("The training parameters must be initialized before training")
        if self.M_sampler.get_n_training_samples() == 0:
            raise ConfigurationError("Impossible to train a reduced basis on an empty training set")

        directory = _directory if _directory is not None else self.M_training_specifics['offline_data_directory']

        self.M_status = TrainingStatus.ITERATING
        start = time.time()

        try:
            max_error_bound = self._run_greedy(directory)
        except Exception:
            self.M_status = TrainingStatus.ABORTED
            logger.critical(f"Greedy training aborted with {self.get_n_basis_functions()} basis functions")
            raise

        self.M_status = TrainingStatus.CONVERGED
        logger.info(f"Greedy training completed in {time.time() - start:.2f} s with "
                    f"{self.get_n_basis_functions()} basis functions; maximum error bound {max_error_bound:.6e}")

        if directory is not None:
            self.write_offline_data_to_files(directory)

        return max_error_bound

    def _run_greedy(self, _directory):
        self.compute_basis_independent_terms()

        write_data = self.M_training_specifics['write_data_during_training'] and _directory is not None
        if write_data:
            self.write_offline_data_to_files(_directory, RBDataIO.BASIS_INDEPENDENT)

        count = 0
        max_error_bound = None

        while True:
            self._log(f"---- Basis dimension: {self.get_n_basis_functions()} ----")

            if count > 0 or self.get_n_basis_functions() > 0 or \
                    self.M_training_specifics['use_empty_RB_solve_in_greedy']:
                self._log("Performing RB solves on training set")
                max_index, max_error_bound = self.compute_max_error_bound()
                self.M_greedy_error_bounds.append(max_error_bound)
                self._log(f"Maximum error bound is {max_error_bound:.6e}")

                if self.M_greedy_termination_test(max_error_bound, count, self):
                    break

                selected_indices = self.select_greedy_indices(max_index)
            else:
                selected_indices = [0]

            n_accepted = 0
            for index in selected_indices:
                self.M_sampler.set_params_from_training_set_and_broadcast(index)
                self._log(f"Performing truth solve at parameter: {self.parameter_handler.param}")
                self.truth_solve()

                if self.enrich_RB_space():
                    self.update_greedy_param_list()
                    n_accepted += 1

            if n_accepted == 0:
                logger.warning("No new basis function could be added to the reduced basis: stopping the greedy "
                               "algorithm")
                if max_error_bound is None:
                    # first snapshot rejected: report the bound of the current basis
                    _, max_error_bound = self.compute_max_error_bound()
                    self.M_greedy_error_bounds.append(max_error_bound)
                break

            self.update_system()

            if write_data:
                self.write_offline_data_to_files(_directory, RBDataIO.BASIS_DEPENDENT)

            count += 1

        return max_error_bound

    def compute_max_error_bound(self):
        """Method which evaluates the error bound at every local training parameter with the current basis and
        returns the global maximum together with its training index

        :return: global training index and maximum error bound
        :rtype: tuple(int, float)
        """

        N = self.get_n_basis_functions()
        training_set = self.M_sampler.training_set

        error_bounds = np.zeros(training_set.n_local)
        for cnt, (index, param) in enumerate(training_set.local_samples()):
            error_bounds[cnt] = self.M_rb_evaluation.RB_solve(param, N)
            logger.debug(f"Training parameter {index}: error bound {error_bounds[cnt]:.6e}")

        self.M_training_error_bounds = error_bounds

        if training_set.n_local > 0:
            idx_max = int(np.argmax(error_bounds))
            error_pair = (training_set.first_local_index + idx_max, float(error_bounds[idx_max]))
        else:
            error_pair = (-1, -np.inf)

        return self.M_sampler.get_global_max_error_pair(error_pair)

    def select_greedy_indices(self, _max_index):
        """Method which selects the training indices of the next truth solves: the maximizer of the error bound
        and, if delta_N > 1, the following largest error bounds (ties broken by lowest index), without exceeding Nmax

        :param _max_index: training index of the maximum error bound
        :type _max_index: int
        :return: selected global training indices
        :rtype: list[int]
        """

        n_selected = min(self.delta_N, self.Nmax - self.get_n_basis_functions())
        if n_selected <= 1:
            return [_max_index]

        first_index = self.M_sampler.training_set.first_local_index
        local_order = np.argsort(-self.M_training_error_bounds, kind='stable')[:n_selected]
        local_candidates = [(float(self.M_training_error_bounds[i]), first_index + int(i)) for i in local_order]

        candidates = sorted(set(chain.from_iterable(self.M_communicator.allgather(local_candidates))),
                            key=lambda candidate: (-candidate[0], candidate[1]))
        return [index for _, index in candidates[:n_selected]]

    def truth_solve(self, _param=None):
        """Method which solves the truth problem at '_param' (at the current parameter if None)

        :param _param: value of the parameter. Defaults to None
        :type _param: dict[str, float] or NoneType
        :return: truth solution and outputs
        :rtype: tuple(numpy.ndarray, numpy.ndarray)
        """

        param = self.parameter_handler.param if _param is None else _param
        solution, outputs = self.M_fom_problem.solve(param)
        arr_utils.check_finite(solution, "truth solution")

        self.M_truth_solution = solution
        self.M_truth_outputs = outputs
        return solution, outputs

    def enrich_RB_space(self):
        """Method which adds the orthonormalized last truth solution to the reduced basis

        :return: True if the basis has been enriched
        :rtype: bool
        """

        if self.M_truth_solution is None:
            raise ConfigurationError("A truth solve is needed before enriching the reduced basis")
        return self.M_basis_manager.append_and_orthogonalize(self.M_truth_solution)

    def update_greedy_param_list(self):
        self.M_rb_evaluation.greedy_params.append(self.parameter_handler.param)
        return

    def get_greedy_parameter(self, _i):
        greedy_params = self.M_rb_evaluation.greedy_params
        if not 0 <= _i < len(greedy_params):
            raise IndexOutOfRangeError(f"Greedy parameter index {_i} out of range [0, {len(greedy_params)})")
        return dict(greedy_params[_i])

    def update_system(self):
        """Method which updates the reduced matrices and the residual terms after the basis has been enriched
        """
        self.update_RB_system_matrices()
        self.update_residual_terms()
        return

    def update_RB_system_matrices(self):
        """Method which projects the affine templates onto the enlarged basis, computing only the new rows and
        columns of the reduced matrices and the new entries of the reduced vectors
        """

        rb_eval = self.M_rb_evaluation
        N_old = rb_eval.n_basis_functions

        RB_Aq_vector = [self.M_basis_manager.project_operator(self.M_assembler.get_A_q(q),
                                                              rb_eval.RB_Aq_vector[q] if N_old > 0 else None)
                        for q in range(self.M_registry.qa)]
        RB_Fq_vector = [np.concatenate([rb_eval.RB_Fq_vector[q][:N_old],
                                        self.M_basis_manager.project_vector(self.M_assembler.get_F_q(q), N_old)])
                        for q in range(self.M_registry.qf)]
        RB_output_vectors = [[np.concatenate([rb_eval.RB_output_vectors[n][q_l][:N_old],
                                              self.M_basis_manager.project_vector(
                                                  self.M_registry.get_output_vector(n, q_l), N_old)])
                              for q_l in range(self.M_registry.get_ql(n))]
                             for n in range(self.M_registry.n_outputs)]

        RB_inner_product_matrix = None
        if self.M_training_specifics['compute_RB_inner_product']:
            previous = rb_eval.RB_inner_product_matrix
            RB_inner_product_matrix = self.M_basis_manager.project_operator(
                self.M_assembler.inner_product_matrix,
                previous if N_old > 0 and previous.shape[0] == N_old else None)

        rb_eval.set_reduced_system(RB_Aq_vector, RB_Fq_vector, RB_output_vectors,
                                   _RB_inner_product_matrix=RB_inner_product_matrix)
        return

    def update_residual_terms(self):
        """Method which computes the Riesz representors of A_q applied to the new basis functions and the new
        entries of the basis dependent residual terms
        """

        rb_eval = self.M_rb_evaluation
        qa, qf = self.M_registry.qa, self.M_registry.qf
        N = self.M_basis_manager.N

        N_old = rb_eval.Aq_Aq_representor_norms.shape[2]
        if any(len(representors) != N_old for representors in rb_eval.Aq_representor) or \
                len(rb_eval.Aq_representor) != qa:
            N_old = 0
        Aq_representor = [list(rb_eval.Aq_representor[q][:N_old]) if N_old > 0 else [] for q in range(qa)]

        for q in range(qa):
            A_q = self.M_assembler.get_A_q(q)
            for i in range(N_old, N):
                Aq_representor[q].append(
                    self.M_assembler.inner_product_solve(-A_q.dot(self.M_basis_manager.get_basis_function(i))))

        inner_product = self.M_assembler.inner_product_matrix

        Fq_Aq_representor_norms = np.zeros((qf, qa, N))
        Fq_Aq_representor_norms[:, :, :N_old] = rb_eval.Fq_Aq_representor_norms[:, :, :N_old]
        for q_f in range(qf):
            X_Fq = inner_product.dot(self.M_assembler.get_Fq_representor(q_f))
            for q_a in range(qa):
                for i in range(N_old, N):
                    Fq_Aq_representor_norms[q_f, q_a, i] = Aq_representor[q_a][i].dot(X_Fq)

        Aq_Aq_representor_norms = np.zeros((qa, qa, N, N))
        Aq_Aq_representor_norms[:, :, :N_old, :N_old] = rb_eval.Aq_Aq_representor_norms[:, :, :N_old, :N_old]
        for q1 in range(qa):
            for i in range(N_old, N):
                X_Aq = inner_product.dot(Aq_representor[q1][i])
                for q2 in range(qa):
                    for j in range(N):
                        value = Aq_representor[q2][j].dot(X_Aq)
                        Aq_Aq_representor_norms[q1, q2, i, j] = value
                        Aq_Aq_representor_norms[q2, q1, j, i] = value

        rb_eval.set_residual_terms(Fq_Aq_representor_norms, Aq_Aq_representor_norms, Aq_representor)
        return

    def recompute_all_residual_terms(self):
        """Method which recomputes from scratch both the basis independent and the basis dependent residual terms
        """

        qa, qf = self.M_registry.qa, self.M_registry.qf

        self.M_assembler.invalidate_Fq_representor_norms()
        self.compute_basis_independent_terms()

        self.M_rb_evaluation.set_residual_terms(np.zeros((qf, qa, 0)), np.zeros((qa, qa, 0, 0)),
                                                [[] for _ in range(qa)])
        self.update_residual_terms()
        return

    def _training_fields(self):
        return {
            'greedy_error_bounds': np.array(self.M_greedy_error_bounds, dtype=float),
            'n_training_samples': self.M_sampler.get_n_training_samples() if self.M_sampler.is_initialized else 0,
            'training_tolerance': self.training_tolerance,
            'Nmax': self.Nmax,
            'status': self.M_status.name
        }

    def write_offline_data_to_files(self, _directory=None, _io_flag=RBDataIO.ALL_DATA):
        """Method which writes the offline data. Every worker must call it.

        :param _directory: target directory. If None, the 'offline_data_directory' of the training specifics is
          used. Defaults to None
        :type _directory: str or NoneType
        :param _io_flag: which part of the data is written. Defaults to RBDataIO.ALL_DATA
        :type _io_flag: RBDataIO
        """

        directory = _directory if _directory is not None else self.M_training_specifics['offline_data_directory']
        if directory is None:
            raise ConfigurationError("No directory has been given to write the offline data")

        self.M_data_io.write(directory, _io_flag, _extra_fields=self._training_fields())
        return

    def read_offline_data_from_files(self, _directory=None, _io_flag=RBDataIO.ALL_DATA):
        """Method which restores the offline data, e.g. to resume the training

        :param _directory: source directory. If None, the 'offline_data_directory' of the training specifics is
          used. Defaults to None
        :type _directory: str or NoneType
        :param _io_flag: which part of the data is read. Defaults to RBDataIO.ALL_DATA
        :type _io_flag: RBDataIO
        :return: training information stored with the data
        :rtype: dict
        """

        directory = _directory if _directory is not None else self.M_training_specifics['offline_data_directory']
        if directory is None:
            raise ConfigurationError("No directory has been given to read the offline data")

        training = self.M_data_io.read(directory, _io_flag)
        if 'greedy_error_bounds' in training:
            self.M_greedy_error_bounds = [float(value) for value in np.atleast_1d(training['greedy_error_bounds'])]
        return training

    def print_rb_offline_summary(self):
        """Printing method, which logs the state of the greedy training:

            * the status of the training and the size of the training set
            * the number of basis functions and the greedy settings
            * the affine decomposition of the problem

        """

        n_training_samples = self.M_sampler.get_n_training_samples() if self.M_sampler.is_initialized else 0

        logger.info(f"\n------------- RB OFFLINE SUMMARY -------------\n"
                    f"Training status: {self.M_status.name}\n"
                    f"Number of training samples: {n_training_samples}\n"
                    f"Number of basis functions: {self.get_n_basis_functions()}\n"
                    f"Nmax: {self.Nmax}, delta_N: {self.delta_N}\n"
                    f"Training tolerance: {self.training_tolerance:.3e}\n"
                    f"Greedy error bounds: {self.M_greedy_error_bounds}")

        self.parameter_handler.print_parameters()
        self.M_registry.print_ad_summary()
        return

    def clear(self):
        """Method which wipes the basis, the assembled and reduced data and the training set, so that the training
        can be run again. The attached affine terms are kept.
        """

        logger.debug("Resetting the greedy trainer")

        self.M_basis_manager.clear()
        self.M_rb_evaluation.initialize_data_structures(0, 0, [])
        self.M_assembler.clear()
        self.M_registry.clear_affine_storage()
        self.M_sampler.clear()

        self.M_training_error_bounds = np.zeros(0)
        self.M_greedy_error_bounds = []
        self.M_truth_solution = None
        self.M_truth_outputs = None

        self.M_status = TrainingStatus.UNINITIALIZED
        return


__all__ = [
    "TrainingStatus",
    "default_greedy_termination_test",
    "GreedyTrainer"
]
