"""Tests for the greedy construction of the reduced basis on the thermal block problem."""

import os

import numpy as np
import pytest

from rb_offline.errors import ConfigurationError, IndexOutOfRangeError, NumericalFailure
from rb_offline.rb_library.offline_data_io import OFFLINE_DATA_FILE
from rb_offline.rb_library.rb_manager.greedy_trainer import TrainingStatus, default_greedy_termination_test

from conftest import energy_norm, run_on_workers


def _trained(make_trainer, training_specifics=None, **kwargs):
    trainer = make_trainer(training_specifics, **kwargs)
    trainer.initialize_training_parameters()
    trainer.train_reduced_basis()
    return trainer


class TestGreedyIterations:
    """Test the sequence of greedy iterations."""

    def test_first_truth_solve_at_first_training_sample(self, make_trainer):
        trainer = make_trainer({'Nmax': 1, 'training_tolerance': 1e10})
        trainer.initialize_training_parameters()
        first_sample = trainer.sampler.get_params_from_training_set(0)

        max_error_bound = trainer.train_reduced_basis()

        assert trainer.status == TrainingStatus.CONVERGED
        assert trainer.get_n_basis_functions() == 1
        assert trainer.get_greedy_parameter(0) == pytest.approx(first_sample)
        assert trainer.greedy_error_bounds == [max_error_bound]
        assert trainer.training_error_bounds.shape == (16,)

    def test_empty_basis_solve_in_first_iteration(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 1, 'use_empty_RB_solve_in_greedy': True})

        assert trainer.get_n_basis_functions() == 1
        assert len(trainer.greedy_error_bounds) == 2
        assert trainer.greedy_error_bounds[1] < trainer.greedy_error_bounds[0]

    def test_convergence_below_tolerance(self, make_trainer):
        trainer = make_trainer({'Nmax': 10, 'training_tolerance': 1e-5})
        trainer.initialize_training_parameters()

        max_error_bound = trainer.train_reduced_basis()

        assert max_error_bound < 1e-5
        assert 2 <= trainer.get_n_basis_functions() <= 3
        assert len(trainer.rb_evaluation.greedy_params) == trainer.get_n_basis_functions()
        assert trainer.basis_manager.N == trainer.get_n_basis_functions()

    def test_bounds_are_certified_on_the_training_set(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 2, 'training_tolerance': 1e-12})
        rb_eval = trainer.rb_evaluation

        for _, param in trainer.sampler.training_set.local_samples():
            bound = rb_eval.RB_solve(param)
            truth, _ = trainer.fom_problem.solve(param)
            error = truth - rb_eval.reconstruct_solution()
            true_error = energy_norm(error, trainer.assembler.assemble_affine_operator(param))
            assert true_error <= bound * (1.0 + 1e-8) + 1e-12

    def test_rejected_first_snapshot_reports_the_empty_basis_bound(self, make_trainer, monkeypatch):
        trainer = make_trainer({'Nmax': 5})
        trainer.initialize_training_parameters()

        def zero_solve(param=None):
            return np.zeros(21), np.zeros(1)

        monkeypatch.setattr(trainer.fom_problem, 'solve', zero_solve)
        max_error_bound = trainer.train_reduced_basis()

        assert trainer.status == TrainingStatus.CONVERGED
        assert trainer.get_n_basis_functions() == 0
        assert np.isfinite(max_error_bound)
        assert max_error_bound > 0.0
        assert trainer.greedy_error_bounds == [max_error_bound]
        assert trainer.rb_evaluation.greedy_params == []

    def test_several_basis_functions_per_iteration(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 10, 'delta_N': 2, 'training_tolerance': 1e-5})

        assert trainer.get_n_basis_functions() == 3
        assert len(trainer.greedy_error_bounds) == 2
        greedy_params = [tuple(sorted(trainer.get_greedy_parameter(i).items())) for i in range(3)]
        assert len(set(greedy_params)) == 3

    def test_delta_N_does_not_exceed_Nmax(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 2, 'delta_N': 3, 'training_tolerance': 1e-12})
        assert trainer.get_n_basis_functions() == 2

    def test_custom_termination_test(self, make_trainer):
        calls = []

        def stop_after_two_iterations(max_error_bound, count, trainer):
            calls.append(count)
            return count >= 2

        trainer = make_trainer({'training_tolerance': 1e-12})
        trainer.greedy_termination_test = stop_after_two_iterations
        trainer.initialize_training_parameters()
        trainer.train_reduced_basis()

        assert calls == [1, 2]
        assert trainer.get_n_basis_functions() == 2

    def test_low_memory_mode_gives_the_same_basis(self, make_trainer):
        specifics = {'Nmax': 2, 'training_tolerance': 1e-12}
        reference = _trained(make_trainer, specifics)
        low_memory = _trained(make_trainer, dict(specifics, low_memory_mode=True))

        assert low_memory.rb_evaluation.greedy_params == reference.rb_evaluation.greedy_params
        assert low_memory.greedy_error_bounds == pytest.approx(reference.greedy_error_bounds)

    def test_recompute_all_residual_terms(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 2, 'training_tolerance': 1e-12})
        param = {'kappa_0': 0.8, 'kappa_1': 1.6}
        bound = trainer.rb_evaluation.RB_solve(param)

        trainer.recompute_all_residual_terms()

        assert trainer.rb_evaluation.RB_solve(param) == pytest.approx(bound)

    def test_reduced_inner_product(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 2, 'training_tolerance': 1e-12, 'compute_RB_inner_product': True})
        assert trainer.rb_evaluation.RB_inner_product_matrix == pytest.approx(np.eye(2), abs=1e-10)

    def test_default_termination_test(self, make_trainer):
        trainer = make_trainer({'Nmax': 2, 'training_tolerance': 1e-3})
        assert default_greedy_termination_test(1e-4, 0, trainer)
        assert not default_greedy_termination_test(1e-2, 0, trainer)


class TestTrainingStatus:
    """Test the lifecycle of the trainer."""

    def test_training_requires_a_training_set(self, make_trainer):
        trainer = make_trainer()
        assert trainer.status == TrainingStatus.UNINITIALIZED
        with pytest.raises(ConfigurationError):
            trainer.train_reduced_basis()

    def test_converged_training_cannot_restart(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 1})

        with pytest.raises(ConfigurationError):
            trainer.train_reduced_basis()
        with pytest.raises(ConfigurationError):
            trainer.initialize_training_parameters()

    def test_clear_allows_a_new_training(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 2, 'training_tolerance': 1e-12})
        greedy_params = list(trainer.rb_evaluation.greedy_params)

        trainer.clear()
        assert trainer.status == TrainingStatus.UNINITIALIZED
        assert trainer.get_n_basis_functions() == 0

        trainer.initialize_training_parameters()
        trainer.train_reduced_basis()
        assert trainer.status == TrainingStatus.CONVERGED
        assert trainer.rb_evaluation.greedy_params == greedy_params

    def test_no_terms_attached_after_initialization(self, make_trainer):
        trainer = make_trainer()
        trainer.initialize_training_parameters()

        with pytest.raises(ConfigurationError):
            trainer.registry.attach_A_q(lambda mu: 1.0, lambda: np.eye(21))
        assert trainer.registry.qa == 2

    def test_failed_truth_solve_aborts_the_training(self, make_trainer, monkeypatch):
        trainer = make_trainer()
        trainer.initialize_training_parameters()

        def failing_solve(param=None):
            raise NumericalFailure("singular truth operator")

        monkeypatch.setattr(trainer.fom_problem, 'solve', failing_solve)

        with pytest.raises(NumericalFailure):
            trainer.train_reduced_basis()
        assert trainer.status == TrainingStatus.ABORTED
        with pytest.raises(ConfigurationError):
            trainer.train_reduced_basis()

    def test_invalid_settings(self, make_trainer):
        trainer = make_trainer()

        with pytest.raises(ConfigurationError):
            trainer.set_Nmax(0)
        with pytest.raises(ConfigurationError):
            trainer.set_Nmax(2.5)
        with pytest.raises(ConfigurationError):
            trainer.set_training_tolerance(0.0)
        with pytest.raises(ConfigurationError):
            make_trainer({'write_data_during_training': True})

    def test_greedy_parameter_out_of_range(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 1})
        with pytest.raises(IndexOutOfRangeError):
            trainer.get_greedy_parameter(1)


class TestDistributedTraining:
    """Test the greedy training with the training set distributed among workers."""

    def test_distributed_greedy_matches_serial_greedy(self, make_trainer):
        specifics = {'deterministic': True, 'Nmax': 3, 'training_tolerance': 1e-12}
        serial = _trained(make_trainer, specifics)

        def function(communicator):
            trainer = make_trainer(specifics, communicator=communicator)
            trainer.initialize_training_parameters()
            max_error_bound = trainer.train_reduced_basis()
            return trainer.rb_evaluation.greedy_params, max_error_bound, trainer.sampler.get_local_n_training_samples()

        results = run_on_workers(2, function)

        assert [n_local for _, _, n_local in results] == [8, 8]
        for greedy_params, max_error_bound, _ in results:
            assert greedy_params == serial.rb_evaluation.greedy_params
            assert max_error_bound == pytest.approx(serial.greedy_error_bounds[-1])


class TestOfflineData:
    """Test writing, reading and resuming the offline data."""

    def test_write_requires_a_directory(self, make_trainer):
        trainer = _trained(make_trainer, {'Nmax': 1})
        with pytest.raises(ConfigurationError):
            trainer.write_offline_data_to_files()
        with pytest.raises(ConfigurationError):
            trainer.read_offline_data_from_files()

    def test_data_written_during_training(self, make_trainer, tmp_path):
        directory = str(tmp_path / 'offline')
        _trained(make_trainer, {'Nmax': 2, 'write_data_during_training': True, 'offline_data_directory': directory})
        assert os.path.isfile(os.path.join(directory, OFFLINE_DATA_FILE))

    def test_read_and_resume(self, make_trainer, tmp_path):
        directory = str(tmp_path)
        specifics = {'Nmax': 2, 'training_tolerance': 1e-12}
        first = make_trainer(specifics)
        first.initialize_training_parameters()
        first.train_reduced_basis(directory)

        param = {'kappa_0': 0.9, 'kappa_1': 1.4}
        expected_bound = first.rb_evaluation.RB_solve(param)

        second = make_trainer(specifics)
        second.initialize_training_parameters()
        training = second.read_offline_data_from_files(directory)

        assert training['status'] == 'CONVERGED'
        assert second.get_n_basis_functions() == 2
        assert second.rb_evaluation.greedy_params == first.rb_evaluation.greedy_params
        assert second.greedy_error_bounds == pytest.approx(first.greedy_error_bounds)
        assert second.rb_evaluation.RB_solve(param) == pytest.approx(expected_bound)

        second.set_Nmax(3)
        second.train_reduced_basis()

        assert second.get_n_basis_functions() == 3
        assert second.rb_evaluation.greedy_params[:2] == first.rb_evaluation.greedy_params
