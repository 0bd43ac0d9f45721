"""Tests for the affine decomposition registry."""

import numpy as np
import pytest

from rb_offline.errors import ConfigurationError, IndexOutOfRangeError, NotAttachedError
from rb_offline.rb_library.affine_decomposition.affine_decomposition import AffineDecompositionRegistry
from rb_offline.rb_library.eim import EimSystem


def _matrix(value):
    return lambda: value * np.eye(3)


def _vector(value):
    return lambda: value * np.ones(3)


@pytest.fixture
def registry():
    registry = AffineDecompositionRegistry()
    registry.attach_A_q(lambda mu: mu['a'], _matrix(1.0))
    registry.attach_A_q(lambda mu: 2.0, _matrix(2.0))
    registry.attach_F_q(lambda mu: mu['a'] ** 2, _vector(1.0))
    registry.attach_output([lambda mu: 1.0, lambda mu: mu['a']], [_vector(1.0), _vector(2.0)])
    return registry


@pytest.fixture
def eim_system():
    points = np.linspace(0.0, 1.0, 6)[:, None]
    eim = EimSystem(lambda x, mu: mu['a'] * x[:, 0] + x[:, 0] ** 2, points)
    eim.train([{'a': value} for value in np.linspace(0.0, 1.0, 5)], 4, _tolerance=1e-10)
    return eim


class TestAttach:
    """Test the attachment of the affine terms."""

    def test_counts_and_indices(self):
        registry = AffineDecompositionRegistry()
        assert registry.attach_A_q(lambda mu: 1.0, _matrix(1.0)) == 0
        assert registry.attach_A_q(lambda mu: 1.0, _matrix(1.0)) == 1
        assert registry.attach_F_q(lambda mu: 1.0, _vector(1.0)) == 0
        assert registry.attach_output(lambda mu: 1.0, _vector(1.0)) == 0

        assert registry.qa == 2
        assert registry.qf == 1
        assert registry.n_outputs == 1
        assert registry.get_ql(0) == 1

    def test_attach_after_finalize_leaves_state_unchanged(self, registry):
        registry.finalize()

        with pytest.raises(ConfigurationError):
            registry.attach_A_q(lambda mu: 1.0, _matrix(1.0))
        with pytest.raises(ConfigurationError):
            registry.attach_F_q(lambda mu: 1.0, _vector(1.0))
        with pytest.raises(ConfigurationError):
            registry.attach_output(lambda mu: 1.0, _vector(1.0))
        with pytest.raises(ConfigurationError):
            registry.attach_inner_prod_assembly(_matrix(1.0))

        assert registry.qa == 2
        assert registry.qf == 1
        assert registry.n_outputs == 1
        assert not registry.has_inner_prod_assembly

    def test_non_callable_raises(self):
        with pytest.raises(ConfigurationError):
            AffineDecompositionRegistry().attach_A_q(1.0, _matrix(1.0))

    def test_output_length_mismatch_raises(self):
        with pytest.raises(ConfigurationError):
            AffineDecompositionRegistry().attach_output([lambda mu: 1.0], [_vector(1.0), _vector(2.0)])

    def test_clear_affine_storage_keeps_attachments(self, registry):
        registry.finalize()
        registry.set_affine_matrices([np.eye(3)])

        registry.clear_affine_storage()

        assert not registry.is_finalized
        assert registry.qa == 2
        assert registry.n_stored_affine_matrices == 0
        registry.attach_A_q(lambda mu: 1.0, _matrix(1.0))
        assert registry.qa == 3

    def test_clear(self, registry):
        registry.clear()
        assert registry.qa == 0
        assert registry.qf == 0
        assert registry.n_outputs == 0


class TestEvaluation:
    """Test the evaluation of the theta functions and the assembly of the templates."""

    def test_theta_vectors(self, registry):
        param = {'a': 3.0}
        assert registry.get_theta_a(param) == pytest.approx([3.0, 2.0])
        assert registry.get_theta_f(param) == pytest.approx([9.0])
        assert registry.get_theta_l(0, param) == pytest.approx([1.0, 3.0])

    def test_evaluate_theta_by_kind(self, registry):
        param = {'a': 2.0}
        assert registry.evaluate_theta('A', 0, param) == 2.0
        assert registry.evaluate_theta('F', 0, param) == 4.0
        assert registry.evaluate_theta('L', 1, param, _n=0) == 2.0

        with pytest.raises(ConfigurationError):
            registry.evaluate_theta('L', 0, param)
        with pytest.raises(ConfigurationError):
            registry.evaluate_theta('M', 0, param)

    def test_out_of_range_indices(self, registry):
        with pytest.raises(IndexOutOfRangeError):
            registry.eval_theta_q_a(2, {'a': 1.0})
        with pytest.raises(IndexOutOfRangeError):
            registry.eval_theta_q_l(0, 2, {'a': 1.0})
        with pytest.raises(IndexOutOfRangeError):
            registry.get_ql(1)

    def test_missing_features_raise(self):
        registry = AffineDecompositionRegistry()
        with pytest.raises(NotAttachedError):
            registry.get_ql(0)
        with pytest.raises(NotAttachedError):
            registry.assemble_inner_product()
        with pytest.raises(NotAttachedError):
            registry.assemble_constraint()
        with pytest.raises(NotAttachedError):
            registry.get_affine_matrix(0)

    def test_compute_theta_functions(self, registry):
        params = [{'a': 1.0}, {'a': 2.0}, {'a': 3.0}]

        theta_a = registry.compute_theta_functions(params)
        assert theta_a.shape == (3, 2)
        assert theta_a[:, 0] == pytest.approx([1.0, 2.0, 3.0])

        theta_l = registry.compute_theta_functions(params, _kind='L', _n=0)
        assert theta_l[:, 1] == pytest.approx([1.0, 2.0, 3.0])

    def test_assembly(self, registry):
        assert registry.assemble_A_q(1) == pytest.approx(2.0 * np.eye(3))
        assert registry.assemble_F_q(0) == pytest.approx(np.ones(3))
        assert registry.assemble_L_q(0, 1) == pytest.approx(2.0 * np.ones(3))


class TestEimTerms:
    """Test the terms contributed by EIM systems."""

    def test_eim_terms_follow_attached_terms(self, registry, eim_system):
        n_eim = eim_system.get_n_basis_functions()
        registry.attach_A_EIM_operators(eim_system, lambda basis_function: np.diag(basis_function[:3]))
        registry.attach_F_EIM_vectors(eim_system, lambda basis_function: basis_function[:3])

        assert n_eim == 2
        assert registry.qa == 2 + n_eim
        assert registry.qf == 1 + n_eim
        assert registry.get_n_A_EIM_functions() == n_eim
        assert not registry.is_A_EIM_function(1)
        assert registry.is_A_EIM_function(2)
        assert registry.get_A_EIM_indices(3) == (0, 1)
        assert registry.get_F_EIM_indices(1) == (0, 0)

        with pytest.raises(NotAttachedError):
            registry.get_A_EIM_indices(0)

    def test_eim_theta_and_assembly(self, registry, eim_system):
        registry.attach_A_EIM_operators(eim_system, lambda basis_function: np.diag(basis_function[:3]))
        param = {'a': 0.3}

        coefficients = eim_system.evaluate_coefficients(param)
        assert registry.get_theta_a(param)[2:] == pytest.approx(coefficients)
        assert registry.assemble_A_q(2) == pytest.approx(np.diag(eim_system.get_basis_function(0)[:3]))

    def test_eim_counts_follow_retraining(self, registry, eim_system):
        registry.attach_A_EIM_operators(eim_system, lambda basis_function: np.diag(basis_function[:3]))
        eim_system.train([{'a': 0.5}], 4)
        assert registry.qa == 2 + eim_system.get_n_basis_functions()
