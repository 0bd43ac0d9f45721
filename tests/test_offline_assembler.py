"""Tests for the truth-level assembly of the affine templates and of the representors."""

import numpy as np
import pytest
from scipy.sparse import csc_matrix

from examples.thermal_block.thermal_block_problem import assemble_load, assemble_stiffness
from rb_offline.errors import ConfigurationError, NumericalFailure
from rb_offline.rb_library.affine_decomposition.affine_decomposition import AffineDecompositionRegistry
from rb_offline.rb_library.affine_decomposition.offline_assembler import OfflineAssembler
from rb_offline.tpl_managers.external_engine import ScipyExternalEngine


def _simple_registry(inner_product):
    registry = AffineDecompositionRegistry()
    registry.attach_A_q(lambda mu: mu['k'], lambda: assemble_stiffness(4))
    registry.attach_F_q(lambda mu: 1.0, lambda: assemble_load(4))
    registry.attach_inner_prod_assembly(lambda: inner_product)
    return registry


class TestAffineStorage:
    """Test the assembly and storage of the templates."""

    def test_initialization_finalizes_the_registry(self, thermal_block_assembler):
        _, registry, assembler = thermal_block_assembler

        assert registry.is_finalized
        assert assembler.is_affine_storage_initialized
        assert assembler.Nh == 11
        assert registry.n_stored_affine_matrices == 2

    def test_dirichlet_elimination(self, thermal_block_assembler):
        _, registry, assembler = thermal_block_assembler

        for q in range(registry.qa):
            A_q = assembler.get_A_q(q).toarray()
            assert np.all(A_q[[0, 10], :] == 0.0)
            assert np.all(A_q[:, [0, 10]] == 0.0)
        assert assembler.get_F_q(0)[[0, 10]] == pytest.approx([0.0, 0.0])

        inner_product = assembler.inner_product_matrix.toarray()
        assert inner_product[0, 0] == 1.0
        assert inner_product[10, 10] == 1.0
        assert inner_product[0, 1] == 0.0

    def test_truth_operator_has_identity_on_dirichlet_dofs(self, thermal_block_assembler):
        _, _, assembler = thermal_block_assembler

        operator = assembler.assemble_affine_operator({'kappa_0': 2.0, 'kappa_1': 0.5}).toarray()
        assert operator[0, 0] == 1.0
        assert operator[10, 10] == 1.0
        assert operator == pytest.approx(operator.T)

    def test_truth_solution_of_homogeneous_block(self, thermal_block_assembler):
        problem, _, assembler = thermal_block_assembler
        nodes = problem.nodes

        solution = assembler.truth_solve({'kappa_0': 1.0, 'kappa_1': 1.0})
        assert solution == pytest.approx(0.5 * nodes * (1.0 - nodes), abs=1e-12)

        solution, outputs = problem.solve({'kappa_0': 2.0, 'kappa_1': 2.0})
        assert solution == pytest.approx(0.25 * nodes * (1.0 - nodes), abs=1e-12)
        assert outputs[0] == pytest.approx(assemble_load(10).dot(solution))

    def test_low_memory_mode(self, thermal_block_assembler):
        problem, _, assembler = thermal_block_assembler

        registry = AffineDecompositionRegistry()
        problem.define_affine_decomposition(registry)
        low_memory = OfflineAssembler(registry, ScipyExternalEngine(), _dirichlet_dofs=problem.get_dirichlet_dofs(),
                                      _low_memory_mode=True)
        low_memory.initialize_affine_storage()

        assert registry.n_stored_affine_matrices == 0
        assert low_memory.get_A_q(1).toarray() == pytest.approx(assembler.get_A_q(1).toarray())

        param = {'kappa_0': 0.7, 'kappa_1': 1.3}
        assert low_memory.truth_solve(param) == pytest.approx(assembler.truth_solve(param))

    def test_non_dirichlet_operators(self, thermal_block_assembler):
        problem, _, _ = thermal_block_assembler

        registry = AffineDecompositionRegistry()
        problem.define_affine_decomposition(registry)
        assembler = OfflineAssembler(registry, _dirichlet_dofs=problem.get_dirichlet_dofs(),
                                     _store_non_dirichlet_operators=True)
        assembler.initialize_affine_storage()

        assert assembler.get_non_dirichlet_A_q(0).toarray()[0, 0] == pytest.approx(10.0)
        assert registry.get_non_dirichlet_affine_vector(0)[0] == pytest.approx(0.05)
        operator = assembler.assemble_non_dirichlet_affine_operator({'kappa_0': 1.0, 'kappa_1': 1.0})
        assert operator.toarray() == pytest.approx(assemble_stiffness(10).toarray())

        inner_product = assembler.non_dirichlet_inner_product_matrix.toarray()
        assert inner_product == pytest.approx(assemble_stiffness(10).toarray())
        assert assembler.inner_product_matrix.toarray()[0, :2] == pytest.approx([1.0, 0.0])

    def test_non_dirichlet_inner_product_requires_the_stores(self, thermal_block_assembler):
        _, _, assembler = thermal_block_assembler
        with pytest.raises(ConfigurationError):
            assembler.non_dirichlet_inner_product_matrix

    def test_constrained_problem(self):
        registry = _simple_registry(assemble_stiffness(4))
        constraint = csc_matrix(np.diag([0.0, 1.0, 0.0, 0.0, 0.0]))
        registry.attach_constraint_assembly(lambda: constraint)

        assembler = OfflineAssembler(registry, ScipyExternalEngine(), _dirichlet_dofs=[0, 4],
                                     _constrained_problem=True)
        assembler.initialize_affine_storage()

        operator = assembler.assemble_affine_operator({'k': 1.0}).toarray()
        assert operator[1, 1] == pytest.approx(9.0)

    def test_non_symmetric_inner_product_raises(self):
        inner_product = assemble_stiffness(4).toarray()
        inner_product[1, 2] += 1.0
        assembler = OfflineAssembler(_simple_registry(inner_product), _dirichlet_dofs=[0, 4])

        with pytest.raises(NumericalFailure):
            assembler.initialize_affine_storage()

    def test_incompatible_sizes_raise(self):
        assembler = OfflineAssembler(_simple_registry(np.eye(3)), _dirichlet_dofs=[0])
        with pytest.raises(ConfigurationError):
            assembler.initialize_affine_storage()

    def test_storage_required(self):
        assembler = OfflineAssembler(_simple_registry(np.eye(5)))
        with pytest.raises(ConfigurationError):
            assembler.assemble_affine_vector({'k': 1.0})


class TestRepresentors:
    """Test the basis independent Riesz representors."""

    def test_Fq_representor_norms(self, thermal_block_assembler):
        _, _, assembler = thermal_block_assembler

        norms = assembler.compute_Fq_representor_norms()
        F = assembler.get_F_q(0)
        X = assembler.inner_product_matrix.toarray()

        assert norms.shape == (1, 1)
        assert norms[0, 0] == pytest.approx(F.dot(np.linalg.solve(X, F)))
        assert assembler.Fq_representor_norms_computed

        assembler.invalidate_Fq_representor_norms()
        assert not assembler.Fq_representor_norms_computed
        assert assembler.compute_Fq_representor_norms() == pytest.approx(norms)

    def test_inner_product_solve(self, thermal_block_assembler):
        _, _, assembler = thermal_block_assembler

        rhs = np.arange(11, dtype=float)
        rhs[[0, 10]] = 0.0
        representor = assembler.inner_product_solve(rhs)
        assert assembler.inner_product_matrix.dot(representor) == pytest.approx(rhs)

    def test_output_dual_norms(self, thermal_block_assembler):
        _, _, assembler = thermal_block_assembler

        dual_norms = assembler.compute_output_dual_norms()
        L = assembler.registry.get_output_vector(0, 0)
        X = assembler.inner_product_matrix.toarray()

        assert len(dual_norms) == 1
        assert dual_norms[0][0, 0] == pytest.approx(L.dot(np.linalg.solve(X, L)))
        assert assembler.eval_output_dual_norm(0, {'kappa_0': 1.0, 'kappa_1': 1.0}) == \
            pytest.approx(np.sqrt(dual_norms[0][0, 0]))

    def test_clear(self, thermal_block_assembler):
        _, _, assembler = thermal_block_assembler
        assembler.compute_Fq_representor_norms()

        assembler.clear()

        assert not assembler.is_affine_storage_initialized
        assert not assembler.Fq_representor_norms_computed
        assert assembler.Nh == 0
