"""Pytest configuration and shared fixtures."""

import threading

import numpy as np
import pytest

from examples.thermal_block.thermal_block_problem import ThermalBlockProblem
from rb_offline.pde_problem.parameter_handler import ParameterHandler
from rb_offline.rb_library.affine_decomposition.affine_decomposition import AffineDecompositionRegistry
from rb_offline.rb_library.affine_decomposition.offline_assembler import OfflineAssembler
from rb_offline.rb_library.rb_manager.greedy_trainer import GreedyTrainer
from rb_offline.tpl_managers.communicator import Communicator
from rb_offline.tpl_managers.external_engine import ScipyExternalEngine


THERMAL_BLOCK_PARAMETERS = {'kappa_0': {'min': 0.5, 'max': 2.0},
                            'kappa_1': {'min': 0.5, 'max': 2.0}}


class _ThreadGroup:
    """Shared state of a group of threads emulating cooperating workers."""

    def __init__(self, size):
        self.size = size
        self.barrier = threading.Barrier(size)
        self.slots = [None] * size


class ThreadCommunicator(Communicator):
    """Communicator among threads, every collective being an allgather through a shared list."""

    def __init__(self, group, rank):
        self.group = group
        self._rank = rank

    @property
    def rank(self):
        return self._rank

    @property
    def size(self):
        return self.group.size

    def allgather(self, _obj):
        self.group.slots[self._rank] = _obj
        self.group.barrier.wait()
        gathered = list(self.group.slots)
        self.group.barrier.wait()
        return gathered

    def max(self, _value):
        return max(self.allgather(_value))

    def sum(self, _value):
        return sum(self.allgather(_value))

    def maxloc(self, _value):
        values = self.allgather(_value)
        max_value = max(values)
        return max_value, values.index(max_value)

    def bcast(self, _obj, _root=0):
        return self.allgather(_obj)[_root]

    def barrier(self):
        self.group.barrier.wait()


def run_on_workers(n_workers, function):
    """Run function(communicator) on n_workers threads and return the results in rank order."""

    group = _ThreadGroup(n_workers)
    results = [None] * n_workers
    errors = []

    def target(rank):
        try:
            results[rank] = function(ThreadCommunicator(group, rank))
        except Exception as e:
            errors.append(e)
            group.barrier.abort()

    threads = [threading.Thread(target=target, args=(rank,)) for rank in range(n_workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    if errors:
        raise errors[0]
    return results


@pytest.fixture
def make_trainer():
    """Factory of greedy trainers on the thermal block problem."""

    def factory(training_specifics=None, communicator=None, n_elements=20):
        parameter_handler = ParameterHandler()
        problem = ThermalBlockProblem(parameter_handler, _fom_specifics={'n_elements': n_elements})
        registry = AffineDecompositionRegistry()

        specifics = {'parameters': THERMAL_BLOCK_PARAMETERS, 'n_training_samples': 16, 'random_seed': 3}
        specifics.update(training_specifics or dict())

        return GreedyTrainer(problem, registry, communicator, _training_specifics=specifics)

    return factory


@pytest.fixture
def thermal_block_assembler():
    """Thermal block problem on 10 elements with its affine storage initialized."""

    parameter_handler = ParameterHandler()
    parameter_handler.assign_parameters_bounds({'kappa_0': 0.5, 'kappa_1': 0.5}, {'kappa_0': 2.0, 'kappa_1': 2.0})
    problem = ThermalBlockProblem(parameter_handler, _fom_specifics={'n_elements': 10})

    registry = AffineDecompositionRegistry()
    problem.define_affine_decomposition(registry)

    assembler = OfflineAssembler(registry, ScipyExternalEngine(), _dirichlet_dofs=problem.get_dirichlet_dofs())
    assembler.initialize_affine_storage()
    problem.bind_assembler(assembler)

    return problem, registry, assembler


def energy_norm(vector, operator):
    return np.sqrt(vector.dot(operator.dot(vector)))
