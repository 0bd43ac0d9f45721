"""Tests for the communicators."""

import pytest

from rb_offline.tpl_managers.communicator import Communicator, SerialCommunicator

from conftest import run_on_workers


class TestSerialCommunicator:
    """Test the single-worker collectives."""

    def test_collectives_are_identity(self):
        communicator = SerialCommunicator()

        assert communicator.rank == 0
        assert communicator.size == 1
        assert communicator.max(3) == 3
        assert communicator.sum(2.5) == 2.5
        assert communicator.maxloc(1.5) == (1.5, 0)
        assert communicator.bcast({'a': 1}) == {'a': 1}
        assert communicator.allgather(7) == [7]
        communicator.barrier()

    def test_abstract_communicator_raises(self):
        with pytest.raises(NotImplementedError):
            Communicator().max(1)


class TestThreadCommunicator:
    """Test the collective semantics relied upon by the distributed training."""

    def test_maxloc_lowest_rank_wins_ties(self):
        values = [1.0, 5.0, 5.0]
        results = run_on_workers(3, lambda communicator: communicator.maxloc(values[communicator.rank]))
        assert results == [(5.0, 1)] * 3

    def test_bcast_and_sum(self):
        def function(communicator):
            return communicator.bcast(communicator.rank * 10, 2), communicator.sum(communicator.rank)

        assert run_on_workers(3, function) == [(20, 3)] * 3


class TestMpiCommunicator:
    """Test the mpi4py communicator on a single process."""

    def test_single_process_collectives(self):
        pytest.importorskip("mpi4py")
        from rb_offline.tpl_managers.communicator import MpiCommunicator
        from mpi4py import MPI

        communicator = MpiCommunicator(MPI.COMM_SELF)

        assert communicator.rank == 0
        assert communicator.size == 1
        assert communicator.max(4.0) == 4.0
        assert communicator.maxloc(2.0) == (2.0, 0)
        assert communicator.allgather(1) == [1]
        assert communicator.bcast('x', 0) == 'x'
