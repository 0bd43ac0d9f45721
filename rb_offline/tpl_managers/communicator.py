#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Collective communication between the cooperating workers of the Offline stage. Only collective operations are
exposed (reductions, max-with-location, broadcast, allgather); every worker must call them in the same order.
"""

import os

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


class Communicator:
    """ Abstract class which defines the collective operations needed by the Offline stage
    """

    @property
    def rank(self):
        raise NotImplementedError("You are using the default rank, please provide a specific communicator")

    @property
    def size(self):
        raise NotImplementedError("You are using the default size, please provide a specific communicator")

    def max(self, _value):
        """Global maximum of '_value' over all the workers

        :param _value: local value
        :type _value: int or float
        :return: global maximum
        :rtype: int or float
        """
        raise NotImplementedError("You are using the default max, please provide a specific communicator")

    def sum(self, _value):
        """Global sum of '_value' over all the workers

        :param _value: local value
        :type _value: int or float
        :return: global sum
        :rtype: int or float
        """
        raise NotImplementedError("You are using the default sum, please provide a specific communicator")

    def maxloc(self, _value):
        """Global maximum of '_value' together with the rank of the worker holding it. If several workers hold the
        maximum, the lowest rank wins.

        :param _value: local value
        :type _value: float
        :return: global maximum and rank of its owner
        :rtype: tuple(float, int)
        """
        raise NotImplementedError("You are using the default maxloc, please provide a specific communicator")

    def bcast(self, _obj, _root=0):
        """Broadcast of '_obj' from the worker '_root' to all the workers

        :param _obj: object to be broadcast (only meaningful on '_root')
        :type _obj: object
        :param _root: rank of the broadcasting worker. Defaults to 0
        :type _root: int
        :return: the object held by '_root'
        :rtype: object
        """
        raise NotImplementedError("You are using the default bcast, please provide a specific communicator")

    def allgather(self, _obj):
        """Gathering of '_obj' from all the workers, on all the workers, in rank order

        :param _obj: local object
        :type _obj: object
        :return: objects of all the workers
        :rtype: list
        """
        raise NotImplementedError("You are using the default allgather, please provide a specific communicator")

    def barrier(self):
        raise NotImplementedError("You are using the default barrier, please provide a specific communicator")


class SerialCommunicator(Communicator):
    """ Communicator of a single worker; all collectives are the identity
    """

    @property
    def rank(self):
        return 0

    @property
    def size(self):
        return 1

    def max(self, _value):
        return _value

    def sum(self, _value):
        return _value

    def maxloc(self, _value):
        return _value, 0

    def bcast(self, _obj, _root=0):
        assert _root == 0
        return _obj

    def allgather(self, _obj):
        return [_obj]

    def barrier(self):
        return


class MpiCommunicator(Communicator):
    """ Communicator wrapping an mpi4py communicator (MPI.COMM_WORLD by default). mpi4py is imported only when this
    class is instantiated.
    """

    def __init__(self, _comm=None):
        """Initialization of the MpiCommunicator class

        :param _comm: mpi4py communicator. If None, MPI.COMM_WORLD is used. Defaults to None
        :type _comm: mpi4py.MPI.Comm or NoneType
        """

        from mpi4py import MPI

        self.M_MPI = MPI
        self.M_comm = _comm if _comm is not None else MPI.COMM_WORLD

        logger.debug(f"MPI communicator initialized: rank {self.M_comm.Get_rank()} of {self.M_comm.Get_size()}")
        return

    @property
    def comm(self):
        return self.M_comm

    @property
    def rank(self):
        return self.M_comm.Get_rank()

    @property
    def size(self):
        return self.M_comm.Get_size()

    def max(self, _value):
        return self.M_comm.allreduce(_value, op=self.M_MPI.MAX)

    def sum(self, _value):
        return self.M_comm.allreduce(_value, op=self.M_MPI.SUM)

    def maxloc(self, _value):
        # MAXLOC on (value, location) pairs picks the lowest location among equal values
        max_value, owner = self.M_comm.allreduce((_value, self.rank), op=self.M_MPI.MAXLOC)
        return max_value, owner

    def bcast(self, _obj, _root=0):
        return self.M_comm.bcast(_obj, root=_root)

    def allgather(self, _obj):
        return self.M_comm.allgather(_obj)

    def barrier(self):
        self.M_comm.Barrier()
        return


__all__ = [
    "Communicator",
    "SerialCommunicator",
    "MpiCommunicator"
]
