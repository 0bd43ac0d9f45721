#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Persistence of the offline data in an HDF5 file. The data are split in a basis independent part, computed once at
configuration time, and a basis dependent part, which changes at every greedy iteration.
"""

import os
from enum import Enum

import numpy as np

from rb_offline.errors import ConfigurationError
from rb_offline.tpl_managers.communicator import SerialCommunicator
import rb_offline.utils.general_utils as gen_utils

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


OFFLINE_DATA_FILE = 'offline_data.h5'


class RBDataIO(Enum):
    ALL_DATA = 0
    BASIS_DEPENDENT = 1
    BASIS_INDEPENDENT = 2


def _indexed(_items):
    return {str(cnt): item for cnt, item in enumerate(_items)}


def _from_indexed(_group):
    return [_group[key] for key in sorted(_group.keys(), key=int)]


class OfflineDataIO:
    """Class which writes and reads the offline data of an RbEvaluation. Only the worker with rank 0 writes.
    """

    def __init__(self, _rb_evaluation, _communicator=None, _store_basis_functions=True):
        """Initialization of the OfflineDataIO class

        :param _rb_evaluation: reduced data to be stored or restored
        :type _rb_evaluation: RbEvaluation
        :param _communicator: communicator of the workers. If None, a serial communicator is used. Defaults to None
        :type _communicator: Communicator or NoneType
        :param _store_basis_functions: if True, the basis functions and the operator representors are stored, so
          that training can be resumed. Defaults to True
        :type _store_basis_functions: bool
        """

        self.M_rb_evaluation = _rb_evaluation
        self.M_communicator = _communicator if _communicator is not None else SerialCommunicator()
        self.M_store_basis_functions = _store_basis_functions
        return

    @property
    def store_basis_functions(self):
        return self.M_store_basis_functions

    @store_basis_functions.setter
    def store_basis_functions(self, _store_basis_functions):
        self.M_store_basis_functions = _store_basis_functions

    @staticmethod
    def get_file_path(_directory):
        return os.path.join(_directory, OFFLINE_DATA_FILE)

    def _basis_independent_fields(self):
        rb_eval = self.M_rb_evaluation
        return {
            'Qa': rb_eval.qa,
            'Qf': rb_eval.qf,
            'Ql': np.array([len(output_vectors) for output_vectors in rb_eval.RB_output_vectors], dtype=int),
            'Fq_representor_norms': rb_eval.Fq_representor_norms,
            'output_dual_norms': _indexed(rb_eval.output_dual_norms)
        }

    def _basis_dependent_fields(self):
        rb_eval = self.M_rb_evaluation
        fields = {
            'N': rb_eval.n_basis_functions,
            'RB_Aq': _indexed(rb_eval.RB_Aq_vector),
            'RB_Fq': _indexed(rb_eval.RB_Fq_vector),
            'RB_output_vectors': _indexed([_indexed(output_vectors)
                                           for output_vectors in rb_eval.RB_output_vectors]),
            'RB_inner_product_matrix': rb_eval.RB_inner_product_matrix,
            'Fq_Aq_representor_norms': rb_eval.Fq_Aq_representor_norms,
            'Aq_Aq_representor_norms': rb_eval.Aq_Aq_representor_norms
        }

        if rb_eval.greedy_params:
            names = sorted(rb_eval.greedy_params[0].keys())
            fields['greedy_params'] = {name: np.array([param[name] for param in rb_eval.greedy_params])
                                       for name in names}

        if self.M_store_basis_functions and rb_eval.basis_manager.N > 0:
            fields['basis_functions'] = rb_eval.basis_manager.basis
            if all(len(representors) == rb_eval.n_basis_functions for representors in rb_eval.Aq_representor):
                fields['Aq_representor'] = _indexed([np.array(representors).T
                                                     for representors in rb_eval.Aq_representor])

        return fields

    def write(self, _directory, _io_flag=RBDataIO.ALL_DATA, _extra_fields=None):
        """Method which writes the offline data selected by '_io_flag' in '_directory'. Every worker must call it.

        :param _directory: target directory, created if missing
        :type _directory: str
        :param _io_flag: which part of the data is written. Defaults to RBDataIO.ALL_DATA
        :type _io_flag: RBDataIO
        :param _extra_fields: additional values, written in the 'training' group. Defaults to None
        :type _extra_fields: dict or NoneType
        """

        if self.M_communicator.rank == 0:
            gen_utils.create_dir(_directory)
            file_path = self.get_file_path(_directory)

            if _io_flag in (RBDataIO.ALL_DATA, RBDataIO.BASIS_INDEPENDENT):
                gen_utils.write_group_to_h5(file_path, 'basis_independent', self._basis_independent_fields())
            if _io_flag in (RBDataIO.ALL_DATA, RBDataIO.BASIS_DEPENDENT):
                gen_utils.write_group_to_h5(file_path, 'basis_dependent', self._basis_dependent_fields())
            if _extra_fields:
                gen_utils.write_group_to_h5(file_path, 'training', _extra_fields)

            logger.info(f"Offline data ({_io_flag.name}) written to {file_path}")

        self.M_communicator.barrier()
        return

    def read(self, _directory, _io_flag=RBDataIO.ALL_DATA):
        """Method which restores the offline data selected by '_io_flag' from '_directory'

        :param _directory: directory containing the offline data file
        :type _directory: str
        :param _io_flag: which part of the data is read. Defaults to RBDataIO.ALL_DATA
        :type _io_flag: RBDataIO
        :return: content of the 'training' group, empty if not written
        :rtype: dict
        """

        file_path = self.get_file_path(_directory)
        if not os.path.isfile(file_path):
            logger.critical(f"Offline data file {file_path} not found")
            raise FileNotFoundError(f"Offline data file {file_path} not found")

        rb_eval = self.M_rb_evaluation

        if _io_flag in (RBDataIO.ALL_DATA, RBDataIO.BASIS_INDEPENDENT):
            fields = gen_utils.read_group_from_h5(file_path, 'basis_independent')
            if not fields:
                raise ConfigurationError(f"No basis independent data in {file_path}")
            rb_eval.set_Fq_representor_norms(fields['Fq_representor_norms'])
            rb_eval.set_output_dual_norms(_from_indexed(fields.get('output_dual_norms', dict())))

        if _io_flag in (RBDataIO.ALL_DATA, RBDataIO.BASIS_DEPENDENT):
            fields = gen_utils.read_group_from_h5(file_path, 'basis_dependent')
            if not fields:
                raise ConfigurationError(f"No basis dependent data in {file_path}")

            if 'basis_functions' in fields:
                rb_eval.basis_manager.set_basis(fields['basis_functions'])

            rb_eval.set_reduced_system(_from_indexed(fields['RB_Aq']),
                                       _from_indexed(fields['RB_Fq']),
                                       [_from_indexed(output_vectors)
                                        for output_vectors in _from_indexed(fields['RB_output_vectors'])],
                                       _RB_inner_product_matrix=fields['RB_inner_product_matrix'])

            Aq_representor = None
            if 'Aq_representor' in fields:
                Aq_representor = [list(representors.T) for representors in _from_indexed(fields['Aq_representor'])]
            rb_eval.set_residual_terms(fields['Fq_Aq_representor_norms'], fields['Aq_Aq_representor_norms'],
                                       _Aq_representor=Aq_representor)

            greedy_params = fields.get('greedy_params', dict())
            names = sorted(greedy_params.keys())
            n_params = len(greedy_params[names[0]]) if names else 0
            rb_eval.greedy_params[:] = [{name: float(greedy_params[name][cnt]) for name in names}
                                        for cnt in range(n_params)]

        logger.info(f"Offline data ({_io_flag.name}) read from {file_path}")

        training = gen_utils.read_group_from_h5(file_path, 'training')
        return training


__all__ = [
    "OFFLINE_DATA_FILE",
    "RBDataIO",
    "OfflineDataIO"
]
