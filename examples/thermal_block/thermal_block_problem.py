#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
One-dimensional thermal block problem: steady heat conduction on (0, 1), split at an interface into two blocks of
conductivity kappa_0 and kappa_1, with a uniform heat source and homogeneous Dirichlet conditions at both ends.

    -(kappa(x) u'(x))' = s  in (0, 1),    u(0) = u(1) = 0

The output is the mean temperature. The problem is discretized with P1 finite elements on a uniform grid.
"""

import numpy as np
import os
from scipy.sparse import coo_matrix

from rb_offline.errors import ConfigurationError
import rb_offline.pde_problem.fom_problem as fp

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../../rb_offline/log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


def tb_theta_kappa_0(_param):
    return _param['kappa_0']


def tb_theta_kappa_1(_param):
    return _param['kappa_1']


def tb_theta_unit(_param):
    return 1.0


def assemble_subdomain_stiffness(_n_elements, _interface, _subdomain):
    """Assembly of the P1 stiffness matrix restricted to the elements of one block

    :param _n_elements: number of elements of the uniform grid
    :type _n_elements: int
    :param _interface: position of the interface between the two blocks
    :type _interface: float
    :param _subdomain: index of the block, 0 (left) or 1 (right)
    :type _subdomain: int
    :return: stiffness matrix of the block, of size (n_elements + 1) x (n_elements + 1)
    :rtype: scipy.sparse.csc_matrix
    """

    h = 1.0 / _n_elements
    midpoints = (np.arange(_n_elements) + 0.5) * h
    elements = np.where(midpoints < _interface)[0] if _subdomain == 0 else np.where(midpoints >= _interface)[0]
    n_block = elements.shape[0]

    rows = np.concatenate([elements, elements, elements + 1, elements + 1])
    cols = np.concatenate([elements, elements + 1, elements, elements + 1])
    values = np.concatenate([np.ones(n_block), -np.ones(n_block), -np.ones(n_block), np.ones(n_block)]) / h

    return coo_matrix((values, (rows, cols)), shape=(_n_elements + 1, _n_elements + 1)).tocsc()


def assemble_stiffness(_n_elements):
    return assemble_subdomain_stiffness(_n_elements, 2.0, 0)


def assemble_load(_n_elements, _source=1.0):
    """Assembly of the P1 load vector of a uniform source

    :param _n_elements: number of elements of the uniform grid
    :type _n_elements: int
    :param _source: intensity of the source. Defaults to 1
    :type _source: float
    :return: load vector
    :rtype: numpy.ndarray
    """

    h = 1.0 / _n_elements
    load = np.full(_n_elements + 1, _source * h)
    load[[0, -1]] = 0.5 * _source * h
    return load


class ThermalBlockProblem(fp.FomProblem):
    """Class defining the one-dimensional thermal block problem, with parameters 'kappa_0' and 'kappa_1'
    """

    def __init__(self, _parameter_handler, _external_engine=None, _fom_specifics=None):
        """Initialization of the thermal block problem. The supported FOM specifics are 'n_elements' (default 100),
        'interface' (default 0.5) and 'source' (default 1)

        :param _parameter_handler: handler of the conductivities
        :type _parameter_handler: ParameterHandler
        :param _external_engine: engine solving the truth systems. Defaults to None
        :type _external_engine: ExternalEngine or NoneType
        :param _fom_specifics: specifics of the discretization. Defaults to None
        :type _fom_specifics: dict or NoneType
        """

        super().__init__(_parameter_handler, _external_engine=_external_engine, _fom_specifics=_fom_specifics)

        self.M_n_elements = int(self.M_fom_specifics.get('n_elements', 100))
        self.M_interface = float(self.M_fom_specifics.get('interface', 0.5))
        self.M_source = float(self.M_fom_specifics.get('source', 1.0))

        if self.M_n_elements < 2:
            raise ConfigurationError(f"The thermal block needs at least 2 elements, got {self.M_n_elements}")
        if not 0.0 < self.M_interface < 1.0:
            raise ConfigurationError(f"The interface must lie in (0, 1), got {self.M_interface}")

        return

    @property
    def n_elements(self):
        return self.M_n_elements

    @property
    def nodes(self):
        return np.linspace(0.0, 1.0, self.M_n_elements + 1)

    def define_affine_decomposition(self, _registry):
        """Method which attaches to the registry the two block stiffness matrices, the load vector, the mean
        temperature output and the H^1_0 inner product

        :param _registry: affine decomposition registry
        :type _registry: AffineDecompositionRegistry
        """

        n_elements, interface = self.M_n_elements, self.M_interface

        _registry.attach_A_q(tb_theta_kappa_0, lambda: assemble_subdomain_stiffness(n_elements, interface, 0))
        _registry.attach_A_q(tb_theta_kappa_1, lambda: assemble_subdomain_stiffness(n_elements, interface, 1))
        _registry.attach_F_q(tb_theta_unit, lambda: assemble_load(n_elements, self.M_source))
        _registry.attach_output(tb_theta_unit, lambda: assemble_load(n_elements))
        _registry.attach_inner_prod_assembly(lambda: assemble_stiffness(n_elements))

        logger.debug(f"Thermal block affine decomposition attached on {n_elements} elements")
        return

    def get_dirichlet_dofs(self):
        return np.array([0, self.M_n_elements])

    def get_stability_lower_bound(self, _param):
        """The H^1_0 inner product is the operator at unit conductivities, thus min(kappa_0, kappa_1) bounds the
        coercivity constant from below
        """
        return min(_param['kappa_0'], _param['kappa_1'])


__all__ = [
    "ThermalBlockProblem",
    "assemble_subdomain_stiffness",
    "assemble_stiffness",
    "assemble_load"
]
