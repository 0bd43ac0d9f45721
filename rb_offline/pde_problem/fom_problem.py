#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Generic parametrized steady Full Order Model (FOM) problem, acting as the truth solver of the Offline stage.
"""

import numpy as np
import os

from rb_offline.errors import ConfigurationError, NumericalFailure
from rb_offline.tpl_managers.external_engine import ScipyExternalEngine

import logging.config
log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


class FomProblem:
    """Abstract class defining a generic parameter-dependent steady FOM problem. Specific problems are coded as
    children of this class and define their affine decomposition in
    :func:`~fom_problem.FomProblem.define_affine_decomposition`.
    """

    def __init__(self, _parameter_handler, _external_engine=None, _fom_specifics=None):
        """Initializing the FOM parameter-dependent problem, equipping it with the parameter handler, the external
        engine used for the truth solves and the specifics of the problem itself.

        :param _parameter_handler: ParameterHandler object, which handles the parameters involved in the problem
        :type _parameter_handler: ParameterHandler
        :param _external_engine: engine which solves the truth linear systems. If None, a direct scipy engine is
          used. Defaults to None
        :type _external_engine: ExternalEngine or NoneType
        :param _fom_specifics: dictionary containing the specifics of the FOM problem at hand. Defaults to None
        :type _fom_specifics: dict or NoneType
        """

        self.M_parameter_handler = _parameter_handler
        self.M_external_engine = _external_engine if _external_engine is not None else ScipyExternalEngine()
        self.M_fom_specifics = dict(_fom_specifics) if _fom_specifics is not None else dict()
        self.M_assembler = None

        return

    @property
    def parameter_handler(self):
        return self.M_parameter_handler

    @property
    def external_engine(self):
        return self.M_external_engine

    @property
    def fom_specifics(self):
        return self.M_fom_specifics

    def define_affine_decomposition(self, _registry):
        """Virtual method which attaches the theta functions and the assembly routines of the problem to the
        registry. It simply raises an Exception

        :param _registry: affine decomposition registry
        :type _registry: AffineDecompositionRegistry
        """

        raise NotImplementedError("You are using the default define_affine_decomposition, "
                                  "please provide a specific one for your problem")

    def get_dirichlet_dofs(self):
        """Method which returns the indices of the homogeneous Dirichlet degrees of freedom; none by default

        :return: indices of the Dirichlet degrees of freedom
        :rtype: numpy.ndarray
        """
        return np.zeros(0, dtype=int)

    def get_stability_lower_bound(self, _param):
        """Method which returns a lower bound of the coercivity constant of the problem at '_param', measured in the
        norm induced by the inner product matrix. The default value 1 yields an error indicator rather than a
        rigorous bound.

        :param _param: value of the parameter
        :type _param: dict[str, float]
        :return: stability lower bound
        :rtype: float
        """
        return 1.0

    def bind_assembler(self, _assembler):
        """Method which binds the OfflineAssembler used to assemble the truth systems

        :param _assembler: assembler of the truth quantities
        :type _assembler: OfflineAssembler
        """
        self.M_assembler = _assembler
        return

    def solve(self, _param=None):
        """Method which solves the truth problem at '_param' (at the current parameter of the handler if None) and
        evaluates the outputs on the truth solution

        :param _param: value of the parameter. Defaults to None
        :type _param: dict[str, float] or NoneType
        :return: truth solution and values of the outputs
        :rtype: tuple(numpy.ndarray, numpy.ndarray)
        """

        if self.M_assembler is None:
            logger.critical("No assembler has been bound to the FOM problem")
            raise ConfigurationError("No assembler has been bound to the FOM problem")

        param = self.M_parameter_handler.param if _param is None else _param
        logger.debug(f"Truth solve at {param}")

        operator = self.M_assembler.assemble_affine_operator(param)
        rhs = self.M_assembler.assemble_affine_vector(param)
        solution = self.M_external_engine.solve(operator, rhs)

        if not np.all(np.isfinite(solution)):
            raise NumericalFailure(f"Non-finite truth solution at {param}")

        outputs = self.M_assembler.evaluate_outputs(solution, param)
        return solution, outputs


__all__ = [
    "FomProblem"
]
