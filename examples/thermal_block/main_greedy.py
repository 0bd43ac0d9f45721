#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Greedy training of a certified reduced basis for the one-dimensional thermal block problem. Run it either serially or
with 'mpiexec -n <workers> python main_greedy.py' after setting USE_MPI in the configuration.
"""

import sys
import os
sys.path.insert(0, os.path.normpath('../../'))
sys.path.insert(0, os.path.normpath('../'))

import examples.thermal_block.thermal_block_problem as tbp
import examples.thermal_block.config as config

import rb_offline.pde_problem.parameter_handler as ph
import rb_offline.rb_library.affine_decomposition.affine_decomposition as ad
import rb_offline.rb_library.rb_manager.greedy_trainer as gt
from rb_offline.tpl_managers.communicator import MpiCommunicator, SerialCommunicator

import logging.config

log_file_path = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                             os.path.normpath('../../rb_offline/log.cfg'))
logging.config.fileConfig(log_file_path, disable_existing_loggers=False)
logger = logging.getLogger(__name__)


def execute():
    ###################################################################################################################
    ############################################### INITIALIZATION ####################################################
    ###################################################################################################################

    communicator = MpiCommunicator() if config.USE_MPI else SerialCommunicator()

    my_parameter_handler = ph.ParameterHandler()
    my_tbp = tbp.ThermalBlockProblem(my_parameter_handler, _fom_specifics=config.fom_specifics)

    # the affine decomposition is attached by the trainer
    my_affine_decomposition = ad.AffineDecompositionRegistry()

    my_trainer = gt.GreedyTrainer(my_tbp, my_affine_decomposition, communicator,
                                  _training_specifics=config.training_specifics)

    my_trainer.initialize_training_parameters()

    if config.READ_OFFLINE_DATA:
        my_trainer.read_offline_data_from_files()

    ###################################################################################################################
    ############################################### GREEDY TRAINING ###################################################
    ###################################################################################################################

    max_error_bound = my_trainer.train_reduced_basis()

    if communicator.rank == 0:
        logger.info(f"Final maximum error bound: {max_error_bound:.6e}")
        for cnt in range(my_trainer.get_n_basis_functions()):
            logger.info(f"Greedy parameter {cnt}: {my_trainer.get_greedy_parameter(cnt)}")

    ###################################################################################################################
    ############################################### ONLINE CHECK ######################################################
    ###################################################################################################################

    test_param = {'kappa_0': 0.5, 'kappa_1': 3.0}
    error_bound = my_trainer.rb_evaluation.RB_solve(test_param)
    truth_solution, truth_outputs = my_tbp.solve(test_param)
    rb_solution = my_trainer.rb_evaluation.reconstruct_solution()

    logger.info(f"Test parameter {test_param}: error bound {error_bound:.3e}, "
                f"truth output {truth_outputs[0]:.6e}, RB output {my_trainer.rb_evaluation.RB_outputs[0]:.6e} "
                f"(bound {my_trainer.rb_evaluation.RB_output_error_bounds[0]:.3e}), "
                f"max nodal error {abs(truth_solution - rb_solution).max():.3e}")

    return


if __name__ == "__main__":
    execute()
