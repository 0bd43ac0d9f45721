import os


#######################################################################################################################
######################################## PROBLEM CONFIGURATION ########################################################
#######################################################################################################################

root = os.path.dirname(os.path.abspath(__file__))  # TO SET --> root of the test directory

problem_name = "ThermalBlock1D"  # name of the problem

# specifics of the fom problem to be solved
fom_specifics = {
    'n_elements': 200,  # number of P1 elements
    'interface': 0.5,  # position of the interface between the two blocks
    'source': 1.0  # intensity of the heat source
}

# specifics of the greedy training
training_specifics = {
    'parameters': {'kappa_0': {'min': 0.1, 'max': 10.0, 'log_scaling': True},
                   'kappa_1': {'min': 0.1, 'max': 10.0, 'log_scaling': True}},
    'n_training_samples': 400,  # number of training parameters; a perfect square for deterministic sampling
    'deterministic': False,  # deterministic grid or random sampling
    'random_seed': 42,  # seed of the random sampling
    'training_tolerance': 1e-6,  # greedy tolerance on the max error bound
    'Nmax': 10,  # maximal number of basis functions
    'delta_N': 1,  # basis functions added per iteration
    'use_empty_RB_solve_in_greedy': False,  # first iteration driven by the N=0 error bounds
    'write_data_during_training': True,  # write the offline data after every iteration
    'return_rel_error_bound': False,  # relative error bounds
    'offline_data_directory': os.path.join(root, 'offline_data')  # directory of the offline data
}

USE_MPI = False  # distribute the training set with mpi4py
READ_OFFLINE_DATA = False  # restore the offline data and resume the training
