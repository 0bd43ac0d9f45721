#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The *rb_library* submodule is the core of the *rb_offline* package. It contains:

    * the training set generation and partitioning among workers (*TrainingSetSampler*)
    * the affine decomposition registry and the truth-level assembler of the affine templates and Riesz representors
    * the Empirical Interpolation Method (*EimSystem*), providing affine approximations of non-affine terms
    * the reduced basis management (*BasisManager*) and the online evaluation of reduced solutions and a posteriori
      error bounds (*RbEvaluation*)
    * the greedy algorithm driving the Offline stage (*GreedyTrainer*) and the HDF5 persistence of its results
"""
