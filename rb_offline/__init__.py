#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The *rb_offline* package implements the Offline stage of the certified Reduced Basis (RB) method for affinely
parametrized, steady, linear problems. Its core task is the greedy construction of a reduced basis: the a posteriori
error bound is evaluated over a (possibly distributed) training set of parameter samples, the truth problem is solved
at the worst approximated sample and the resulting snapshot enriches the basis, until a tolerance or a maximal basis
size is reached. The package is organized into different submodules that are linked hereafter.

    * *pde_problem*: handling of the characteristic parameters, definition of the truth (FOM) problems and of the
      training specifics
    * *rb_library*: training set generation, affine decomposition, EIM, basis management, error bounds, greedy
      training and persistence of the offline data
    * *tpl_managers*: interfaces towards third-party libraries, i.e. the linear solvers of the truth problems and the
      collective communication among workers
    * *utils*: array and HDF5 utilities
"""

__version__ = "0.1.0"
