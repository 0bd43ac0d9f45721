#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The *pde_problem* submodule contains the classes that describe a parametrized problem at the truth level. The
*ParameterHandler* class handles the characteristic parameters (bounds, log scaling, discrete values and the currently
active value); the *FomProblem* class is an abstract class merging in a unique interface the parameter handler, the
external engine solving the truth linear systems and the specifics of the problem. Concrete problems inherit from
*FomProblem* and attach their affine decomposition in *define_affine_decomposition()*. Finally, the training specifics
module collects, validates and loads from JSON the settings of the greedy training.
"""
