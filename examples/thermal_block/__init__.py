#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The *thermal_block* submodule contains the definition of the one-dimensional thermal block problem, parametrized by
the conductivities of its two blocks, together with a configuration file and a script running the greedy training.
"""
