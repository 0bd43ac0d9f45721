#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The *rb_manager* submodule contains the *GreedyTrainer* class, responsible for the greedy construction of the reduced
basis.
"""
