#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The *examples* module is devoted to the testing of the methods implemented in *rb_offline* on some test cases, as the
name suggests; each submodule refers to a specific toy problem. Specifically, we considered the one-dimensional
*thermal block* problem.
"""
