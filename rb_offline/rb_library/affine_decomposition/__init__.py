#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The *affine_decomposition* submodule stores the affine expansions of the problem operators and assembles the
corresponding parameter-independent truth templates.
"""
