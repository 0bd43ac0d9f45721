#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The *tpl_managers* (Third-Party Libraries Managers) submodule handles the interaction with the third-party libraries:
the *ExternalEngine* classes solve the truth linear systems (with *scipy* sparse solvers by default), while the
*Communicator* classes expose the collective operations needed by the distributed training, either trivially for a
single worker or via *mpi4py*.
"""
