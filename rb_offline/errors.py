#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exception classes raised by the Offline stage. Each one derives from the built-in exception that best describes it,
so that callers may catch either the specific or the generic type.
"""


class ConfigurationError(ValueError):
    """Inconsistent or unsupported setup of the parameter space, of the training set or of the affine decomposition.
    Always raised before any numerical work is performed.
    """

    pass


class IndexOutOfRangeError(IndexError):
    """Request of a training sample that is not stored by the calling worker, or of an affine term that does not
    exist.
    """

    pass


class NumericalFailure(RuntimeError):
    """A truth solve or an inner-product solve failed (non-convergence, singular factorization, non-finite values).
    """

    pass


class NotAttachedError(NotImplementedError):
    """Request of a quantity related to a feature (outputs, EIM systems, inner-product or constraint assembly) that
    has never been attached.
    """

    pass


__all__ = [
    "ConfigurationError",
    "IndexOutOfRangeError",
    "NumericalFailure",
    "NotAttachedError"
]
