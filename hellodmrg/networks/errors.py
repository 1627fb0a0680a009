#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Errors raised by chains and environment engines.

Structural problems (boundary conditions, cursor moves, inconsistent shapes)
are programming errors of the caller and are raised. Numerical non-convergence
is a normal outcome; it is only signalled with a warning.
"""

__author__='Xianrui Yin'

__all__ = ['BoundaryConditionError', 'CursorBoundaryError', 'ShapeMismatchError',
           'ConvergenceNotReached']

class BoundaryConditionError(ValueError):
    """A chain has a boundary bond different from 1 (periodic boundary conditions)."""

class CursorBoundaryError(IndexError):
    """The cursor of an environment engine was asked to leave the chain."""

class ShapeMismatchError(ValueError):
    """Bond or physical dimensions of tensors that are contracted together disagree."""

class ConvergenceNotReached(UserWarning):
    """A sweep budget was exhausted before the requested tolerance was met."""
