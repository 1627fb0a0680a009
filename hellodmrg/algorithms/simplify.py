#!/usr/bin/env python3
# -*- coding: utf-8 -*-

#----------Variational compression of a MPS (or a sum of MPSs) into a smaller MPS----------

__author__='Xianrui Yin'

import numpy as np

from copy import deepcopy
import logging
import warnings

from ..networks.errors import ConvergenceNotReached
from ..networks.mps import MPS
from ..networks.lform import LinearForm
from ..networks.operations import qr_step, rq_step, merge, split

__all__ = ['simplify']

# the error is the square root of a difference of squared norms and cannot
# resolve changes much below sqrt(machine epsilon)
_RESOLUTION = 10 * np.sqrt(np.finfo(float).eps)

def simplify(P:MPS, Q, weights=None, sense=+1, sweeps=4, normalize=True, Dmax=0,
             tol=1e-10, two_sites=True, alternate=True):
    r"""Approximate sum_k w_k |Q_k> by the MPS P, modified in place.

    Parameters
    ----------
    P : MPS
        initial guess, overwritten with the result
    Q : MPS or list
        the target state(s); a target which is P itself is copied first
    weights : list or None
        coefficients w_k of the targets, all ones by default
    sense : int
        direction of the first sweep, > 0 from left to right
    sweeps : int
        maximum number of sweeps, one sweep visits every site once
    normalize : bool
        rescale the result to unit norm
    Dmax : int
        largest bond dimension kept by the two-site update, 0 for no limit
    tol : float
        largest discarded (relative) singular value; also the error at which
        the sweeps stop
    two_sites : bool
        two-site updates can change the bond dimensions, one-site updates
        keep those of the initial guess
    alternate : bool
        alternate the sweep direction, otherwise every sweep goes in the
        direction given by `sense`

    Return
    ----------
    err : float
        the relative distance |P - sum_k w_k Q_k| / |sum_k w_k Q_k| before
        the optional normalization

    ConvergenceNotReached is warned whenever the final error lies above tol
    (or above the resolution of the error, about 1e-7), whichever rule
    ended the sweeps. ValueError is raised for sweeps < 1.
    """
    if sweeps < 1:
        raise ValueError(f'simplify() needs at least one sweep, got {sweeps}')
    targets = [Q] if isinstance(Q, MPS) else list(Q)
    targets = [deepcopy(q) if q is P else q for q in targets]
    N = len(P)
    two_sites = two_sites and N > 1
    lf = None
    err = None
    for n in range(sweeps):
        if lf is None or not alternate:
            lf = _prepare(P, targets, weights, sense)
            normt = lf.norm2()
        if two_sites:
            d2, center = _two_site_pass(P, lf, sense, Dmax, tol)
        else:
            d2, center = _one_site_pass(P, lf, sense)
        olderr = err
        err = np.sqrt(max(normt**2 + d2, 0.))
        if normt > 0:
            err /= normt
        logging.info(f'simplify sweep #{n} (sense {sense:+d}): error {err}, bond dims {P.bond_dims}')
        if alternate:
            sense = -sense
        if err < tol or (olderr is not None and abs(olderr - err) < max(tol, _RESOLUTION)):
            break
    # a plateau above the tolerance is not convergence
    if err >= max(tol, _RESOLUTION):
        warnings.warn(f'simplify() stopped after {n+1} sweeps with error {err} > {tol}',
                      ConvergenceNotReached)
    if normalize:
        nrm = np.linalg.norm(P[center])
        if nrm > 0:
            P[center] = P[center] / nrm
    return err

def _prepare(P, targets, weights, sense):
    """bring P into the canonical form the first sweep expects and build the bond tensors"""
    if sense > 0:
        P.orthonormalize('right')
        return LinearForm(targets, P, start=0, weights=weights)
    P.orthonormalize('left')
    return LinearForm(targets, P, start=len(P)-1, weights=weights)

def _two_site_pass(P, lf, sense, Dmax, tol):
    N = len(P)
    m_max = Dmax if Dmax else None
    if sense > 0:
        for i in range(N-1):
            theta = lf.two_site_vector(+1)
            P[i], P[i+1] = split(theta, 'right', tol, m_max, renormalize=False)
            lf.propagate_right(P[i])
        i, center = N-2, N-1
    else:
        for j in range(N-1, 0, -1):
            theta = lf.two_site_vector(-1)
            P[j-1], P[j] = split(theta, 'left', tol, m_max, renormalize=False)
            lf.propagate_left(P[j])
        i, center = 0, 0
    # all other tensors are orthonormal: |P|^2 - 2 Re<P|target> from the last pair
    kept = merge(P[i], P[i+1])
    d2 = np.vdot(kept, kept).real - 2 * np.vdot(kept, theta).real
    return d2, center

def _one_site_pass(P, lf, sense):
    N = len(P)
    sites = range(N) if sense > 0 else range(N-1, -1, -1)
    for i in sites:
        phi = lf.single_site_vector()
        if sense > 0 and i < N-1:
            P[i], P[i+1] = qr_step(phi, P[i+1])
            lf.propagate_right(P[i])
        elif sense < 0 and i > 0:
            P[i-1], P[i] = rq_step(P[i-1], phi)
            lf.propagate_left(P[i])
        else:
            P[i] = phi
    center = N-1 if sense > 0 else 0
    # phi is the projection of the target, <P|target> = |P|^2 = |phi|^2
    return -np.vdot(phi, phi).real, center
