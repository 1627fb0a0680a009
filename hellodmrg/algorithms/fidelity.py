#!/usr/bin/env python3
# -*- coding: utf-8 -*-

__author__='Xianrui Yin'

import numpy as np

import logging

from ..networks.mps import MPS, inner
from ..networks.mpo import MPO
from ..networks.operations import mul
from .simplify import simplify

__all__ = ['eigenstate_fidelity']

def eigenstate_fidelity(H:MPO, psi:MPS, E=None, simp_tol=1e-10, simp_sweeps=4, simp_Dmax=0):
    r"""How close psi is to an eigenstate of H

        F = |<psi|H|psi>| / sqrt(<psi|H^2|psi>)     (psi normalized)

    F == 1 if and only if psi is an eigenstate. The intermediate state H|psi>
    is compressed with simplify() to keep its bond dimension in check.

    Parameters
    ----------
    H : MPO
        the Hamiltonian
    psi : MPS
        the candidate state, left untouched
    E : float or None
        <psi|H|psi> / <psi|psi> if already known
    simp_tol, simp_sweeps, simp_Dmax :
        tol, sweeps and Dmax handed to simplify()

    Return
    ----------
    F : float
        the eigenstate fidelity
    simp_err : float
        the error made compressing H|psi>
    """
    Hpsi = mul(H, psi)
    simp_err = simplify(Hpsi, Hpsi, sense=-1, sweeps=simp_sweeps, normalize=False,
                        Dmax=simp_Dmax, tol=simp_tol)
    norm2_psi = inner(psi, psi).real
    if E is None:
        E = inner(psi, Hpsi).real / norm2_psi
    F = abs(E) * np.sqrt(norm2_psi) / np.sqrt(inner(Hpsi, Hpsi).real)
    logging.info(f'eigenstate fidelity {F}, energy {E}, simplification error {simp_err}')
    return F, simp_err
