#!/usr/bin/env python3
# -*- coding: utf-8 -*-

#----------Density Matrix Renormalization Group (DMRG) algorithm for ground state research----------

__author__='Xianrui Yin'

import numpy as np
from scipy.sparse.linalg import eigsh
from pylops import MatrixMult

import os
import logging
import warnings
logging.info(f'number of threads in use:{os.environ.get("OMP_NUM_THREADS")}')

from ..networks.errors import ConvergenceNotReached, ShapeMismatchError
from ..networks.mps import MPS, inner
from ..networks.mpo import MPO
from ..networks.operations import qr_step, rq_step, merge, split
from ..networks.mpo_projected import QuadraticForm, expected
from .fidelity import eigenstate_fidelity

__all__ = ["MinimizerOptions", "Minimizer", "minimize"]

class MinimizerOptions(object):
    """Parameters of a DMRG run

    Parameters
    ----------
    sweeps : int
        maximum number of sweeps, one sweep visits every site once
    tolerance : float
        relative change of the energy between two sweeps below which the
        run is converged
    svd_tolerance : float
        largest discarded singular value in two-site updates
    Dmax : int
        largest bond dimension in two-site updates, 0 for no limit
    sense : int
        direction of the first sweep, > 0 from left to right
    alternate : bool
        alternate the sweep direction, otherwise every sweep restarts from
        the same end
    two_sites : bool
        optimize pairs of neighboring sites, which lets the bond dimension grow
    penalty : float
        weight of the constraint penalties
    constraint_tolerance : float
        how far a local constraint eigenvalue or the final expectation value
        may lie from its target
    dense_cutoff : int
        local problems up to this dimension are diagonalized densely, larger
        ones with eigsh()
    compute_eig_fidelity : bool
        compute the eigenstate fidelity after the sweeps
    simp_sweeps, simp_Dmax, simp_tol :
        compression parameters used for the eigenstate fidelity
    """

    def __init__(self, sweeps=32, tolerance=1e-10, svd_tolerance=1e-10, Dmax=0, sense=+1,
                 alternate=True, two_sites=False, penalty=100., constraint_tolerance=1e-6,
                 dense_cutoff=400, compute_eig_fidelity=False, simp_sweeps=4, simp_Dmax=0,
                 simp_tol=1e-10) -> None:
        self.sweeps = sweeps
        self.tolerance = tolerance
        self.svd_tolerance = svd_tolerance
        self.Dmax = Dmax
        self.sense = sense
        self.alternate = alternate
        self.two_sites = two_sites
        self.penalty = penalty
        self.constraint_tolerance = constraint_tolerance
        self.dense_cutoff = dense_cutoff
        self.compute_eig_fidelity = compute_eig_fidelity
        self.simp_sweeps = simp_sweeps
        self.simp_Dmax = simp_Dmax
        self.simp_tol = simp_tol

class Minimizer(object):
    r"""DMRG algorithm for 1D ground state search

        Parameters
        ----------
        options : MinimizerOptions or None
            run parameters, defaults if None
        H : MPO
            model Hamiltonian in `MPO` format
        psi : MPS
            the initial MPS to be optimized, optimization is done in place

        Attributes
        ----------
        constraints : list
            (MPO, target value) pairs registered with add_constraint()
        energies : list
            energy after every sweep of the last full_sweep()
        constraint_values : list
            final expectation value of every constraint
        eig_fidelity, simp_err : float
            eigenstate fidelity and its compression error, -1 if not computed
        converged : bool
            whether the last full_sweep() met the tolerances

        Notes
        ----------
        Every local problem is solved for its lowest eigenvalue. When that
        eigenvalue is degenerate the dense solver returns the eigenvector with
        the lowest column index of numpy.linalg.eigh(), eigsh() returns
        whichever vector ARPACK finds first; in that case runs are not
        reproducible unless the start vectors are.
    """

    def __init__(self, options, H: MPO, psi: MPS) -> None:
        if len(psi) != len(H):
            raise ShapeMismatchError(f'state of length {len(psi)} for a Hamiltonian of length {len(H)}')
        self.options = options if options is not None else MinimizerOptions()
        self.H = H
        self.psi = psi
        self.constraints = []
        self.forms = []
        self.energies = []
        self.constraint_values = []
        self.eig_fidelity = -1.
        self.simp_err = -1.
        self.converged = False

    def add_constraint(self, C: MPO, value: float):
        """steer the search towards states with <C> = value"""
        if len(C) != len(self.H):
            raise ShapeMismatchError(f'constraint of length {len(C)} for a Hamiltonian of length {len(self.H)}')
        self.constraints.append((C, value))

    def full_sweep(self, psi=None):
        """Run the sweeps and return the best energy estimate

        Parameters
        ----------
        psi : MPS or None
            the state to optimize in place, the one given at construction by default
        """
        psi = self.psi if psi is None else psi
        opt = self.options
        sense = opt.sense
        two_sites = opt.two_sites and len(psi) > 1
        self.energies = []
        self.converged = False
        stable = False
        E = None
        for n in range(opt.sweeps):
            if n == 0 or not opt.alternate:
                self._start(psi, sense)
            if two_sites:
                E = self._two_site_pass(psi, sense)
            else:
                E = self._one_site_pass(psi, sense)
            self.energies.append(E)
            logging.info(f'DMRG sweep #{n} (sense {sense:+d}): energy {E}, bond dims {psi.bond_dims}')
            if opt.alternate:
                sense = -sense
            if n > 0 and abs(E - self.energies[-2]) < opt.tolerance * max(1., abs(E)):
                stable = True
                break
        norm2 = inner(psi, psi).real
        self.constraint_values = [expected(psi, C).real / norm2 for C, _ in self.constraints]
        satisfied = all(abs(v - c) <= opt.constraint_tolerance * max(1., abs(c))
                        for v, (_, c) in zip(self.constraint_values, self.constraints))
        self.converged = stable and satisfied
        if not self.converged:
            warnings.warn(f'DMRG stopped after {len(self.energies)} sweeps with energy {E}, '
                          f'energy stable: {stable}, constraint values {self.constraint_values}',
                          ConvergenceNotReached)
        if opt.compute_eig_fidelity:
            self.eig_fidelity, self.simp_err = eigenstate_fidelity(
                self.H, psi, E=E, simp_tol=opt.simp_tol, simp_sweeps=opt.simp_sweeps,
                simp_Dmax=opt.simp_Dmax)
        return E

    def _start(self, psi, sense):
        """canonical form and environments for a sweep starting at one end"""
        if sense > 0:
            psi.orthonormalize('right')
            start = 0
        else:
            psi.orthonormalize('left')
            start = len(psi) - 1
        self.forms = [QuadraticForm(self.H, psi, psi, start)]
        self.forms += [QuadraticForm(C, psi, psi, start) for C, _ in self.constraints]

    def _one_site_pass(self, psi, sense):
        N = len(psi)
        sites = range(N) if sense > 0 else range(N-1, -1, -1)
        for i in sites:
            dense = psi[i].size <= max(self.options.dense_cutoff, 2)
            qf = self.forms[0]
            H = qf.single_site_matrix() if dense else qf.single_site_operator()
            Cs = [c.single_site_matrix() for c in self.forms[1:]]
            E, x = self._solve(H, Cs, psi[i])
            psi[i] = np.reshape(x, psi[i].shape)
            logging.debug(f'site {i}: energy {E}')
            if sense > 0 and i < N-1:
                psi[i], psi[i+1] = qr_step(psi[i], psi[i+1])
                for qf in self.forms:
                    qf.propagate_right(psi[i])
            elif sense < 0 and i > 0:
                psi[i-1], psi[i] = rq_step(psi[i-1], psi[i])
                for qf in self.forms:
                    qf.propagate_left(psi[i])
        return E

    def _two_site_pass(self, psi, sense):
        N = len(psi)
        opt = self.options
        m_max = opt.Dmax if opt.Dmax else None
        bonds = range(N-1) if sense > 0 else range(N-2, -1, -1)
        for i in bonds:
            j = i+1
            x = merge(psi[i], psi[j])
            dense = x.size <= max(opt.dense_cutoff, 2)
            qf = self.forms[0]
            H = qf.two_site_matrix(sense) if dense else qf.two_site_operator(sense)
            Cs = [c.two_site_matrix(sense) for c in self.forms[1:]]
            E, x = self._solve(H, Cs, x)
            x = np.reshape(x, merge(psi[i], psi[j]).shape)
            logging.debug(f'sites ({i}, {j}): energy {E}')
            # split the result tensor
            if sense > 0:
                psi[i], psi[j] = split(x, 'right', opt.svd_tolerance, m_max)
                for qf in self.forms:
                    qf.propagate_right(psi[i])
            else:
                psi[i], psi[j] = split(x, 'left', opt.svd_tolerance, m_max)
                for qf in self.forms:
                    qf.propagate_left(psi[j])
        return E

    def _penalty(self, C, value, n):
        """projector onto the local states whose constraint value is not `value`"""
        if C is None:
            C = np.zeros((n, n))
        C = 0.5 * (C + C.conj().T)
        w, v = np.linalg.eigh(C)
        inside = np.abs(w - value) <= self.options.constraint_tolerance * max(1., abs(value))
        if np.any(inside):
            V = v[:, inside]
            return np.eye(n) - V @ V.conj().T
        logging.warning(f'no local state has constraint value {value}, '
                        f'using a quadratic penalty (local spectrum {w.min()}..{w.max()})')
        D = C - value * np.eye(n)
        return D.conj().T @ D

    def _solve(self, H, Cs, x0):
        """lowest eigenpair of H + penalty * sum(Q_c), with the energy of H alone"""
        n = x0.size
        if H is None:
            H = np.zeros((n, n))
        Qs = [self._penalty(C, value, n) for C, (_, value) in zip(Cs, self.constraints)]
        if isinstance(H, np.ndarray):
            M = H + self.options.penalty * sum(Qs, np.zeros((n, n)))
            w, v = np.linalg.eigh(0.5 * (M + M.conj().T))
            x = v[:, 0]
            Hx = H @ x
        else:
            op = H
            for Q in Qs:
                op = op + self.options.penalty * MatrixMult(Q, dtype=Q.dtype)
            v0 = x0.ravel()
            if not np.issubdtype(op.dtype, np.complexfloating):
                v0 = v0.real + v0.imag
            w, v = eigsh(op, k=1, which='SA', v0=v0)
            x = v[:, 0]
            Hx = H.matvec(x)
        E = np.vdot(x, Hx).real / np.vdot(x, x).real
        return E, x

def minimize(H: MPO, psi: MPS, options=None, constraints=None):
    """Optimize psi in place towards the ground state of H, return the energy.

    constraints is a sequence of (MPO, target value) pairs.
    """
    lab = Minimizer(options, H, psi)
    for C, value in constraints or ():
        lab.add_constraint(C, value)
    return lab.full_sweep(psi)
