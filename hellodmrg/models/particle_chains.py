#!/usr/bin/env python3
# -*- coding: utf-8 -*-

__author__='Xianrui Yin'

import numpy as np
from scipy import sparse

from ..networks.mpo import MPO

__all__ = ['HardCoreBosons']

class HardCoreBosons(object):
    r"""1D chain of hard-core bosons (at most one particle per site)

    H = -t \sum_i (b^\dagger_i b_{i+1} + h.c.) + U \sum_i n_i n_{i+1} - mu \sum_i n_i

    With nearest-neighbour hopping only, the spectrum coincides with that of
    the free-fermion tight-binding chain when U = 0.

    Parameters
    ----------
    N : int
        size of the 1D-lattice
    t : float
        hopping amplitude
    U : float
        nearest-neighbour interaction strength (U>0 means replusive)
    mu : float
        chemical potential
    """
    d = 2
    bt = np.array([[0., 0.], [1., 0.]])
    bn = np.array([[0., 1.], [0., 0.]])
    num = np.diag([0., 1.])
    nu = np.zeros((2,2))
    bid = np.eye(2)

    def __init__(self, N:int, t=1., U=0., mu=0.) -> None:
        self._N = N
        self.t = t
        self.U = U
        self.mu = mu

    @property
    def hduo(self):
        """two-site terms of the bonds, legs ``(i, j), (i*, j*)``"""
        bt, bn, n = self.bt, self.bn, self.num
        return [- self.t * (np.kron(bt, bn) + np.kron(bn, bt)) + self.U * np.kron(n, n)
                for _ in range(self._N - 1)]

    def H_full(self):
        N, d = self._N, self.d
        h_full = sparse.csr_matrix((d**N, d**N))
        for i, hh in enumerate(self.hduo):
            h_full += sparse.kron(sparse.eye(d**i), sparse.kron(hh, sparse.eye(d**(N-2-i))))
        for i in range(N):
            h_full += sparse.kron(sparse.eye(d**i), sparse.kron(-self.mu * self.num, sparse.eye(d**(N-1-i))))
        return sparse.csr_matrix(h_full)

    @property
    def mpo(self):
        t, U, mu = self.t, self.U, self.mu
        bt, bn = self.bt, self.bn
        n, nu, id = self.num, self.nu, self.bid
        O = np.array([[id, nu, nu, nu, nu],
                      [bn, nu, nu, nu, nu],
                      [bt, nu, nu, nu, nu],
                      [n, nu, nu, nu, nu],
                      [-mu*n, -t*bt, -t*bn, U*n, id]])
        return MPO(self._close(O))

    @property
    def number_mpo(self):
        r"""total particle number \sum_i n_i"""
        n, nu, id = self.num, self.nu, self.bid
        O = np.array([[id, nu],
                      [n, id]])
        return MPO(self._close(O))

    def _close(self, O):
        Os = [O] * self._N
        Os[0] = O[None,-1,:,:,:]
        Os[-1] = Os[-1][:,0,None,:,:]
        return Os

    def sector(self, n:int):
        """indices of the basis states with n particles, site 0 being the
        most significant bit"""
        return np.array([c for c in range(self.d**self._N) if bin(c).count('1') == n], dtype=int)

    def __len__(self):
        return self._N
