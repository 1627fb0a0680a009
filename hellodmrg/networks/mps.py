#!/usr/bin/env python3
# -*- coding: utf-8 -*-


__author__='Xianrui Yin'

import numpy as np

from copy import deepcopy
from math import prod
import logging

from .errors import ShapeMismatchError
from .operations import orthonormalizer

__all__ = ['MPS', 'as_mps', 'inner', 'norm', 'compress']

class MPS(object):
    '''
    class for matrix product states

    Parameters
    ----------
    As: list of local rank-3 tensors, each tensor has the following shape
                k
                |
            i---A---j
        i (j) is the left (right) bond leg and k is the physical leg

    Attributes
    ----------
    As: list of local tensors

    Methods
    ----------
    orthonormalize()
    as_array()
    conj()

    Notes
    ----------
    Neighboring bonds must agree. The outer bonds are not checked here, the
    environment engines refuse chains whose outer bonds are not trivial.
    '''

    def __init__(self, As:list) -> None:
        self.As = list(As)
        self._N = len(self.As)
        self.__bot()

    @classmethod
    def gen_product_state(cls, occupations:list, phy_dims:list):
        """product state with site i in the basis state occupations[i]"""
        if len(occupations) != len(phy_dims):
            raise ShapeMismatchError(
                f'{len(occupations)} occupations for {len(phy_dims)} sites')
        As = []
        for n, d in zip(occupations, phy_dims):
            A = np.zeros([1,1,d])
            A[0,0,n] = 1.
            As.append(A)
        return cls(As)

    @classmethod
    def gen_random_state(cls, N:int, m_max:int, phy_dims:list, rng=None):
        """random complex state whose bonds are as large as possible up to m_max"""
        if len(phy_dims) != N:
            raise ShapeMismatchError(f'{len(phy_dims)} physical dims for {N} sites')
        rng = np.random.default_rng(rng)
        # python ints, the products overflow int64 on long chains
        phy_dims = [int(d) for d in phy_dims]
        bond_dims = [min(m_max, prod(phy_dims[:i]), prod(phy_dims[i:]))
                     for i in range(N+1)]
        As = []
        for i in range(N):
            size = (bond_dims[i],bond_dims[i+1],phy_dims[i])
            As.append((rng.normal(size=size) + 1j*rng.normal(size=size))/2**0.5)
        return cls(As)

    def orthonormalize(self, mode:str, center_idx=None):
        orthonormalizer(self, mode, center_idx)

    @property
    def physical_dims(self):
        return [A.shape[2] for A in self]

    @property
    def bond_dims(self):
        return [A.shape[0] for A in self] + [self[-1].shape[1]]

    def as_array(self):
        """
        convert a MPS into a state vector by iterative contractions,
        site 0 is the most significant index
        """
        res = self[0]
        for A in self.As[1:]:
            res = np.tensordot(res, A, axes=(1,0))
            res = np.swapaxes(res, 1, 2)
            res = np.reshape(res, (res.shape[0],A.shape[1],-1))
        return np.trace(res, axis1=0, axis2=1) if res.shape[0] > 1 else res.ravel()

    def conj(self):
        return MPS([A.conj() for A in self])

    def __len__(self):
        return self._N

    def __getitem__(self, idx: int):
        return self.As[idx]

    def __setitem__(self, idx: int, value):
        self.As[idx] = value

    def __iter__(self):
        return iter(self.As)

    def __bot(self):
        for i, A in enumerate(self.As):
            if A.ndim != 3:
                raise ShapeMismatchError(f'site {i}: MPS tensors must be rank-3, got {A.shape}')
        # check bond dims of neighboring tensors
        for i in range(self._N-1):
            if self.As[i].shape[1] != self.As[i+1].shape[0]:
                raise ShapeMismatchError(
                    f'bond {i}: right bond {self.As[i].shape[1]} of site {i} '
                    f'!= left bond {self.As[i+1].shape[0]} of site {i+1}')

def as_mps(psi: np.ndarray, phy_dims:list):
    """
    convert a state vector into a MPS by iterative SVDs, nothing is truncated
    """
    psi = np.asarray(psi)
    if psi.ndim != 1 or psi.size != np.prod(phy_dims):
        raise ShapeMismatchError(
            f'a vector of shape {psi.shape} does not match physical dims {list(phy_dims)}')
    As = []
    rest = psi.reshape(1,-1)
    for d in phy_dims[:-1]:
        dl = rest.shape[0]
        rest = rest.reshape(dl*d, -1)
        u, s, vt = np.linalg.svd(rest, full_matrices=False)
        As.append(u.reshape(dl,d,-1).swapaxes(1,2))
        rest = s[:,None] * vt
    As.append(rest.reshape(rest.shape[0],phy_dims[-1],1).swapaxes(1,2))
    return MPS(As)

def inner(amps: MPS, bmps: MPS):
    """Evaluating the inner product of two MPSs by bubbling, complexity=O(D^3)

    Parameters
    ----------
    amps : MPS
        the bra MPS
    bmps : MPS
        the ket MPS

    Return
    ----------
    the inner product <amps|bmps>
    """
    if len(amps) != len(bmps):
        raise ShapeMismatchError(f'inner product of chains of length {len(amps)} and {len(bmps)}')
    res = np.tensordot(amps[0].conj(),bmps[0],axes=([0,2],[0,2]))
    for i in range(1,len(amps)):
        res = np.tensordot(amps[i].conj(), res, axes=(0,0))
        try:
            res = np.tensordot(res, bmps[i], axes=([1,2],[2,0]))
        except ValueError as e:
            logging.error(f'i={i}, shape b:{bmps[i].shape}, shape a:{amps[i].shape}, shape res:{res.shape}')
            raise ShapeMismatchError(f'site {i}: {e}') from e
    return res.squeeze()[()]

def norm(psi: MPS):
    """the 2-norm of a MPS"""
    return np.sqrt(abs(inner(psi, psi)))

def compress(psi:MPS, tol:float, m_max:int, max_sweeps:int, two_sites=True):
    """Variational compression of a MPS starting from a SVD-truncated copy.

    Parameters
    ----------
    psi : MPS
        the MPS to be compressed, left untouched
    tol : float
        the largest truncated (relative) singular value
    m_max : int
        maximum bond dimension
    max_sweeps : int
        maximum optimization sweeps

    Return
    ----------
    phi : MPS
        the compressed MPS, normalized like psi
    err : float
        the relative distance |phi - psi| / |psi|
    """
    from ..algorithms.simplify import simplify
    N = len(psi)
    phi = deepcopy(psi)
    phi.orthonormalize('left')
    # peform a SVD sweep from the right to left
    for i in range(N-1,0,-1):
        di, dj, dk = phi[i].shape
        u, s, vt = np.linalg.svd(np.reshape(phi[i], (di, dj*dk)), full_matrices=False)
        keep = max(1, min(np.sum(s/np.linalg.norm(s) > tol), m_max))
        phi[i] = vt[:keep,:].reshape(-1,dj,dk)
        phi[i-1] = np.tensordot(phi[i-1], u[:,:keep]*s[:keep], axes=(1,0)).swapaxes(1,2)
    # now we arrive at a right canonical MPS
    err = simplify(phi, psi, sense=+1, sweeps=max_sweeps, normalize=False,
                   Dmax=m_max, tol=tol, two_sites=two_sites)
    logging.info(f'compressed bond dims {psi.bond_dims} -> {phi.bond_dims}, error {err}')
    return phi, err
