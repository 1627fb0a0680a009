#!/usr/bin/env python3
# -*- coding: utf-8 -*-


__author__='Xianrui Yin'

import numpy as np

from .errors import ShapeMismatchError

__all__ = ['MPO']

class MPO(object):
    """class for matrix product operators

    Parameters
    ----------
    As : list
        a list of rank-4 tensors, each tensor has the following shape

        k |
    i---- A ----j
        k*|

    i (j) is the left (right) bond leg, k is the output and k* the input
    physical leg; the legs are ordered as `i, j, k, k*`

    Attributes
    ----------
    As : list
        as described above

    Notes
    ----------
    Interaction terms leave most (i, j) blocks of a tensor identically zero.
    The environment engines record the nonzero blocks once and walk only
    those, so there is no need to store the tensors in a sparse format.
    """
    def __init__(self, As) -> None:
        self.As = list(As)
        self._N = len(self.As)
        self.__bot()

    @classmethod
    def gen_random_mpo(cls, N:int, m_max:int, phy_dims:list, hermitian=False, rng=None):
        if len(phy_dims) != N:
            raise ShapeMismatchError(f'{len(phy_dims)} physical dims for {N} sites')
        rng = np.random.default_rng(rng)
        bond_dims = rng.integers(1, m_max, size=N+1)
        bond_dims[0] = bond_dims[-1] = 1
        As = []
        for i in range(N):
            size = (bond_dims[i],bond_dims[i+1],phy_dims[i], phy_dims[i])
            As.append(rng.random(size) + 1j*rng.random(size))
        if hermitian:
            As = [A + A.swapaxes(2,3).conj() for A in As]
        return cls(As)

    @property
    def bond_dims(self):
        return [A.shape[0] for A in self.As] + [self.As[-1].shape[1]]

    @property
    def physical_dims(self):
        return [A.shape[2] for A in self.As]

    def conj(self):
        """
        Complex conjugate of the MPO
        """
        return MPO([A.conj() for A in self.As])

    def hc(self):
        """
        Hermitian conjugate (adjoint) of the MPO
        """
        return MPO([A.swapaxes(2,3).conj() for A in self.As])

    def to_matrix(self):
        """
        convert the MPO into a dense matrix, site 0 being the most significant
        index. Only sensible for short chains, mainly used as a reference.
        """
        full = self.As[0]
        for i in range(1,self._N):
            full = np.tensordot(full, self.As[i],axes=(1,0))
            full = np.transpose(full, (0,3,1,4,2,5))
            di, dj, dk1, dk2, dk3, dk4 = full.shape
            full = np.reshape(full, (di, dj, dk1*dk2, dk3*dk4))
        return np.trace(full, axis1=0, axis2=1)

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
            if A.ndim != 4:
                raise ShapeMismatchError(f'site {i}: MPO tensors must be rank-4, got {A.shape}')
        # check bond dims of neighboring tensors
        for i in range(self._N-1):
            if self.As[i].shape[1] != self.As[i+1].shape[0]:
                raise ShapeMismatchError(
                    f'bond {i}: right bond {self.As[i].shape[1]} of site {i} '
                    f'!= left bond {self.As[i+1].shape[0]} of site {i+1}')
