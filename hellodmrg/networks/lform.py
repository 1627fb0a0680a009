#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Environments of the overlap <sum_k w_k bra_k | ket> for a sweeping cursor.

    Same cursor discipline as QuadraticForm, without an operator between bra
    and ket. Used to project a weighted sum of states onto the local tensors of
    another state, i.e. to compress.
"""

__author__='Xianrui Yin'

import numpy as np
from pylops.utils.typing import NDArray

from .errors import CursorBoundaryError, ShapeMismatchError
from .mps import MPS, inner
from .operations import merge
from .mpo_projected import _EDGE, _maybe_add, check_open_boundaries, transfer

__all__ = ['LinearForm']

class LinearForm(object):
    r"""Left and right bond tensors of <bra_k|ket> for every bra

    /```\----0      <bra_k|         0----/```\
    | L |                                | R |
    \___/----1      |ket>           1----\___/

    Parameters
    ----------
    bra : MPS or list
        the target state(s)
    ket : MPS
        the state whose local tensors are optimized
    start : int
        0 places the cursor at site 0 with all right bond tensors computed,
        anything else places it at the last site with all left bond tensors
    weights : list or None
        the w_k, all ones by default

    Attributes
    ----------
    left_matrices, right_matrices : list
        [bra][site] -> matrix (bra bond, ket bond) or None

    Notes
    ----------
    Site tensors have legs (left, right, phys); single_site_vector() returns
    that layout and two_site_vector() returns (left, right, phys1, phys2).
    """

    def __init__(self, bra, ket: MPS, start=0, weights=None) -> None:
        bras = [bra] if isinstance(bra, MPS) else list(bra)
        N = len(ket)
        for bra_ in bras:
            if len(bra_) != N:
                raise ShapeMismatchError(f'bra of length {len(bra_)} for a ket of length {N}')
            check_open_boundaries(bra_, 'bra')
        check_open_boundaries(ket, 'ket')
        if weights is None:
            weights = np.ones(len(bras))
        if len(weights) != len(bras):
            raise ShapeMismatchError(f'{len(weights)} weights for {len(bras)} bras')
        self.bras = bras
        self.weights = np.asarray(weights)
        self._N = N
        self.left_matrices = [[None] * N for _ in bras]
        self.right_matrices = [[None] * N for _ in bras]
        if start == 0:
            self.current_site = N - 1
            while self.here() != 0:
                self.propagate_left(ket[self.here()])
        else:
            self.current_site = 0
            while self.here() != N - 1:
                self.propagate_right(ket[self.here()])

    def here(self):
        return self.current_site

    def size(self):
        return self._N

    def number_of_bras(self):
        return len(self.bras)

    def left_matrix(self, site: int, k=0):
        m = self.left_matrices[k][site]
        if m is None and site == 0:
            return _EDGE
        return m

    def right_matrix(self, site: int, k=0):
        m = self.right_matrices[k][site]
        if m is None and site == self._N - 1:
            return _EDGE
        return m

    def propagate_left(self, ket: NDArray):
        site = self.here()
        if site == 0:
            raise CursorBoundaryError(f'cannot propagate_left() beyond site {site}')
        for k, bra in enumerate(self.bras):
            self.right_matrices[k][site-1] = transfer(
                site, self.right_matrix(site, k), bra[site], ket, None, -1)
        self.current_site -= 1

    def propagate_right(self, ket: NDArray):
        site = self.here()
        if site + 1 >= self._N:
            raise CursorBoundaryError(f'cannot propagate_right() beyond site {site}')
        for k, bra in enumerate(self.bras):
            self.left_matrices[k][site+1] = transfer(
                site, self.left_matrix(site, k), bra[site], ket, None, +1)
        self.current_site += 1

    @staticmethod
    def _compose(site, L, P, R):
        """L^dagger P R^*, with P the (merged) bra tensor"""
        if L.shape[0] != P.shape[0] or R.shape[0] != P.shape[1]:
            raise ShapeMismatchError(
                f'site {site}: bra bonds {P.shape[:2]} do not fit environments {L.shape} and {R.shape}')
        t = np.tensordot(L.conj(), P, axes=(0,0))
        t = np.tensordot(t, R.conj(), axes=(1,0))
        return np.moveaxis(t, -1, 1)

    def single_site_vector(self):
        """The local tensor at here() that best reproduces sum_k w_k |bra_k>,
        given the (orthonormal) remaining tensors of the ket."""
        site = self.here()
        output = None
        for k, (w, bra) in enumerate(zip(self.weights, self.bras)):
            L, R = self.left_matrix(site, k), self.right_matrix(site, k)
            if L is not None and R is not None:
                output = _maybe_add(output, w * self._compose(site, L, bra[site], R))
        return output

    def two_site_vector(self, sense=+1):
        """Same as single_site_vector() for the merged pair (here, here+1) if
        sense > 0 and (here-1, here) otherwise; legs (l, r, k1, k2)."""
        i = self.here() if sense > 0 else self.here() - 1
        if i < 0 or i + 1 >= self._N:
            raise CursorBoundaryError(
                f'no pair of sites ({i}, {i+1}) next to cursor {self.here()}')
        output = None
        for k, (w, bra) in enumerate(zip(self.weights, self.bras)):
            L, R = self.left_matrix(i, k), self.right_matrix(i+1, k)
            if L is not None and R is not None:
                P = merge(bra[i], bra[i+1])
                output = _maybe_add(output, w * self._compose(i, L, P, R))
        return output

    def norm2(self):
        """|sum_k w_k bra_k|"""
        total = 0.
        for i, (wi, bi) in enumerate(zip(self.weights, self.bras)):
            total += abs(wi)**2 * inner(bi, bi).real
            for j in range(i+1, len(self.bras)):
                c = np.conj(wi) * self.weights[j] * inner(bi, self.bras[j])
                total += c + np.conj(c)
        return np.sqrt(abs(total))
