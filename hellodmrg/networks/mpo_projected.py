#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Environments of <bra| MPO |ket> and the effective local operators built from them.

    A QuadraticForm keeps, for every site, the contractions of the chain segments
    to the left and to the right of that site. A cursor marks the site being
    optimized; moving it by one site computes exactly one new environment from
    the one already valid at the cursor. The effective operators are returned
    either as dense matrices or as matrix-free linear operators to be handed to
    iterative eigensolvers.
"""

__author__='Xianrui Yin'

from collections import namedtuple

import numpy as np
from pylops import LinearOperator
from pylops.utils.typing import NDArray

from .errors import BoundaryConditionError, CursorBoundaryError, ShapeMismatchError
from .mps import MPS

__all__ = ["Pair", "make_pairs", "ProjPairs", "QuadraticForm", "expected", "transfer"]

Pair = namedtuple('Pair', ['left_ndx', 'right_ndx', 'op'])
Pair.__doc__ = """Nonzero (left bond, right bond) block `op` of an MPO tensor, legs (out, in)"""

# environment of the empty segment beyond either end of an open chain
_EDGE = np.ones((1,1))
_EDGE.flags.writeable = False

def make_pairs(mpo):
    """Record the nonzero blocks of every MPO tensor.

    Return
    ----------
    a tuple with one tuple of Pairs per site; blocks that are exactly zero
    are left out.
    """
    output = []
    for W in mpo:
        pairs = []
        for i in range(W.shape[0]):
            for j in range(W.shape[1]):
                if np.any(W[i,j]):
                    op = np.array(W[i,j])
                    op.flags.writeable = False
                    pairs.append(Pair(i, j, op))
        output.append(tuple(pairs))
    return tuple(output)

def check_open_boundaries(chain, name:str):
    left, right = chain[0].shape[0], chain[-1].shape[1]
    if left != 1 or right != 1:
        raise BoundaryConditionError(
            f'{name} has boundary bonds ({left}, {right}), '
            'only open boundary conditions are supported')

def _maybe_add(a, b):
    if a is None:
        return b
    if a.shape != b.shape:
        raise ShapeMismatchError(f'cannot accumulate tensors of shapes {a.shape} and {b.shape}')
    return a + b

def transfer(site: int, env: NDArray, bra: NDArray, ket: NDArray, op=None, direction=+1):
    r"""Contract one site of <bra| op |ket> into an environment.

    direction > 0 grows a left environment by `site`,

    /```\----0      0--bra*--1
    | L |              |i
    |   |              op         ->   L'(1, 1)
    |   |              |j
    \___/----1      0--ket---1

    direction < 0 grows a right environment. Environments are matrices
    (bra bond, ket bond). `op` is an (out, in) block; None is the identity.
    The bra is complex conjugated here.
    """
    if bra.ndim != 3 or ket.ndim != 3:
        raise ShapeMismatchError(
            f'site {site}: expected rank-3 tensors, got bra {bra.shape} and ket {ket.shape}')
    phys = (bra.shape[2], ket.shape[2])
    if (op is None and phys[0] != phys[1]) or (op is not None and op.shape != phys):
        raise ShapeMismatchError(
            f'site {site}: physical dims (bra, ket) = {phys} do not fit operator '
            f'{None if op is None else op.shape}')
    axis = 0 if direction > 0 else 1
    if env.shape != (bra.shape[axis], ket.shape[axis]):
        raise ShapeMismatchError(
            f'site {site}: environment {env.shape} does not fit bonds '
            f'{(bra.shape[axis], ket.shape[axis])} of bra and ket')
    if direction > 0:
        t = np.tensordot(env, ket, axes=(1,0))           # xb, yk, j
        if op is not None:
            t = np.tensordot(t, op, axes=(2,1))          # xb, yk, i
        return np.tensordot(bra.conj(), t, axes=([0,2],[0,2]))
    t = np.tensordot(ket, env, axes=(1,1))               # xk, j, yb
    if op is not None:
        t = np.tensordot(t, op, axes=(1,1))              # xk, yb, i
    else:
        t = np.swapaxes(t, 1, 2)
    return np.tensordot(bra.conj(), t, axes=([1,2],[1,2]))

class ProjPairs(LinearOperator):
    r"""Sum of MPO blocks projected onto one or two neighboring sites

                    <bra|

    /```\----0        0         0----/```\
    |   |           __|__            |   |
    | L |           | op|...         | R |
    |   |           ``|``            |   |
    \___/----1        1         1----\___/

                    |ket>

    Parameters
    ----------
    terms : list
        tuples (coef, L, R, ops), `ops` holding one (out, in) block per site
    dims : tuple
        shape of the ket tensor, (l, r, k1[, k2])
    dimsd : tuple
        shape of the bra tensor
    """

    def __init__(self, terms: list, dims: tuple, dimsd: tuple) -> None:
        self.terms = terms
        dtypes = {np.asarray(a).dtype for coef, L, R, ops in terms for a in (coef, L, R) + tuple(ops)}
        dtype = np.result_type(*dtypes) if dtypes else np.float64
        super().__init__(dtype=dtype, dims=dims, dimsd=dimsd)

    def _matvec(self, x: NDArray) -> NDArray:
        x = x.reshape(self.dims)
        y = np.zeros(self.dimsd, dtype=np.result_type(self.dtype, x.dtype))
        for coef, L, R, ops in self.terms:
            t = np.tensordot(L, x, axes=(1,0))
            t = np.tensordot(t, R, axes=(1,1))
            for op in ops:
                t = np.tensordot(t, op, axes=(1,1))
            y += coef * t
        return y.ravel()

    def _rmatvec(self, x: NDArray) -> NDArray:
        x = x.reshape(self.dimsd)
        y = np.zeros(self.dims, dtype=np.result_type(self.dtype, x.dtype))
        for coef, L, R, ops in self.terms:
            t = np.tensordot(L.conj(), x, axes=(0,0))
            t = np.tensordot(t, R.conj(), axes=(1,0))
            for op in ops:
                t = np.tensordot(t, op.conj(), axes=(1,0))
            y += np.conj(coef) * t
        return y.ravel()

class QuadraticForm(object):
    r"""Environments of <bra| O |ket> for a sweeping cursor

    Parameters
    ----------
    mpo : MPO
        the operator O
    bra : MPS or list
        one or several bra chains, the bra side is <sum_k w_k bra_k|
    ket : MPS
        the ket chain
    start : int
        0 places the cursor at site 0 with all right environments computed,
        anything else places it at the last site with all left environments
    weights : list or None
        the w_k, all ones by default

    Attributes
    ----------
    pairs : tuple
        nonzero blocks of every MPO tensor, see make_pairs()
    left_matrices, right_matrices : list
        [bra][site][mpo bond] -> matrix (bra bond, ket bond) or None

    Notes
    ----------
    Leg order of the site tensors is (left, right, phys) for the chains and
    (left, right, out, in) for the operator, the physical legs last. Local
    matrices and operators act on tensors flattened in C order over
    (left, right, phys[, phys]).

    The chains are borrowed, not copied. Whoever drives the sweep may only
    replace the tensor under the cursor, right before propagating past it.
    Tensors changing shape elsewhere invalidate the form.
    """

    def __init__(self, mpo, bra, ket: MPS, start=0, weights=None) -> None:
        bras = [bra] if isinstance(bra, MPS) else list(bra)
        N = len(mpo)
        for chain in bras + [ket]:
            if len(chain) != N:
                raise ShapeMismatchError(f'chain of length {len(chain)} for an operator of length {N}')
        check_open_boundaries(mpo, 'operator')
        check_open_boundaries(ket, 'ket')
        for bra_ in bras:
            check_open_boundaries(bra_, 'bra')
        if weights is None:
            weights = np.ones(len(bras))
        if len(weights) != len(bras):
            raise ShapeMismatchError(f'{len(weights)} weights for {len(bras)} bras')
        self.bras = bras
        self.weights = np.asarray(weights)
        self.pairs = make_pairs(mpo)
        self._N = N
        self.left_matrices = [[[None] * W.shape[0] for W in mpo] for _ in bras]
        self.right_matrices = [[[None] * W.shape[1] for W in mpo] for _ in bras]
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

    def left_matrix(self, site: int, ndx: int, k=0):
        m = self.left_matrices[k][site][ndx]
        if m is None and site == 0:
            return _EDGE
        return m

    def right_matrix(self, site: int, ndx: int, k=0):
        m = self.right_matrices[k][site][ndx]
        if m is None and site == self._N - 1:
            return _EDGE
        return m

    def propagate_left(self, ket: NDArray):
        """absorb site here() into the right environment of here()-1 and move there"""
        site = self.here()
        if site == 0:
            raise CursorBoundaryError(f'cannot propagate_left() beyond site {site}')
        for k, bra in enumerate(self.bras):
            new = [None] * len(self.right_matrices[k][site-1])
            for p in self.pairs[site]:
                R = self.right_matrix(site, p.right_ndx, k)
                if R is not None:
                    new[p.left_ndx] = _maybe_add(new[p.left_ndx],
                                                 transfer(site, R, bra[site], ket, p.op, -1))
            self.right_matrices[k][site-1] = new
        self.current_site -= 1

    def propagate_right(self, ket: NDArray):
        """absorb site here() into the left environment of here()+1 and move there"""
        site = self.here()
        if site + 1 >= self._N:
            raise CursorBoundaryError(f'cannot propagate_right() beyond site {site}')
        for k, bra in enumerate(self.bras):
            new = [None] * len(self.left_matrices[k][site+1])
            for p in self.pairs[site]:
                L = self.left_matrix(site, p.left_ndx, k)
                if L is not None:
                    new[p.right_ndx] = _maybe_add(new[p.right_ndx],
                                                  transfer(site, L, bra[site], ket, p.op, +1))
            self.left_matrices[k][site+1] = new
        self.current_site += 1

    def _single_site_terms(self):
        site = self.here()
        terms = []
        for k, w in enumerate(self.weights):
            for p in self.pairs[site]:
                L = self.left_matrix(site, p.left_ndx, k)
                R = self.right_matrix(site, p.right_ndx, k)
                if L is not None and R is not None:
                    terms.append((np.conj(w), L, R, (p.op,)))
        return terms

    def _two_site_terms(self, sense):
        i = self.here() if sense > 0 else self.here() - 1
        if i < 0 or i + 1 >= self._N:
            raise CursorBoundaryError(
                f'no pair of sites ({i}, {i+1}) next to cursor {self.here()}')
        terms = []
        for k, w in enumerate(self.weights):
            for p1 in self.pairs[i]:
                L = self.left_matrix(i, p1.left_ndx, k)
                if L is None:
                    continue
                for p2 in self.pairs[i+1]:
                    # the bond between both sites must match
                    if p1.right_ndx != p2.left_ndx:
                        continue
                    R = self.right_matrix(i+1, p2.right_ndx, k)
                    if R is not None:
                        terms.append((np.conj(w), L, R, (p1.op, p2.op)))
        return terms

    @staticmethod
    def _dense(terms):
        output = None
        for coef, L, R, ops in terms:
            m = np.kron(L, R)
            for op in ops:
                m = np.kron(m, op)
            output = _maybe_add(output, coef * m)
        return output

    @staticmethod
    def _operator(terms):
        if not terms:
            return None
        _, L, R, ops = terms[0]
        dims = (L.shape[1], R.shape[1]) + tuple(op.shape[1] for op in ops)
        dimsd = (L.shape[0], R.shape[0]) + tuple(op.shape[0] for op in ops)
        return ProjPairs(terms, dims, dimsd)

    def single_site_matrix(self):
        """Dense effective operator at here(), rows (l, r, k) of the bra and
        columns (l, r, k) of the ket; None if no block contributes."""
        return self._dense(self._single_site_terms())

    def two_site_matrix(self, sense=+1):
        """Dense effective operator on (here, here+1) for sense > 0, on
        (here-1, here) otherwise; rows and columns (l, r, k1, k2)."""
        return self._dense(self._two_site_terms(sense))

    def single_site_operator(self):
        return self._operator(self._single_site_terms())

    def two_site_operator(self, sense=+1):
        return self._operator(self._two_site_terms(sense))

def expected(bra: MPS, mpo, ket=None):
    """<bra| mpo |ket>, with ket = bra by default"""
    ket = bra if ket is None else ket
    M = QuadraticForm(mpo, bra, ket, start=0).single_site_matrix()
    if M is None:
        return 0.
    return np.vdot(bra[0].ravel(), M @ ket[0].ravel())
