#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Local tensor operations shared by chains, engines and sweeps."""

__author__='Xianrui Yin'

import numpy as np
from scipy.linalg import qr, rq, norm

from .errors import ShapeMismatchError

__all__ = ['qr_step', 'rq_step', 'orthonormalizer', 'split', 'merge', 'mul']


def qr_step(ls, rs):
    r"""Move the orthogonality center one site to the right.

    Given two neighboring MPS (MPO) tensors as following,
          2,k         2,k
           |           |
        ---ls---    ---rs---
        0,i  1,j    0,i  1,j

    compute the QR decomposition of ls and absorb r into rs. For rank-4
    tensors both physical legs are grouped with the left bond.

    Parameters
    ----------
    ls : ndarray, ndim==3 (or 4)
        local tensor on the left, to be QR decomposed
    rs : ndarray, ndim==3 (or 4)
        local tensor on the right

    Return
    --------
    ls_new : ndarray
        left orthonormal tensor
    rs_new : ndarray
        new orthogonality center
    """
    if ls.shape[1] != rs.shape[0]:
        raise ShapeMismatchError(
            f'cannot move the center across bonds {ls.shape[1]} and {rs.shape[0]}')
    if ls.ndim == 3:
        di, dj, dk = ls.shape
        mat = ls.swapaxes(1,2).reshape(-1,dj)   # group i,k
        q, _r = qr(mat, mode='economic')
        ls_new = q.reshape(di,dk,-1).swapaxes(1,2)
    elif ls.ndim == 4:
        di, dj, dk, dl = ls.shape
        mat = ls.transpose(0,2,3,1).reshape(-1,dj)   # group i,k,l
        q, _r = qr(mat, mode='economic')
        ls_new = q.reshape(di,dk,dl,-1).transpose(0,3,1,2)
    else:
        raise ValueError('the inputs must be both rank-3 or rank-4 tensors.')
    rs_new = np.tensordot(_r, rs, axes=1)
    return ls_new, rs_new

def rq_step(ls, rs):
    r"""Move the orthogonality center one site to the left.

    The mirror image of qr_step(): rs is RQ decomposed with its right bond and
    physical legs grouped, and r is absorbed into ls.

    Return
    ----------
    ls_new : ndarray
        new orthogonality center
    rs_new : ndarray
        right orthonormal tensor
    """
    if ls.shape[1] != rs.shape[0]:
        raise ShapeMismatchError(
            f'cannot move the center across bonds {ls.shape[1]} and {rs.shape[0]}')
    if rs.ndim not in (3, 4):
        raise ValueError('the inputs must be both rank-3 or rank-4 tensors.')
    di = rs.shape[0]
    _r, q = rq(rs.reshape(di,-1), mode='economic')
    rs_new = q.reshape((-1,) + rs.shape[1:])
    ls_new = np.tensordot(ls, _r, axes=(1,0))
    # bring the new bond back to position 1
    ls_new = np.moveaxis(ls_new, -1, 1)
    return ls_new, rs_new

def orthonormalizer(self, mode:str, center_idx=None):
    r"""
    Transform the chain into a canonical form by successive QR (RQ) steps
    and normalize it at the orthogonality center.

    Parameters
    ----------
    mode : str
        'right', 'left', 'mixed'. When choosing 'mixed' the index of the
        orthogonality center must be given
    center_idx : int
        the index of the orthogonality center

    Notes
    ----------
    scipy.linalg.qr only accepts matrices, so the bond and physical legs are
    grouped by a reshape before every decomposition.
    """
    N = len(self)
    if mode == 'right':
        for i in range(N-1, 0,-1):
            self[i-1], self[i] = rq_step(self[i-1], self[i])
        self[0] = self[0] / norm(self[0].ravel())
    elif mode == 'left':
        for i in range(N-1):
            self[i], self[i+1] = qr_step(self[i], self[i+1])
        self[-1] = self[-1] / norm(self[-1].ravel())
    elif mode == 'mixed':
        if center_idx is None or not 0 <= center_idx < N:
            raise ValueError(f'center_idx must lie in [0, {N-1}], got {center_idx}')
        for i in range(center_idx):
            self[i], self[i+1] = qr_step(self[i], self[i+1])
        for i in range(N-1,center_idx,-1):
            self[i-1], self[i] = rq_step(self[i-1], self[i])
        self[center_idx] = self[center_idx] / norm(self[center_idx].ravel())
    else:
        raise ValueError(
            'Mode argument should be one of left, right or mixed')

def split(theta, mode:str, tol:float, m_max=None, renormalize=True):
    '''
    split a merged two-site tensor into two parts by a SVD and discard the
    singular values s with s/|s| <= tol, keeping at most m_max of them.

    mode 'left' puts the singular values into the left tensor (the right one
    is right orthonormal), 'right' puts them into the right tensor and 'sqrt'
    shares them. With renormalize=False the kept singular values are not
    rescaled, so the norm lost by the truncation is visible in the result.
    '''
    if mode not in ["left", "right", "sqrt"]:
        raise ValueError('unknown mode')
    if theta.ndim == 4:
        di, dj, dk1, dk2 = theta.shape
        mat = np.swapaxes(theta, 1, 2).reshape(di*dk1, dj*dk2)
    else:
        raise ValueError('Theta must have rank-4 (l, r, k1, k2)')
    u, s, vt = np.linalg.svd(mat, full_matrices=False)
    total = np.linalg.norm(s)
    if total > 0:
        pivot = np.sum(s/total > tol)
    else:
        pivot = 1
    pivot = max(1, min(pivot, m_max) if m_max else pivot)
    u, s, vt = u[:,:pivot], s[:pivot], vt[:pivot,:]
    if renormalize and total > 0:
        s = s / np.linalg.norm(s)
    if mode == 'left':
        u = u * s
    elif mode == 'right':
        vt = s[:,None] * vt
    else:
        _s = np.sqrt(s)
        u = u * _s
        vt = _s[:,None] * vt
    theta1 = np.reshape(u, (di,dk1,-1)).swapaxes(1, 2)
    theta2 = np.reshape(vt, (-1,dj,dk2))
    return theta1, theta2

def merge(theta1, theta2):
    '''
    merge two neighboring MPS tensors into one

            k1          k2                  k1    k2
            |           |                   |     |
      i---theta1--//--theta2---j  ->  i------theta------j
    '''
    if theta1.shape[1] != theta2.shape[0]:
        raise ShapeMismatchError(
            f'cannot merge tensors of shapes {theta1.shape} and {theta2.shape}')
    theta = np.tensordot(theta1, theta2, axes=(1,0))   # i,k1,j,k2
    return np.swapaxes(theta, 2, 1)

def mul(A, B):
    """
    Calculate the product of a MPO and a MPS (or another MPO) by direct
    contraction. The bond dimensions simply multiply; use simplify() on the
    result to bring them back down.

    Parameters:
        A: a MPO
        B: a MPO or a MPS

    Return:
        A x B: MPO (resp. MPS)

                    |k   output
                ----A----
    A x B   =       |k*, 3
                    |k , 2
                ----B----
                (   |k*  input)
    """
    from .mpo import MPO
    from .mps import MPS
    if len(A) != len(B):
        raise ShapeMismatchError(f'cannot multiply chains of length {len(A)} and {len(B)}')
    Os = []
    for i, (a, b) in enumerate(zip(A, B)):
        if a.shape[3] != b.shape[2]:
            raise ShapeMismatchError(
                f'site {i}: operator input dimension {a.shape[3]} != physical dimension {b.shape[2]}')
        a0, a1, a2 = a.shape[:3]
        b0, b1 = b.shape[:2]
        O = np.tensordot(a, b, axes=(3,2))   # a0,a1,a2,b0,b1,(b3)
        O = np.moveaxis(O, 3, 1)             # a0,b0,a1,a2,b1,(b3)
        O = np.moveaxis(O, 4, 3)             # a0,b0,a1,b1,a2,(b3)
        Os.append(np.reshape(O, (a0*b0, a1*b1) + O.shape[4:]))
    return MPS(Os) if isinstance(B, MPS) else MPO(Os)
