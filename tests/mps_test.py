import numpy as np

import unittest
import logging
logging.basicConfig(level=logging.INFO)

from hellodmrg.networks.mps import *
from hellodmrg.networks.errors import ShapeMismatchError

class TestMPS(unittest.TestCase):

    def test_orthonormalize(self):
        psi = self.psi
        psi.orthonormalize('left')
        for A in psi:
            A = np.transpose(A, (0,2,1))
            s = A.shape
            A = np.reshape(A, (s[0]*s[1], s[2]))
            self.assertTrue(np.allclose(A.conj().T @ A, np.eye(s[2])))
        psi.orthonormalize('right')
        for A in psi:
            s = A.shape
            A = np.reshape(A, (s[0], s[1]*s[2]))
            self.assertTrue(np.allclose(A @ A.T.conj(), np.eye(s[0])))
        idx = self.rng.integers(len(psi))
        psi.orthonormalize('mixed', idx)
        for i in range(idx):
            A = np.transpose(psi[i], (0,2,1))
            s = A.shape
            A = np.reshape(A, (s[0]*s[1], s[2]))
            self.assertTrue(np.allclose(A.conj().T @ A, np.eye(s[2])))
        for i in range(idx+1,len(psi)):
            A = psi[i]
            s = A.shape
            A = np.reshape(A, (s[0], s[1]*s[2]))
            self.assertTrue(np.allclose(A @ A.T.conj(), np.eye(s[0])))
        self.assertAlmostEqual(norm(psi), 1., 12)

    def test_orthonormalize_keeps_state(self):
        psi = self.psi
        before = psi.as_array()
        psi.orthonormalize('right')
        after = psi.as_array()
        self.assertTrue(np.allclose(after, before/np.linalg.norm(before)))

    def test_inner(self):
        psi, phi = self.psi, self.phi
        psi.orthonormalize('right')
        phi.orthonormalize('left')
        res1 = inner(psi, phi)
        res2 = np.vdot(psi.as_array(), phi.as_array())
        self.assertAlmostEqual(res1, res2, 12)

    def test_inner_length_mismatch(self):
        short = MPS.gen_random_state(2, 4, [2,2], rng=1)
        with self.assertRaises(ShapeMismatchError):
            inner(self.psi, short)

    def test_as_mps(self):
        phy_dims = [2,3,2,2]
        v = self.rng.normal(size=np.prod(phy_dims)) + 1j*self.rng.normal(size=np.prod(phy_dims))
        psi = as_mps(v, phy_dims)
        self.assertEqual(psi.physical_dims, phy_dims)
        self.assertEqual(psi.bond_dims[0], 1)
        self.assertEqual(psi.bond_dims[-1], 1)
        self.assertTrue(np.allclose(psi.as_array(), v))
        with self.assertRaises(ShapeMismatchError):
            as_mps(v[:-1], phy_dims)

    def test_product_state(self):
        psi = MPS.gen_product_state([0,1,1,0], [2]*4)
        v = np.zeros(16)
        v[0b0110] = 1.
        self.assertTrue(np.allclose(psi.as_array(), v))
        self.assertEqual(psi.bond_dims, [1]*5)

    def test_bad_bonds(self):
        rng = self.rng
        with self.assertRaises(ShapeMismatchError):
            MPS([rng.random((1,2,2)), rng.random((3,1,2))])
        with self.assertRaises(ShapeMismatchError):
            MPS([rng.random((1,2,2,2)), rng.random((2,1,2))])
        # non-trivial outer bonds are a valid chain
        MPS([rng.random((2,3,2)), rng.random((3,2,2))])

    def test_long_chain(self):
        N = 70
        psi = MPS.gen_random_state(N, 8, [2]*N, rng=0)
        bond_dims = psi.bond_dims
        self.assertEqual(bond_dims[:4], [1,2,4,8])
        self.assertEqual(bond_dims[-4:], [8,4,2,1])
        self.assertEqual(max(bond_dims), 8)
        self.assertEqual(min(bond_dims), 1)
        psi = MPS.gen_random_state(N, 8, np.full(N, 3), rng=0)
        self.assertEqual(psi.bond_dims[1:-1], [3] + [8]*(N-3) + [3])

    def test_physical_dims_length(self):
        with self.assertRaises(ShapeMismatchError):
            MPS.gen_random_state(4, 8, [2]*3, rng=0)

    def test_compress(self):
        psi = self.psi
        phi, err = compress(psi, 1e-12, max(psi.bond_dims), max_sweeps=4)
        self.assertLess(err, 1e-6)
        overlap = abs(inner(phi, psi)) / (norm(phi) * norm(psi))
        self.assertAlmostEqual(overlap, 1., 8)

    def setUp(self) -> None:
        self.rng = np.random.default_rng(7)
        N = 6
        phy_dims = [2,3,2,2,3,2]
        self.psi = MPS.gen_random_state(N, 8, phy_dims, rng=self.rng)
        self.phi = MPS.gen_random_state(N, 8, phy_dims, rng=self.rng)

if __name__ == '__main__':
    unittest.main()
