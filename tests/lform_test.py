import numpy as np

import unittest

from hellodmrg.networks.lform import LinearForm
from hellodmrg.networks.operations import merge
from hellodmrg.networks.mps import MPS, inner
from hellodmrg.networks.errors import CursorBoundaryError, ShapeMismatchError

class TestLinearForm(unittest.TestCase):

    def test_norm2_single_bra(self):
        lf = LinearForm(self.psi, self.chi)
        self.assertAlmostEqual(lf.norm2(), np.sqrt(inner(self.psi, self.psi).real), 10)
        self.assertEqual(lf.number_of_bras(), 1)

    def test_norm2_weighted(self):
        w = [0.5 + 0.5j, -2.]
        lf = LinearForm([self.psi, self.phi], self.chi, weights=w)
        ref = np.linalg.norm(w[0]*self.psi.as_array() + w[1]*self.phi.as_array())
        self.assertAlmostEqual(lf.norm2(), ref, 10)

    def test_single_site_vector(self):
        N = len(self.chi)
        ref = inner(self.psi, self.chi)
        lf = LinearForm(self.psi, self.chi, start=0)
        for i in range(N):
            self.assertAlmostEqual(np.vdot(lf.single_site_vector(), self.chi[i]), ref, 10)
            if i < N-1:
                lf.propagate_right(self.chi[i])
        with self.assertRaises(CursorBoundaryError):
            lf.propagate_right(self.chi[N-1])

    def test_weighted_vector(self):
        w = [2. - 1j, 0.5]
        ref = np.conj(w[0])*inner(self.psi, self.chi) + np.conj(w[1])*inner(self.phi, self.chi)
        lf = LinearForm([self.psi, self.phi], self.chi, start=len(self.chi)-1, weights=w)
        self.assertAlmostEqual(np.vdot(lf.single_site_vector(), self.chi[-1]), ref, 10)

    def test_two_site_vector(self):
        N = len(self.chi)
        ref = inner(self.psi, self.chi)
        lf = LinearForm(self.psi, self.chi, start=N-1)
        for i in range(N-1, 0, -1):
            theta = merge(self.chi[i-1], self.chi[i])
            self.assertAlmostEqual(np.vdot(lf.two_site_vector(-1), theta), ref, 10)
            lf.propagate_left(self.chi[i])
        with self.assertRaises(CursorBoundaryError):
            lf.two_site_vector(-1)
        with self.assertRaises(CursorBoundaryError):
            lf.propagate_left(self.chi[0])

    def test_mismatch(self):
        short = MPS.gen_random_state(3, 4, [2,2,2], rng=0)
        with self.assertRaises(ShapeMismatchError):
            LinearForm(short, self.chi)
        with self.assertRaises(ShapeMismatchError):
            LinearForm([self.psi, self.phi], self.chi, weights=[1.])

    def test_contraction_mismatch(self):
        # a bra with other physical dims than the ket
        bra = MPS.gen_random_state(5, 4, [2,2,2,2,3], rng=1)
        with self.assertRaises(ShapeMismatchError):
            LinearForm(bra, self.chi)
        # a bra bond that does not fit the environments
        rng = np.random.default_rng(2)
        with self.assertRaises(ShapeMismatchError):
            LinearForm._compose(0, np.ones((2,3)), rng.random((4,2,2)), np.ones((2,2)))
        with self.assertRaises(ShapeMismatchError):
            LinearForm._compose(0, np.ones((4,3)), rng.random((4,2,2)), np.ones((3,2)))

    def setUp(self) -> None:
        rng = np.random.default_rng(3)
        phy_dims = [2,2,3,2,2]
        self.psi = MPS.gen_random_state(5, 6, phy_dims, rng=rng)
        self.phi = MPS.gen_random_state(5, 6, phy_dims, rng=rng)
        self.chi = MPS.gen_random_state(5, 4, phy_dims, rng=rng)

if __name__ == '__main__':
    unittest.main()
