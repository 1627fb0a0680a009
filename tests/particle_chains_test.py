import numpy as np
from scipy.special import comb

import unittest

from hellodmrg.models.particle_chains import HardCoreBosons

class TestHardCoreBosons(unittest.TestCase):

    def test_mpo(self):
        model = HardCoreBosons(5, t=0.7, U=1.3, mu=0.4)
        self.assertEqual(model.mpo.bond_dims, [1,5,5,5,5,1])
        self.assertTrue(np.allclose(model.mpo.to_matrix(), model.H_full().toarray()))

    def test_number_mpo(self):
        model = HardCoreBosons(4)
        M = model.number_mpo.to_matrix()
        counts = [bin(c).count('1') for c in range(16)]
        self.assertTrue(np.allclose(M, np.diag(counts)))

    def test_sector(self):
        model = HardCoreBosons(6)
        for n in range(7):
            self.assertEqual(len(model.sector(n)), comb(6, n, exact=True))
        self.assertEqual(list(HardCoreBosons(3).sector(1)), [1, 2, 4])

    def test_free_fermions(self):
        N = 6
        model = HardCoreBosons(N, t=1.)
        H = model.H_full().toarray()
        eps = -2 * np.cos(np.pi * np.arange(1, N+1) / (N+1))
        for n in range(N+1):
            idx = model.sector(n)
            E = np.linalg.eigvalsh(H[np.ix_(idx, idx)])[0]
            self.assertAlmostEqual(E, np.sort(eps)[:n].sum(), 10)

    def test_single_site(self):
        model = HardCoreBosons(1, mu=0.5)
        self.assertEqual(len(model), 1)
        self.assertTrue(np.allclose(model.mpo.to_matrix(), np.diag([0., -0.5])))

if __name__ == '__main__':
    unittest.main()
