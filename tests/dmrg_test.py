import numpy as np

import unittest
import logging
logging.basicConfig(level=logging.INFO)

from hellodmrg.algorithms.dmrg import *
from hellodmrg.models.particle_chains import HardCoreBosons
from hellodmrg.networks.mps import MPS
from hellodmrg.networks.mpo_projected import expected
from hellodmrg.networks.errors import ConvergenceNotReached, ShapeMismatchError

class TestMinimizer(unittest.TestCase):

    def test_two_particles(self):
        # two hard-core bosons on 4 sites: free fermions with -2cos(pi/5) - 2cos(2pi/5)
        E_exact = -2*np.cos(np.pi/5) - 2*np.cos(2*np.pi/5)
        idx = self.model.sector(2)
        E_dense = np.linalg.eigvalsh(self.H[np.ix_(idx, idx)])[0]
        self.assertAlmostEqual(E_dense, E_exact, 10)

        psi = MPS.gen_random_state(self.N, 16, [2]*self.N, rng=1)
        options = MinimizerOptions(sweeps=10, tolerance=1e-10)
        lab = Minimizer(options, self.model.mpo, psi)
        lab.add_constraint(self.model.number_mpo, 2)
        E = lab.full_sweep()
        self.assertAlmostEqual(E, E_exact, delta=1e-6)
        self.assertTrue(lab.converged)
        self.assertAlmostEqual(lab.constraint_values[0], 2., delta=1e-6)
        self.assertAlmostEqual(expected(psi, self.model.mpo).real, E_exact, delta=1e-6)

    def test_one_site(self):
        E0 = np.linalg.eigvalsh(self.H)[0]
        psi = MPS.gen_random_state(self.N, 16, [2]*self.N, rng=2)
        E = minimize(self.model.mpo, psi, MinimizerOptions(sweeps=10))
        self.assertAlmostEqual(E, E0, delta=1e-6)

    def test_two_sites(self):
        E0 = np.linalg.eigvalsh(self.H)[0]
        psi = MPS.gen_product_state([0,1,0,1], [2]*self.N)
        options = MinimizerOptions(sweeps=10, two_sites=True, Dmax=16, sense=-1)
        lab = Minimizer(options, self.model.mpo, psi)
        E = lab.full_sweep()
        self.assertAlmostEqual(E, E0, delta=1e-6)
        self.assertLessEqual(max(psi.bond_dims), 4)
        self.assertLessEqual(len(lab.energies), 10)

    def test_single_particle(self):
        idx = self.model.sector(1)
        E1 = np.linalg.eigvalsh(self.H[np.ix_(idx, idx)])[0]
        self.assertAlmostEqual(E1, -2*np.cos(np.pi/5), 10)
        psi = MPS.gen_random_state(self.N, 16, [2]*self.N, rng=3)
        E = minimize(self.model.mpo, psi, MinimizerOptions(sweeps=10),
                     constraints=[(self.model.number_mpo, 1)])
        self.assertAlmostEqual(E, E1, delta=1e-6)

    def test_contradictory_constraints(self):
        psi = MPS.gen_random_state(self.N, 16, [2]*self.N, rng=4)
        lab = Minimizer(MinimizerOptions(sweeps=6), self.model.mpo, psi)
        lab.add_constraint(self.model.number_mpo, 1)
        lab.add_constraint(self.model.number_mpo, 3)
        with self.assertWarns(ConvergenceNotReached):
            E = lab.full_sweep()
        self.assertTrue(np.isfinite(E))
        self.assertFalse(lab.converged)

    def test_iterative_solver(self):
        E0 = np.linalg.eigvalsh(self.H)[0]
        psi = MPS.gen_random_state(self.N, 16, [2]*self.N, rng=5)
        options = MinimizerOptions(sweeps=10, dense_cutoff=8)
        E = minimize(self.model.mpo, psi, options)
        self.assertAlmostEqual(E, E0, delta=1e-6)

    def test_eig_fidelity(self):
        psi = MPS.gen_random_state(self.N, 16, [2]*self.N, rng=6)
        lab = Minimizer(MinimizerOptions(sweeps=10, compute_eig_fidelity=True), self.model.mpo, psi)
        self.assertEqual(lab.eig_fidelity, -1.)
        lab.full_sweep()
        self.assertAlmostEqual(lab.eig_fidelity, 1., delta=1e-6)
        self.assertLess(lab.simp_err, 1e-6)

    def test_length_mismatch(self):
        psi = MPS.gen_random_state(3, 4, [2]*3, rng=7)
        with self.assertRaises(ShapeMismatchError):
            Minimizer(None, self.model.mpo, psi)
        lab = Minimizer(None, self.model.mpo, MPS.gen_random_state(self.N, 4, [2]*self.N, rng=8))
        with self.assertRaises(ShapeMismatchError):
            lab.add_constraint(HardCoreBosons(3).number_mpo, 1)

    def setUp(self) -> None:
        self.N = 4
        self.model = HardCoreBosons(self.N, t=1.)
        self.H = self.model.H_full().toarray()

if __name__ == '__main__':
    unittest.main()
