from .particle_chains import *
