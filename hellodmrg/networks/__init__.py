"""
One dimensional tensor networks and their environments
"""

from .errors import *
from .mps import *
from .mpo import *
from .operations import *
from .mpo_projected import *
from .lform import *
