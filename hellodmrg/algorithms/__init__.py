#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Ground state search, compression and diagnostics
"""

__author__='Xianrui Yin'

from .simplify import *
from .fidelity import *
from .dmrg import *
