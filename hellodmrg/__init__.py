#!/usr/bin/env python3
# -*- coding: utf-8 -*-

__author__='Xianrui Yin'

import os

# threads used by the BLAS backend, only honoured before numpy is imported
cpu_deploy = os.environ.get('HELLODMRG_NUM_THREADS')

if cpu_deploy:
    os.environ["OMP_NUM_THREADS"] = cpu_deploy
    os.environ["NUMEXPR_NUM_THREADS"] = cpu_deploy
    os.environ["OPENBLAS_NUM_THREADS"] = cpu_deploy
