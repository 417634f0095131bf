#!/usr/bin/env python3
"""
Shared test setup: headless matplotlib and the package on sys.path.
"""

import os
import sys

import matplotlib
matplotlib.use('Agg')

# Add the package to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
