"""
Dynamics Package
Two-body propagation: Kepler's equation and the universal-variable method.
"""
