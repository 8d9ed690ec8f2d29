"""
Ephemeris Package
Sources of body states at a requested epoch, passed explicitly to the
trajectory evaluator:
- JPL approximate Keplerian elements for the major planets
- SPICE kernels through spiceypy
- Physical properties (radius, gravitational parameter) of the planets
"""
