"""
Trajectory Toolkit
Two-body orbital mechanics primitives and a multi-gravity-assist
trajectory evaluator:
- State conversions (Cartesian <-> classical orbital elements)
- Kepler equation solver and universal-variable propagation
- Lambert solver with multi-revolution branches
- Unpowered flyby model
- MGA-DSM leg-chain evaluator
"""

__version__ = "0.1.0"
