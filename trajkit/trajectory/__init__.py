"""
Trajectory Package
Building blocks of interplanetary transfers:
- Lambert solver (multi-revolution)
- Unpowered gravity assist
- MGA-DSM leg-chain evaluator
"""
