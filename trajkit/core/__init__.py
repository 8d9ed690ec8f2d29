"""
Core Package
Constants, time handling, state representations and the error taxonomy
shared by every other package.
"""
