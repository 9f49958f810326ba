"""I/O utilities for luacsg."""

from .stl import read_stl, Triangle

__all__ = ['read_stl', 'Triangle']
