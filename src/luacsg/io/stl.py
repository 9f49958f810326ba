"""STL import for mesh objects."""

from __future__ import annotations

import re
import struct
from dataclasses import dataclass
from typing import List, Tuple

Vec3 = Tuple[float, float, float]

_HEADER_SIZE = 80
_STRUCT_TRIANGLE = struct.Struct('<12fH')


@dataclass(frozen=True)
class Triangle:
    """Immutable triangle representation in XYZ space."""

    normal: Vec3
    v0: Vec3
    v1: Vec3
    v2: Vec3


def _is_binary_stl(data: bytes) -> bool:
    """Determine if STL data is binary format.

    Binary STL has 80-byte header + 4-byte count, then 50 bytes per triangle.
    ASCII STL starts with 'solid' keyword.
    """
    if len(data) < _HEADER_SIZE + 4:
        return False

    header = data[:_HEADER_SIZE].decode('ascii', errors='ignore').strip().lower()
    if not header.startswith('solid'):
        return True

    # 'solid' may just be the start of a binary header; trust the size
    tri_count = struct.unpack('<I', data[80:84])[0]
    if len(data) == 84 + tri_count * 50:
        rest = data[84:min(200, len(data))]
        return not (b'facet' in rest or b'vertex' in rest)
    return False


def _parse_binary_stl(data: bytes) -> List[Triangle]:
    """Parse binary STL data into triangles."""
    tri_count = struct.unpack('<I', data[80:84])[0]
    if len(data) < 84 + tri_count * 50:
        raise ValueError(
            f"truncated binary STL: header promises {tri_count} triangles")

    triangles = []
    offset = 84
    for _ in range(tri_count):
        values = _STRUCT_TRIANGLE.unpack(data[offset:offset + 50])
        triangles.append(Triangle(
            normal=(values[0], values[1], values[2]),
            v0=(values[3], values[4], values[5]),
            v1=(values[6], values[7], values[8]),
            v2=(values[9], values[10], values[11]),
        ))
        offset += 50

    return triangles


_NUM = r'([eE\d.+-]+)'
_FACET_PATTERN = re.compile(
    r'facet\s+normal\s+' + r'\s+'.join([_NUM] * 3) + r'\s+'
    r'outer\s+loop\s+'
    r'vertex\s+' + r'\s+'.join([_NUM] * 3) + r'\s+'
    r'vertex\s+' + r'\s+'.join([_NUM] * 3) + r'\s+'
    r'vertex\s+' + r'\s+'.join([_NUM] * 3) + r'\s+'
    r'endloop\s+endfacet',
    re.IGNORECASE
)


def _parse_ascii_stl(text: str) -> List[Triangle]:
    """Parse ASCII STL text into triangles."""
    triangles = []
    for match in _FACET_PATTERN.finditer(text):
        g = [float(v) for v in match.groups()]
        triangles.append(Triangle(
            normal=(g[0], g[1], g[2]),
            v0=(g[3], g[4], g[5]),
            v1=(g[6], g[7], g[8]),
            v2=(g[9], g[10], g[11]),
        ))
    return triangles


def read_stl(path_or_file) -> List[Triangle]:
    """Read an STL file (ASCII or binary) into a list of triangles.

    Parameters
    ----------
    path_or_file : str or path-like or file-like
        Path to STL file, or an open binary file object.

    Raises
    ------
    OSError
        The file could not be opened or read.
    ValueError
        The data is not a usable STL file (truncated or without facets).
    """
    if hasattr(path_or_file, 'read'):
        data = path_or_file.read()
        if isinstance(data, str):
            data = data.encode('utf-8')
    else:
        with open(path_or_file, 'rb') as f:
            data = f.read()

    if _is_binary_stl(data):
        triangles = _parse_binary_stl(data)
    else:
        triangles = _parse_ascii_stl(data.decode('utf-8', errors='replace'))

    if not triangles:
        raise ValueError("no triangles found in STL data")
    return triangles


__all__ = ['Triangle', 'read_stl']
