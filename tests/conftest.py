import struct

import pytest

## unit cube [0, 1]^3, two triangles per face, wound outward
CUBE = [
    ((0, 0, 0), (0, 1, 1), (0, 1, 0)), ((0, 0, 0), (0, 0, 1), (0, 1, 1)),
    ((1, 0, 0), (1, 1, 0), (1, 1, 1)), ((1, 0, 0), (1, 1, 1), (1, 0, 1)),
    ((0, 0, 0), (1, 0, 0), (1, 0, 1)), ((0, 0, 0), (1, 0, 1), (0, 0, 1)),
    ((0, 1, 0), (0, 1, 1), (1, 1, 1)), ((0, 1, 0), (1, 1, 1), (1, 1, 0)),
    ((0, 0, 0), (0, 1, 0), (1, 1, 0)), ((0, 0, 0), (1, 1, 0), (1, 0, 0)),
    ((0, 0, 1), (1, 0, 1), (1, 1, 1)), ((0, 0, 1), (1, 1, 1), (0, 1, 1)),
]


def ascii_stl(triangles, name='cube'):
    lines = [f'solid {name}']
    for tri in triangles:
        lines.append('  facet normal 0 0 0')
        lines.append('    outer loop')
        for v in tri:
            lines.append('      vertex {} {} {}'.format(*v))
        lines.append('    endloop')
        lines.append('  endfacet')
    lines.append(f'endsolid {name}')
    return '\n'.join(lines) + '\n'


def binary_stl(triangles):
    data = bytearray(b' ' * 80)
    data += struct.pack('<I', len(triangles))
    for tri in triangles:
        data += struct.pack('<12fH', 0, 0, 0, *[c for v in tri for c in v], 0)
    return bytes(data)


@pytest.fixture
def cube_ascii(tmp_path):
    path = tmp_path / 'cube_ascii.stl'
    path.write_text(ascii_stl(CUBE))
    return path


@pytest.fixture
def cube_binary(tmp_path):
    path = tmp_path / 'cube.stl'
    path.write_bytes(binary_stl(CUBE))
    return path
