"""Shared fixtures: an in-memory stand-in for the geometry store."""

import pytest
from shapely.geometry import box

from topothin.wkb import decode_multipolygon, encode_multipolygon


class MemoryStore:
    """Holds source rows per layer and records every write."""

    def __init__(self, rows=None):
        self.rows = rows or {}
        self.updates = {}
        self.assignments = []

    def add(self, layer, code, geometry, name=None, extra=None):
        self.rows.setdefault(layer, []).append(
            (code, name or code, extra, encode_multipolygon(geometry))
        )

    def fetch_regions(self, layer):
        return iter(self.rows.get(layer.name, []))

    def update_display_geometry(self, descriptor, code, geometry):
        self.updates[(descriptor.display_table, code)] = decode_multipolygon(
            encode_multipolygon(geometry)
        )

    def insert_assignment(self, code, parents):
        self.assignments.append((code, dict(parents)))


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def two_state_store():
    """Three postal areas over two LGAs in two states, one SED and one CED."""
    store = MemoryStore()
    store.add('poa', '2000', box(0, 0, 1, 1))
    store.add('poa', '2001', box(1, 0, 2.5, 1))
    store.add('poa', '2600', box(2.5, 0, 4, 1))
    store.add('lga', '10050', box(0, 0, 2, 1), extra='1')
    store.add('lga', '89399', box(2, 0, 4, 1), extra='8')
    store.add('sed', '10001', box(0, 0, 4, 1))
    store.add('ced', '101', box(0, 0, 4, 1))
    return store
