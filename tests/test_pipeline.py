"""Tests for the thin and relate runs."""

import pytest
from shapely.geometry import Polygon, box

from topothin.config import RunConfig
from topothin.core import Region
from topothin.layers import LGA, POA, RegionLayer
from topothin.pipeline import (
    build_layers,
    dissolve_states,
    relate_regions,
    run_relate,
    run_thin,
    thin_layers,
)
from topothin.topology import TopologyBuilder
from topothin.core.geometry_utils import to_multipolygon


CONFIG = RunConfig('2016', '2016', '2016', '2016', 'dbname=abs', tolerance=0.001)

# A border at x=1 with sub-tolerance zigzag
WIGGLE = [(1 + (0.0005 if i % 2 else 0.0), i / 10) for i in range(1, 10)]
LEFT = Polygon([(0, 0), (1, 0)] + WIGGLE + [(1, 1), (0, 1)])
RIGHT = Polygon([(2, 0), (2, 1), (1, 1)] + WIGGLE[::-1] + [(1, 0)])


class TestThin:
    """Tests for thinning several layers together."""

    def test_layers_share_simplified_borders(self, memory_store):
        """A postal area identical to an LGA stays identical after thinning."""
        memory_store.add('poa', 'L', LEFT)
        memory_store.add('poa', 'R', RIGHT)
        memory_store.add('lga', 'A', LEFT, extra='1')
        layers = [RegionLayer(POA, '2016', memory_store), RegionLayer(LGA, '2016', memory_store)]

        geometries, history = thin_layers(layers, TopologyBuilder(tolerance=0.001))

        left = geometries[('poa', 'L')]
        right = geometries[('poa', 'R')]
        assert left.equals(geometries[('lga', 'A')])
        assert len(left.geoms[0].exterior.coords) == 5
        assert left.intersection(right).area == 0
        assert left.union(right).area == pytest.approx(2.0)

        assert [stage.name for stage in history] == [
            'Load poa2016', 'Load lga2016', 'Find nodes', 'Create edges',
            'Simplify edges', 'Reassemble polygons', 'Save poa_disp', 'Save lga_disp',
        ]
        assert history[-2].count == 2
        assert set(memory_store.updates) == {('poa_disp', 'L'), ('poa_disp', 'R'), ('lga_disp', 'A')}

    def test_no_save(self, memory_store):
        memory_store.add('poa', 'L', LEFT)
        layers = [RegionLayer(POA, '2016', memory_store)]

        geometries, _ = thin_layers(layers, TopologyBuilder(tolerance=0.001), save=False)

        assert list(geometries) == [('poa', 'L')]
        assert memory_store.updates == {}

    def test_run_thin_writes_every_display_table(self, two_state_store):
        result = run_thin(CONFIG, two_state_store)

        assert len(result.geometries) == 7
        assert set(result.states) == {'1', '8'}
        assert result.states['1'].area == pytest.approx(2.0)
        assert result.states['8'].area == pytest.approx(2.0)

        tables = sorted({table for table, _ in two_state_store.updates})
        assert tables == ['ced_disp', 'lga_disp', 'poa_disp', 'sed_disp', 'ste_disp']
        assert two_state_store.updates[('ste_disp', '8')].equals(result.states['8'])
        assert result.history[-1].name == 'Create states'


class TestDissolveStates:
    """Tests for building state outlines from LGAs."""

    def test_groups_by_state(self):
        lgas = [
            Region('10050', 'Albury', to_multipolygon(box(0, 0, 1, 1)), extra='1'),
            Region('10110', 'Armidale', to_multipolygon(box(1, 0, 2, 1)), extra='1'),
            Region('89399', 'Unincorporated ACT', to_multipolygon(box(5, 5, 6, 6)), extra='8'),
        ]

        states = dissolve_states(lgas)

        assert list(states) == ['1', '8']
        assert len(states['1'].geoms) == 1
        assert states['1'].area == pytest.approx(2.0)

    def test_prefers_simplified(self):
        lga = Region('10050', 'Albury', to_multipolygon(box(0, 0, 2, 2)), extra='1')
        lga.simplified = to_multipolygon(box(0, 0, 1, 1))

        assert dissolve_states([lga])['1'].area == pytest.approx(1.0)

    def test_missing_state_skipped(self):
        lga = Region('99999', 'Nowhere', to_multipolygon(box(0, 0, 1, 1)))
        assert dissolve_states([lga]) == {}


class TestRelate:
    """Tests for assigning postal areas to parent regions."""

    def test_relate_regions(self, two_state_store):
        layers = build_layers(CONFIG, two_state_store)
        loaded = {name: layer.load() for name, layer in layers.items()}

        rows = relate_regions(loaded['poa'], loaded['lga'], loaded['sed'], loaded['ced'])

        assert list(rows) == ['2000', '2001', '2600']
        assert dict(rows['2000']) == {'lga': '10050', 'ste': '1', 'sed': '10001', 'ced': '101'}
        # 1.0 inside 10050, 0.5 inside 89399
        assert rows['2001']['lga'] == '10050'
        assert rows['2600']['lga'] == '89399'
        assert rows['2600']['ste'] == '8'
        assert list(rows['2600']) == ['lga', 'ste', 'sed', 'ced']

    def test_run_relate_inserts_rows(self, two_state_store):
        run_relate(CONFIG, two_state_store)

        assert two_state_store.assignments[0] == (
            '2000', {'lga': '10050', 'ste': '1', 'sed': '10001', 'ced': '101'}
        )
        assert [code for code, _ in two_state_store.assignments] == ['2000', '2001', '2600']

    def test_unmatched_postal_area(self, two_state_store):
        two_state_store.add('poa', '9999', box(100, 100, 101, 101))

        with pytest.warns(UserWarning):
            run_relate(CONFIG, two_state_store)

        assert two_state_store.assignments[-1] == (
            '9999', {'lga': None, 'ste': None, 'sed': None, 'ced': None}
        )
