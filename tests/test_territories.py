"""
Territory map endpoint and the ownership pipeline behind it.
"""
from collections import namedtuple

import pytest
from sqlalchemy.exc import SQLAlchemyError

from models import hexgrid, territory
from models.territory_claimers import upsert_territory_claim
from models.territory import (
    parse_bounds, cells_in_bounds, resolve_ownership, InvalidBounds, TooManyCells, MAX_CELLS
)

Claim = namedtuple('Claim', 'h3_index user_id log_count')

NYC = (40.7128, -74.0060)
NYC_BOUNDS = "40.6928,-74.0260,40.7328,-73.9860"
WIDE_BOUNDS = "40.0,-74.5,40.5,-74.0"
ANTIMERIDIAN_BOUNDS = "0.0,179.99,0.01,-179.99"


def claim_n(app, lat, lng, user_id, n):
    with app.app_context():
        cell = hexgrid.coord_to_cell(lat, lng)
        for _ in range(n):
            upsert_territory_claim(cell, user_id)
        return cell


class TestParseBounds:

    def test_valid(self):
        assert parse_bounds("40.1,-74.2,40.3,-74.0") == (40.1, -74.2, 40.3, -74.0)

    def test_whitespace_is_tolerated(self):
        assert parse_bounds(" 40.1, -74.2 ,40.3,-74.0") == (40.1, -74.2, 40.3, -74.0)

    @pytest.mark.parametrize("raw", [
        None, "", "abc", "1,2,3", "1,2,3,4,5", "1,2,,4", "1,2,3,abc",
        "nan,1,2,3", "1,inf,2,3", "95,0,96,1", "0,-181,1,0",
    ])
    def test_malformed(self, raw):
        with pytest.raises(InvalidBounds):
            parse_bounds(raw)


class TestCellsInBounds:

    def test_degenerate_box_is_empty(self):
        assert cells_in_bounds((40.7, -74.0, 40.7, -74.0)) == []

    def test_too_many_cells_reports_true_count(self):
        bounds = parse_bounds(WIDE_BOUNDS)
        expected = len(hexgrid.bounds_to_cells(*bounds))
        assert expected > MAX_CELLS
        with pytest.raises(TooManyCells) as exc:
            cells_in_bounds(bounds)
        assert exc.value.cell_count == expected
        assert exc.value.max_cells == MAX_CELLS

    def test_large_box_reports_exact_count(self):
        bounds = (0.0, 0.0, 1.0, 1.0)
        expected = len(hexgrid.bounds_to_cells(*bounds))
        assert expected > MAX_CELLS * 5
        with pytest.raises(TooManyCells) as exc:
            cells_in_bounds(bounds)
        assert exc.value.cell_count == expected

    def test_small_box_across_antimeridian(self):
        bounds = parse_bounds(ANTIMERIDIAN_BOUNDS)
        cells = cells_in_bounds(bounds)
        assert sorted(cells) == sorted(hexgrid.bounds_to_cells(*bounds))
        assert 0 < len(cells) <= MAX_CELLS


class TestResolveOwnership:

    def test_highest_count_owns_and_total_is_summed(self):
        owners = resolve_ownership([Claim('a', 1, 3), Claim('a', 2, 5)])
        assert owners == {'a': {'ownerId': 2, 'ownerLogCount': 5, 'totalLogs': 8}}

    def test_cells_are_grouped_independently(self):
        owners = resolve_ownership([
            Claim('a', 1, 1), Claim('b', 2, 4), Claim('a', 3, 2), Claim('b', 1, 1),
        ])
        assert owners['a'] == {'ownerId': 3, 'ownerLogCount': 2, 'totalLogs': 3}
        assert owners['b'] == {'ownerId': 2, 'ownerLogCount': 4, 'totalLogs': 5}

    def test_tie_goes_to_lowest_user_id_regardless_of_order(self):
        claims = [Claim('a', 7, 2), Claim('a', 4, 2), Claim('a', 9, 1)]
        assert resolve_ownership(claims)['a']['ownerId'] == 4
        assert resolve_ownership(list(reversed(claims)))['a']['ownerId'] == 4
        assert resolve_ownership(claims)['a']['totalLogs'] == 5

    def test_no_claims(self):
        assert resolve_ownership([]) == {}


class TestTerritoriesEndpoint:

    def test_unauthenticated(self, client, users):
        for url in ('/api/territories', '/api/territories?bounds=abc', f'/api/territories?bounds={NYC_BOUNDS}'):
            resp = client.get(url)
            assert resp.status_code == 401
            assert resp.get_json() == {'error': 'Unauthorized'}

    def test_missing_bounds(self, alice_client):
        resp = alice_client.get('/api/territories')
        assert resp.status_code == 400
        assert 'bounds' in resp.get_json()['error']

    @pytest.mark.parametrize("bounds", ["abc", "1,2,3", "1,2,3,x"])
    def test_malformed_bounds(self, alice_client, bounds):
        resp = alice_client.get(f'/api/territories?bounds={bounds}')
        assert resp.status_code == 400

    def test_too_many_cells(self, alice_client):
        expected = len(hexgrid.bounds_to_cells(*parse_bounds(WIDE_BOUNDS)))
        resp = alice_client.get(f'/api/territories?bounds={WIDE_BOUNDS}')
        assert resp.status_code == 422
        data = resp.get_json()
        assert data['cellCount'] == expected
        assert data['maxCells'] == 2000
        assert 'Zoom in' in data['error']

    def test_no_claims_returns_empty(self, alice_client, users):
        resp = alice_client.get(f'/api/territories?bounds={NYC_BOUNDS}')
        assert resp.status_code == 200
        assert resp.get_json() == {'territories': [], 'currentUserId': users['alice']}

    def test_degenerate_box_returns_empty(self, alice_client, users):
        resp = alice_client.get('/api/territories?bounds=40.7,-74.0,40.7,-74.0')
        assert resp.status_code == 200
        assert resp.get_json()['territories'] == []

    def test_owner_resolution(self, app, alice_client, users):
        cell = claim_n(app, *NYC, users['bob'], 5)
        claim_n(app, *NYC, users['carol'], 3)

        resp = alice_client.get(f'/api/territories?bounds={NYC_BOUNDS}')
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['currentUserId'] == users['alice']
        assert len(data['territories']) == 1
        t = data['territories'][0]
        assert t['h3Index'] == cell
        assert t['ownerId'] == users['bob']
        assert t['ownerName'] == 'bob'
        assert t['ownerLogCount'] == 5
        assert t['totalLogs'] == 8
        assert t['boundary'] == hexgrid.cell_to_polygon(cell)

    def test_display_name_preferred(self, app, alice_client, users):
        claim_n(app, *NYC, users['carol'], 1)
        t = alice_client.get(f'/api/territories?bounds={NYC_BOUNDS}').get_json()['territories'][0]
        assert t['ownerName'] == 'Carol'

    def test_small_box_across_antimeridian(self, app, alice_client, users):
        cell = hexgrid.bounds_to_cells(*parse_bounds(ANTIMERIDIAN_BOUNDS))[0]
        with app.app_context():
            upsert_territory_claim(cell, users['bob'])

        resp = alice_client.get(f'/api/territories?bounds={ANTIMERIDIAN_BOUNDS}')
        assert resp.status_code == 200
        territories = resp.get_json()['territories']
        assert [t['h3Index'] for t in territories] == [cell]
        assert territories[0]['ownerId'] == users['bob']

    def test_claims_outside_box_are_ignored(self, app, alice_client, users):
        claim_n(app, 51.5074, -0.1278, users['bob'], 2)
        resp = alice_client.get(f'/api/territories?bounds={NYC_BOUNDS}')
        assert resp.get_json()['territories'] == []

    def test_store_error(self, app, alice_client, users, monkeypatch):
        def broken(cells):
            raise SQLAlchemyError("claims table unavailable")
        monkeypatch.setattr(territory, 'fetch_claims', broken)
        resp = alice_client.get(f'/api/territories?bounds={NYC_BOUNDS}')
        assert resp.status_code == 500
        assert resp.get_json()['error'] == "claims table unavailable"
