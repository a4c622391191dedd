import math
import h3
from models import hexgrid
from models.constants import MAX_CELLS, ANONYMOUS_NAME
from models.territory_claimers import TerritoryClaim
from models.user import User


class TerritoryQueryError(Exception):
    pass


class InvalidBounds(TerritoryQueryError):
    pass


class TooManyCells(TerritoryQueryError):
    def __init__(self, cell_count, max_cells=MAX_CELLS):
        self.cell_count = cell_count
        self.max_cells = max_cells
        super().__init__(f"Too many cells ({cell_count}). Zoom in to load territories.")


def parse_bounds(raw):
    """Parse ``south,west,north,east`` into a tuple of four finite floats."""
    if not raw:
        raise InvalidBounds("bounds parameter is required (south,west,north,east)")
    parts = raw.split(',')
    try:
        values = tuple(float(p) for p in parts)
    except ValueError:
        values = ()
    if len(values) != 4 or not all(math.isfinite(v) for v in values):
        raise InvalidBounds("bounds must be 4 comma-separated numbers: south,west,north,east")
    south, west, north, east = values
    if not (-90 <= south <= 90 and -90 <= north <= 90):
        raise InvalidBounds("bounds latitudes must be within [-90, 90]")
    if not (-180 <= west <= 180 and -180 <= east <= 180):
        raise InvalidBounds("bounds longitudes must be within [-180, 180]")
    return values


def cells_in_bounds(bounds, max_cells=MAX_CELLS):
    south, west, north, east = bounds
    if south == north or west == east:
        return []
    try:
        cells = hexgrid.bounds_to_cells(*bounds)
    except (h3.H3BaseException, ValueError):
        raise InvalidBounds("Failed to compute H3 cells for the given bounds")
    if len(cells) > max_cells:
        raise TooManyCells(len(cells), max_cells)
    return cells


def fetch_claims(cells):
    return (TerritoryClaim.query
            .filter(TerritoryClaim.h3_index.in_(cells))
            .order_by(TerritoryClaim.h3_index, TerritoryClaim.user_id)
            .all())


def resolve_ownership(claims):
    """
    Group claims by cell. The owner is the claim with the highest log count,
    ties going to the lowest user id; totalLogs sums every claim in the cell.
    """
    owners = {}
    for claim in claims:
        cell = owners.get(claim.h3_index)
        if cell is None:
            owners[claim.h3_index] = {
                'ownerId': claim.user_id,
                'ownerLogCount': claim.log_count,
                'totalLogs': claim.log_count,
            }
            continue
        cell['totalLogs'] += claim.log_count
        if (claim.log_count > cell['ownerLogCount'] or
                (claim.log_count == cell['ownerLogCount'] and claim.user_id < cell['ownerId'])):
            cell['ownerId'] = claim.user_id
            cell['ownerLogCount'] = claim.log_count
    return owners


def owner_names(user_ids):
    if not user_ids:
        return {}
    users = User.query.filter(User.id.in_(user_ids)).all()
    return {u.id: u.public_name for u in users}


def present_territories(owners):
    names = owner_names({info['ownerId'] for info in owners.values()})
    return [
        {
            'h3Index': h3_index,
            'boundary': hexgrid.cell_to_polygon(h3_index),
            'ownerId': info['ownerId'],
            'ownerName': names.get(info['ownerId'], ANONYMOUS_NAME),
            'ownerLogCount': info['ownerLogCount'],
            'totalLogs': info['totalLogs'],
        }
        for h3_index, info in owners.items()
    ]


def territories_in_bounds(bounds):
    cells = cells_in_bounds(bounds)
    if not cells:
        return []
    claims = fetch_claims(cells)
    if not claims:
        return []
    return present_territories(resolve_ownership(claims))
