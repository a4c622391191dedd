import h3

# Resolution 8 is roughly 460m edge length, neighborhood sized hexagons
H3_RESOLUTION = 8


def coord_to_cell(lat, lng):
    """Convert a lat/lng pair to the H3 cell index at our resolution."""
    return h3.latlng_to_cell(lat, lng, H3_RESOLUTION)


def cell_to_polygon(cell):
    """Return the cell boundary as an ordered list of [lat, lng] vertices."""
    return [[lat, lng] for lat, lng in h3.cell_to_boundary(cell)]


def bounds_polygon(south, west, north, east):
    # counter-clockwise ring, LatLngPoly closes it
    return h3.LatLngPoly([
        (south, west),
        (north, west),
        (north, east),
        (south, east),
    ])


def bounds_to_cells(south, west, north, east):
    """All cells whose centroid falls inside the bounding box."""
    return list(h3.polygon_to_cells(bounds_polygon(south, west, north, east), H3_RESOLUTION))

