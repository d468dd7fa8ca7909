"""Area estimation activities.

- measure_area: geometry engine (area, difference, bounding box)
- filter_buildings: GeoJSON features to building footprints
- subtract_buildings: building-subtraction estimate
"""
