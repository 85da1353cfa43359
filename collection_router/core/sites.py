# collection_router/core/sites.py
"""
Default site directory: barangay collection points in Bacolod City.

Used by the /route/collection endpoint when the caller does not send its own
site list. Coordinates follow PhilAtlas.
"""

from typing import List

from collection_router.models.routing import Site

DEFAULT_SITES: List[Site] = [
    Site(
        id="BRGY-001",
        lat=10.6923,
        lng=122.9662,
        status="Open",
        guidelines="Plastic bottles, Glass containers, Aluminum cans. Operating: 7am-7pm daily.",
        name="Mandalagan",
    ),
    Site(
        id="BRGY-002",
        lat=10.6827,
        lng=122.9604,
        status="Open",
        guidelines="Paper, Cardboard, Newspaper. Operating: 8am-6pm Mon-Sat.",
        name="Bata",
    ),
    Site(
        id="BRGY-003",
        lat=10.6496,
        lng=122.9475,
        status="Busy",
        guidelines="Mixed recyclables, Electronic waste. Operating: 9am-5pm Tue-Sun.",
        name="Taculing",
    ),
    Site(
        id="BRGY-004",
        lat=10.6685,
        lng=122.9647,
        status="Open",
        guidelines="Plastic bags, Metal scraps, Glass bottles. Operating: 6am-8pm daily.",
        name="Villamonte",
    ),
    Site(
        id="BRGY-005",
        lat=10.6610,
        lng=123.0790,
        status="Closed",
        guidelines="Maintenance until next Monday. All materials accepted when operational.",
        name="Alangilan",
    ),
]
