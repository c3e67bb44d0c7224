"""
Place ranking engine.

Responsibilities:
- Load partner places from the spreadsheet (or a local CSV) and normalise them.
- Compute walking-scale distances from the company location.
- Filter by radius, status, category and name, then rank by distance.
- Provide the "top N" and "random pick" views used by the map and random tabs.
"""
