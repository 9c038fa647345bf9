"""
journeyplan: route planning for multi-page, data-gathering web journeys.

Determines which page is current, which page is next, and where a user
should land after editing an earlier answer, from a declarative graph of
conditional routes and the data gathered so far.
"""

__version__ = "0.1.0"
