"""RSV-NET surveillance cleaning pipeline.

Turns a harmonized respiratory-infections extract into a smoothed,
season-indexed table for the data-visualization workshop.
"""

__version__ = "0.1.0"
