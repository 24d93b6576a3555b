"""Life expectancy panel pipeline.

Cleans a cross-country, multi-year panel of health and socioeconomic
indicators, standardizes country identities and builds a scored,
feature-enriched master dataset.
"""

__version__ = "0.1.0"
