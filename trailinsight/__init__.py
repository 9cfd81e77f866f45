"""
TrailInsight

Spark-based exploratory analysis of scraped hiking-trail data.
Parses, cleans and summarizes hikes and trip reports, and computes
seasonal condition rates by elevation band.
"""

__version__ = "0.1.0"
