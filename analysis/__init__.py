"""
Analysis package for the Tract Choropleth Map

Map rendering built on top of the choropleth core.
"""
