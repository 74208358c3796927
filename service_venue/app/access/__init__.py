"""
Access resolution for location and table listings.
"""
