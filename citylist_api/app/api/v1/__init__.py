"""
Version 1 of the CityList API.

Breaking changes to response shapes belong in a new version
subpackage so existing clients keep working.
"""
