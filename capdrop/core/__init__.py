"""
capdrop core - records, errors, address checks and signing keys.
"""
