"""
ClaimPool core: exceptions, crypto, canonical encoding, shared records.
"""
