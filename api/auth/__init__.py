"""
Caller identity from bearer access tokens.
"""
