"""
Authentication primitives: password hashing, tokens, identity resolution.
"""
