"""
Cache Domain Module

Domain model for tag-keyed memoization: the cache entry and its expiry
policy, value objects, exceptions and the storage contract.
"""
