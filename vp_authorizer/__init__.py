"""
Verified Permissions schema and policy deployment with a DynamoDB identity store.
"""
__version__ = "0.1.0"
