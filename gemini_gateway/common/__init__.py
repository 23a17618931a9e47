"""
Common utilities shared by the gateway modules.
"""
