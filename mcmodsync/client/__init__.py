"""
mcmodsync client package
"""
