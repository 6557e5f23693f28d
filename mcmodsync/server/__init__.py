"""
mcmodsync server package
"""
