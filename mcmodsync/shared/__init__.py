"""
Code shared by the mcmodsync server and client
"""
