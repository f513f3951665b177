"""
Signatures bounded context: content hashes that identify indicator, detector and setup configs.
"""
