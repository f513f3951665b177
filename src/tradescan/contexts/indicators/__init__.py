"""
Indicators bounded context: indicator engines, progressive recalculation and signal scanning.
"""
