"""
Strategy bounded context: indicator composition and trade-setup matching.
"""
