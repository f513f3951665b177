"""
tradescan — indicator evaluation, signal scanning and trade setup composition.
"""
