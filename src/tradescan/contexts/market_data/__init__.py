"""
Market data bounded context: tracked symbols, candle series and candle storage ports.
"""
