"""
Supporting utilities for EventPath: console logging, CSV history
loading, and pattern/history visualization.
"""
