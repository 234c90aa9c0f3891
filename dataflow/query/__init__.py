"""
Query Layer

HTTP access to the live chart.
"""
