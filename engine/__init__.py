"""
Engine Layer

Chart runtime for the live BTC candlestick service. Contains:
- config: timeframe registry and YAML chart configuration
- scheduler: cancellable periodic and debounced tasks
- runtime: live chart coordinator, views and entry point
"""
