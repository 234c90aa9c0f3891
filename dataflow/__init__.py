"""
Dataflow Layer

Market-data I/O for the chart service. Contains:
- adapters: aiohttp and NATS client wrappers
- ingestion: price providers, response cache and fallback gateway
- candle_aggregation: sample bucketing and the live candle series
- query: FastAPI service exposing the chart
"""
